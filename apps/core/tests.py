from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase
from rest_framework.exceptions import ValidationError

from apps.profiles.constants import EXACT, APPROXIMATE, CITY_ONLY
from .api_exceptions import OnboardingRequired
from .exceptions import custom_exception_handler, extract_first_error_message
from .geo.distance import haversine_km, bounding_box, round_half_up
from .geo.privacy import round_to_grid, approximate_distance, visible_location


class DistanceTests(SimpleTestCase):
    def test_haversine_known_distance(self):
        # New York to London
        self.assertAlmostEqual(haversine_km(40.7128, -74.0060, 51.5074, -0.1278), 5570, delta=10)

    def test_haversine_zero(self):
        self.assertEqual(haversine_km(10.0, 20.0, 10.0, 20.0), 0.0)

    def test_bounding_box_contains_radius(self):
        min_lat, max_lat, min_lng, max_lng = bounding_box(40.0, -74.0, 10)
        self.assertLess(min_lat, 40.0)
        self.assertGreater(max_lat, 40.0)
        self.assertLess(haversine_km(40.0, -74.0, max_lat, -74.0), 10.01)
        self.assertLess(min_lng, -74.0)
        self.assertGreater(max_lng, -74.0)

    def test_bounding_box_skips_longitude_near_pole_and_antimeridian(self):
        self.assertEqual(bounding_box(89.99, 0.0, 50)[2:], (None, None))
        self.assertEqual(bounding_box(0.0, 179.99, 50)[2:], (None, None))

    def test_bounding_box_widens_longitude_at_high_latitude(self):
        # 999.x km away, right at the eastern edge of a 1000 km search from 60N
        self.assertLess(haversine_km(60.0, 0.0, 61.259, 18.1), 1000)
        min_lat, max_lat, min_lng, max_lng = bounding_box(60.0, 0.0, 1000)
        self.assertLessEqual(min_lat, 61.259)
        self.assertGreaterEqual(max_lat, 61.259)
        self.assertGreaterEqual(max_lng, 18.1)
        self.assertLessEqual(min_lng, -18.1)

    def test_bounding_box_never_narrower_than_the_circle(self):
        for lat in (0.0, 45.0, 60.0, 70.0, -65.0):
            min_lat, max_lat, min_lng, max_lng = bounding_box(lat, 10.0, 1500)
            if min_lng is None:
                continue
            for point_lat in (lat, lat + 2.0, lat - 2.0, lat + 4.0, lat - 4.0):
                for point_lng in (min_lng - 0.01, max_lng + 0.01):
                    self.assertGreater(haversine_km(lat, 10.0, point_lat, point_lng), 1500)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(2.49), 2)


class PrivacyTests(SimpleTestCase):
    def _person(self, privacy, lat=40.71234, lng=-74.00567):
        return SimpleNamespace(
            pk=1, latitude=lat, longitude=lng, location_privacy=privacy,
            _prefetched_objects_cache={'blocked_persons': []},
        )

    def test_round_to_grid(self):
        self.assertEqual(round_to_grid(40.71234), 40.71)
        self.assertEqual(round_to_grid(-74.00567), -74.01)

    def test_visible_location_by_privacy(self):
        viewer = SimpleNamespace(pk=2)
        self.assertEqual(visible_location(self._person(EXACT), viewer), {'latitude': 40.71234, 'longitude': -74.00567})
        self.assertEqual(visible_location(self._person(APPROXIMATE), viewer), {'latitude': 40.71, 'longitude': -74.01})
        self.assertIsNone(visible_location(self._person(CITY_ONLY), viewer))
        self.assertIsNone(visible_location(self._person(EXACT, lat=None, lng=None), viewer))

    def test_approximate_distance_labels(self):
        self.assertEqual(approximate_distance(0.4), '< 1km away')
        self.assertEqual(approximate_distance(3.6), '~4km away')
        self.assertEqual(approximate_distance(7.6), '~10km away')
        self.assertEqual(approximate_distance(23), '~20km away')
        self.assertEqual(approximate_distance(50), '50+ km away')


class ExceptionHandlerTests(TestCase):
    def test_nested_validation_message(self):
        response = custom_exception_handler(ValidationError({'location': ['Bad pair']}), {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Bad pair')
        self.assertEqual(response.data['error'], {'location': ['Bad pair']})

    def test_onboarding_redirect(self):
        response = custom_exception_handler(OnboardingRequired(), {})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data['redirect'], '/onboarding')
        self.assertEqual(response.data['message'], 'Please complete onboarding first')

    def test_unhandled_exception_is_500(self):
        with self.assertLogs('apps.core.exceptions', level='ERROR'):
            response = custom_exception_handler(RuntimeError('boom'), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['message'], 'Internal server error')

    def test_extract_first_error_message(self):
        self.assertEqual(extract_first_error_message({'detail': 'x'}), 'x')
        self.assertEqual(extract_first_error_message([{'a': ['y']}]), 'y')
        self.assertIsNone(extract_first_error_message({}))


class ProximityBackendSettingTests(SimpleTestCase):
    def test_postgres_engines_default_to_postgis(self):
        from brotherhood.settings import default_proximity_backend

        self.assertEqual(default_proximity_backend('django.db.backends.postgresql'), 'postgis')
        self.assertEqual(default_proximity_backend('django.contrib.gis.db.backends.postgis'), 'postgis')
        self.assertEqual(default_proximity_backend('django.db.backends.sqlite3'), 'haversine')
