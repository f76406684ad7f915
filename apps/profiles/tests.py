from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.gatherings.services import membership as membership_service
from apps.gatherings.constants import HOBBY, SPIRITUAL
from apps.prayers.models import PrayerPost
from .models import Person, Interest, PersonInterest
from .constants import EXACT, APPROXIMATE, HIDDEN, DEFAULT_INTERESTS
from .services.matching import person_compatibility, group_compatibility

CustomUser = get_user_model()

NYC = (40.7128, -74.0060)


def make_person(email, name, onboarded=True, lat=None, lng=None, privacy=APPROXIMATE):
    user = CustomUser.objects.create_user(email=email, password='password123')
    return Person.objects.create(
        user=user, display_name=name, onboarding_level=1 if onboarded else 0,
        latitude=lat, longitude=lng, location_privacy=privacy,
    )


class ProfileTestCase(TestCase):
    def setUp(self):
        cache.clear()

    def _as(self, person):
        client = APIClient()
        client.force_authenticate(user=person.user)
        return client


class MeTests(ProfileTestCase):
    url = '/api/profiles/persons/me/'

    def setUp(self):
        super().setUp()
        self.person = make_person('john@example.com', 'John', onboarded=False)
        self.client = self._as(self.person)

    def test_get_own_profile_includes_email(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['email'], 'john@example.com')
        self.assertEqual(data['display_name'], 'John')
        self.assertEqual(data['onboarding_level'], 0)
        self.assertEqual(data['groups'], [])

    def test_patch_location(self):
        response = self.client.patch(self.url, {'latitude': 40.7, 'longitude': -74.0}, format='json')

        self.assertEqual(response.status_code, 200)
        self.person.refresh_from_db()
        self.assertEqual(self.person.latitude, 40.7)
        self.assertEqual(self.person.longitude, -74.0)

    def test_patch_latitude_without_longitude(self):
        response = self.client.patch(self.url, {'latitude': 40.7}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_patch_rejects_out_of_range_latitude(self):
        response = self.client.patch(self.url, {'latitude': 91, 'longitude': 0}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_unauthenticated(self):
        self.assertEqual(APIClient().get(self.url).status_code, 401)


class OnboardingTests(ProfileTestCase):
    def setUp(self):
        super().setUp()
        self.person = make_person('john@example.com', 'John', onboarded=False)
        self.client = self._as(self.person)
        self.hiking = Interest.objects.create(name='Hiking', category='Outdoor & Adventure')
        self.chess = Interest.objects.create(name='Chess', category='Strategy')

    def test_update_profile_blank_strings_become_null(self):
        response = self.client.post('/api/profiles/persons/me/update-profile/', {
            'city': '  ',
            'community': 'Grace Church',
            'archetype': 'Builder',
            'interests': [{'interest_id': self.hiking.id, 'proficiency_level': 4}],
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.person.refresh_from_db()
        self.assertIsNone(self.person.city)
        self.assertEqual(self.person.community, 'Grace Church')
        self.assertEqual(self.person.archetype, 'Builder')
        self.assertEqual(PersonInterest.objects.get(person=self.person).proficiency_level, 4)

    def test_replace_interests(self):
        PersonInterest.objects.create(person=self.person, interest=self.hiking)

        response = self.client.post('/api/profiles/persons/me/interests/', {
            'interest_ids': [self.chess.id], 'proficiency_level': 5,
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['interests'], [
            {'id': self.chess.id, 'name': 'Chess', 'category': 'Strategy', 'proficiency_level': 5},
        ])

    def test_replace_interests_unknown_id_keeps_existing(self):
        PersonInterest.objects.create(person=self.person, interest=self.hiking)

        response = self.client.post('/api/profiles/persons/me/interests/', {'interest_ids': [999999]}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertTrue(PersonInterest.objects.filter(person=self.person, interest=self.hiking).exists())

    def test_complete_onboarding_reports_missing(self):
        response = self.client.post('/api/profiles/persons/me/complete-onboarding/')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Onboarding requirements not met')
        self.assertEqual(response.json()['error']['missing'], ['location', 'interests'])

    def test_complete_onboarding(self):
        self.person.latitude, self.person.longitude = NYC
        self.person.save()
        PersonInterest.objects.create(person=self.person, interest=self.hiking)

        response = self.client.post('/api/profiles/persons/me/complete-onboarding/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['onboarding_level'], 1)
        self.person.refresh_from_db()
        self.assertTrue(self.person.is_onboarded)


class VisibilityTests(ProfileTestCase):
    def setUp(self):
        super().setUp()
        self.viewer = make_person('viewer@example.com', 'Viewer', lat=NYC[0], lng=NYC[1])
        self.client = self._as(self.viewer)

    def test_retrieve_hides_private_fields(self):
        other = make_person('other@example.com', 'Other', lat=40.71234, lng=-74.00567, privacy=APPROXIMATE)
        other.phone = '555-0100'
        other.save()

        data = self.client.get(f'/api/profiles/persons/{other.id}/').json()

        self.assertNotIn('email', data)
        self.assertNotIn('phone', data)
        self.assertNotIn('blocked_persons', data)
        self.assertNotIn('safety_flags', data)
        self.assertEqual(data['location'], {'latitude': 40.71, 'longitude': -74.01})

    def test_hidden_location(self):
        other = make_person('other@example.com', 'Other', lat=40.7, lng=-74.0, privacy=HIDDEN)
        other.city = 'New York'
        other.save()

        data = self.client.get(f'/api/profiles/persons/{other.id}/').json()

        self.assertIsNone(data['location'])
        self.assertIsNone(data['city'])

    def test_block_and_unblock(self):
        other = make_person('other@example.com', 'Other')

        response = self.client.post(f'/api/profiles/persons/{other.id}/block/')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(self.viewer.blocked_persons.filter(pk=other.pk).exists())

        # The blocked person can no longer see the viewer
        response = self._as(other).get(f'/api/profiles/persons/{self.viewer.id}/')
        self.assertEqual(response.status_code, 403)

        response = self.client.delete(f'/api/profiles/persons/{other.id}/block/')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(self.viewer.blocked_persons.filter(pk=other.pk).exists())

    def test_cannot_block_self(self):
        response = self.client.post(f'/api/profiles/persons/{self.viewer.id}/block/')
        self.assertEqual(response.status_code, 400)

    def test_unknown_person_is_404(self):
        self.assertEqual(self.client.get('/api/profiles/persons/999999/').status_code, 404)


class NearbyTests(ProfileTestCase):
    url = '/api/profiles/persons/nearby/'

    def setUp(self):
        super().setUp()
        self.viewer = make_person('viewer@example.com', 'Viewer', lat=NYC[0], lng=NYC[1])
        self.client = self._as(self.viewer)

    def _search(self, **params):
        query = {'lat': NYC[0], 'lng': NYC[1], **params}
        return self.client.get(self.url, query)

    def test_ordered_by_distance_with_labels(self):
        far = make_person('far@example.com', 'Far', lat=40.75, lng=-74.0060, privacy=EXACT)
        near = make_person('near@example.com', 'Near', lat=40.7138, lng=-74.0060)
        make_person('outside@example.com', 'Outside', lat=41.5, lng=-74.0060)

        response = self._search(radius=50)

        self.assertEqual(response.status_code, 200)
        persons = response.json()['persons']
        self.assertEqual([p['id'] for p in persons], [near.id, far.id])
        self.assertEqual(persons[0]['distance_label'], '< 1km away')
        self.assertEqual(persons[1]['distance_label'], '~4km away')
        self.assertEqual(persons[1]['location'], {'latitude': 40.75, 'longitude': -74.0060})
        self.assertNotIn('email', persons[0])

    def test_excludes_self_unonboarded_and_blocked(self):
        make_person('newbie@example.com', 'Newbie', onboarded=False, lat=40.7130, lng=-74.0060)
        blocked = make_person('blocked@example.com', 'Blocked', lat=40.7130, lng=-74.0060)
        blocker = make_person('blocker@example.com', 'Blocker', lat=40.7131, lng=-74.0060)
        self.viewer.blocked_persons.add(blocked)
        blocker.blocked_persons.add(self.viewer)
        visible = make_person('visible@example.com', 'Visible', lat=40.7132, lng=-74.0060)

        persons = self._search().json()['persons']

        self.assertEqual([p['id'] for p in persons], [visible.id])

    def test_limit(self):
        for i in range(3):
            make_person(f'p{i}@example.com', f'P{i}', lat=NYC[0] + 0.001 * (i + 1), lng=NYC[1])

        data = self._search(limit=2).json()

        self.assertEqual(data['count'], 2)
        self.assertEqual(data['search_params']['limit'], 2)

    def test_same_distance_ordered_by_id(self):
        same = [
            make_person(f'same{i}@example.com', f'Same{i}', lat=40.7200, lng=-74.0060)
            for i in range(3)
        ]
        closer = make_person('closer@example.com', 'Closer', lat=40.7150, lng=-74.0060)

        persons = self._search().json()['persons']

        self.assertEqual([p['id'] for p in persons], [closer.id] + sorted(p.id for p in same))

    def test_high_latitude_wide_radius(self):
        target = make_person('north@example.com', 'North', lat=61.259, lng=18.1)

        response = self.client.get(self.url, {'lat': 60.0, 'lng': 0.0, 'radius': 1000})

        self.assertEqual(response.status_code, 200)
        persons = response.json()['persons']
        self.assertEqual([p['id'] for p in persons], [target.id])
        self.assertLess(persons[0]['distance_km'], 1000)

    def test_block_refreshes_cached_results(self):
        other = make_person('other@example.com', 'Other', lat=40.7130, lng=-74.0060)
        self.assertEqual([p['id'] for p in self._search().json()['persons']], [other.id])

        response = self.client.post(f'/api/profiles/persons/{other.id}/block/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._search().json()['persons'], [])

        self.client.delete(f'/api/profiles/persons/{other.id}/block/')
        self.assertEqual([p['id'] for p in self._search().json()['persons']], [other.id])

    def test_block_refreshes_cached_count(self):
        other = make_person('other@example.com', 'Other', lat=40.7130, lng=-74.0060)
        dashboard = '/api/profiles/persons/me/dashboard/'
        self.assertEqual(self.client.get(dashboard).json()['nearby_count'], 1)

        self.client.post(f'/api/profiles/persons/{other.id}/block/')

        self.assertEqual(self.client.get(dashboard).json()['nearby_count'], 0)

    def test_missing_coordinates(self):
        self.assertEqual(self.client.get(self.url).status_code, 400)

    def test_requires_onboarding(self):
        newbie = make_person('newbie@example.com', 'Newbie', onboarded=False)
        response = self._as(newbie).get(self.url, {'lat': NYC[0], 'lng': NYC[1]})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['redirect'], '/onboarding')


class DashboardTests(ProfileTestCase):
    def test_dashboard(self):
        person = make_person('john@example.com', 'John', lat=NYC[0], lng=NYC[1])
        make_person('near@example.com', 'Near', lat=40.7138, lng=-74.0060)
        make_person('far@example.com', 'Far', lat=41.5, lng=-74.0060)
        author = make_person('author@example.com', 'Author')
        PrayerPost.objects.create(author=author, content='Pray for rain')

        data = self._as(person).get('/api/profiles/persons/me/dashboard/').json()

        self.assertEqual(data['nearby_count'], 1)
        self.assertEqual(data['saved_radius'], 5)
        self.assertEqual(data['my_huddles'], [])
        self.assertEqual([p['content'] for p in data['recent_prayers']], ['Pray for rain'])

    def test_nearby_count_without_location(self):
        person = make_person('john@example.com', 'John', onboarded=False)

        data = self._as(person).get('/api/profiles/persons/me/dashboard/').json()

        self.assertEqual(data['nearby_count'], 0)

    def test_me_lists_active_groups(self):
        person = make_person('john@example.com', 'John')
        group = membership_service.create_group(person, {'name': 'Chess Club', 'type': HOBBY})

        groups = self._as(person).get('/api/profiles/persons/me/').json()['groups']

        self.assertEqual(groups[0]['id'], group.id)
        self.assertEqual(groups[0]['role'], 'CREATOR')


class MatchTests(ProfileTestCase):
    persons_url = '/api/profiles/matches/persons/'
    groups_url = '/api/profiles/matches/groups/'

    def setUp(self):
        super().setUp()
        self.hiking = Interest.objects.create(name='Hiking', category='Outdoor & Adventure')
        self.chess = Interest.objects.create(name='Chess', category='Strategy')

        self.viewer = make_person('viewer@example.com', 'Viewer', lat=NYC[0], lng=NYC[1])
        PersonInterest.objects.create(person=self.viewer, interest=self.hiking, proficiency_level=5)
        PersonInterest.objects.create(person=self.viewer, interest=self.chess, proficiency_level=2)
        self.client = self._as(self.viewer)

        # Same spot, one shared interest out of two
        self.alice = make_person('alice@example.com', 'Alice', lat=NYC[0], lng=NYC[1])
        PersonInterest.objects.create(person=self.alice, interest=self.hiking)
        # About 11 km north, nothing in common
        self.bob = make_person('bob@example.com', 'Bob', lat=NYC[0] + 0.1, lng=NYC[1])

    def test_person_matches_ranked_with_reasons(self):
        response = self.client.get(self.persons_url)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual([m['person']['id'] for m in data['matches']], [self.alice.id, self.bob.id])
        self.assertFalse(data['cached'])
        self.assertEqual(data['search_params'], {'limit': 20, 'min_score': 0.3, 'use_cache': True, 'radius_km': 50})

        best = data['matches'][0]
        self.assertAlmostEqual(best['interest_similarity'], 0.5)
        self.assertAlmostEqual(best['proximity_score'], 1.0)
        self.assertAlmostEqual(best['personality_match'], 1.0)
        self.assertAlmostEqual(best['overall_score'], 0.75)
        self.assertEqual(best['distance_label'], '< 1km away')
        self.assertEqual(
            [(r['type'], r['value']) for r in best['match_reasons']],
            [('interest', 'Hiking'), ('proximity', '< 1km away'), ('personality', 'Similar personality traits')],
        )
        self.assertNotIn('email', best['person'])

        other = data['matches'][1]
        self.assertAlmostEqual(other['interest_similarity'], 0.0)
        self.assertAlmostEqual(other['overall_score'], 0.4333, places=3)
        self.assertEqual([r['type'] for r in other['match_reasons']], ['personality'])

    def test_min_score_and_limit(self):
        data = self.client.get(self.persons_url, {'minScore': 0.5}).json()
        self.assertEqual([m['person']['id'] for m in data['matches']], [self.alice.id])

        data = self.client.get(self.persons_url, {'limit': 1, 'minScore': 0}).json()
        self.assertEqual(data['count'], 1)

    def test_invalid_params(self):
        self.assertEqual(self.client.get(self.persons_url, {'minScore': 2}).status_code, 400)
        self.assertEqual(self.client.get(self.persons_url, {'limit': 0}).status_code, 400)

    def test_scores_cached_until_opted_out(self):
        self.assertFalse(self.client.get(self.persons_url).json()['cached'])
        self.assertTrue(self.client.get(self.persons_url).json()['cached'])

        data = self.client.get(self.persons_url, {'useCache': 'false'}).json()
        self.assertFalse(data['cached'])
        self.assertFalse(data['search_params']['use_cache'])

    def test_blocks_excluded_in_both_directions(self):
        self.client.get(self.persons_url)

        self.client.post(f'/api/profiles/persons/{self.alice.id}/block/')
        ids = [m['person']['id'] for m in self.client.get(self.persons_url).json()['matches']]
        self.assertEqual(ids, [self.bob.id])

        self._as(self.bob).post(f'/api/profiles/persons/{self.viewer.id}/block/')
        self.assertEqual(self.client.get(self.persons_url).json()['matches'], [])

    def test_interest_change_refreshes_cached_scores(self):
        self.client.get(self.persons_url)
        PersonInterest.objects.create(person=self.bob, interest=self.chess)

        # Cached scores survive until the viewer's own profile changes
        self.assertTrue(self.client.get(self.persons_url).json()['cached'])

        self.client.post('/api/profiles/persons/me/update-profile/', {
            'interests': [
                {'interest_id': self.hiking.id, 'proficiency_level': 5},
                {'interest_id': self.chess.id, 'proficiency_level': 2},
            ],
        }, format='json')
        data = self.client.get(self.persons_url).json()
        self.assertFalse(data['cached'])
        self.assertAlmostEqual(data['matches'][1]['interest_similarity'], 0.5)

    def test_without_location_no_matches(self):
        nomad = make_person('nomad@example.com', 'Nomad')

        data = self._as(nomad).get(self.persons_url).json()

        self.assertEqual(data['matches'], [])
        self.assertEqual(data['count'], 0)

    def test_requires_onboarding(self):
        newbie = make_person('newbie@example.com', 'Newbie', onboarded=False, lat=NYC[0], lng=NYC[1])
        self.assertEqual(self._as(newbie).get(self.persons_url).status_code, 422)
        self.assertEqual(self._as(newbie).get(self.groups_url).status_code, 422)

    def test_group_matches(self):
        trail = membership_service.create_group(self.alice, {
            'name': 'Trail Crew', 'type': HOBBY, 'tags': ['hiking', 'Outdoors'],
            'latitude': NYC[0], 'longitude': NYC[1],
        })
        supper = membership_service.create_group(self.bob, {
            'name': 'Supper Club', 'type': HOBBY,
            'latitude': NYC[0] + 0.1, 'longitude': NYC[1],
        })
        membership_service.create_group(self.bob, {'name': 'Online Study', 'type': SPIRITUAL, 'is_virtual': True})
        membership_service.create_group(self.viewer, {
            'name': 'My Own', 'type': HOBBY, 'tags': ['hiking'], 'latitude': NYC[0], 'longitude': NYC[1],
        })

        response = self.client.get(self.groups_url)

        self.assertEqual(response.status_code, 200)
        matches = response.json()['matches']
        self.assertEqual([m['group']['id'] for m in matches], [trail.id, supper.id])

        best = matches[0]
        self.assertAlmostEqual(best['interest_score'], 0.5)
        self.assertAlmostEqual(best['proximity_score'], 1.0)
        self.assertEqual(best['size_match'], 0.5)
        self.assertEqual(best['type_match'], 1.0)
        self.assertAlmostEqual(best['overall_score'], 0.7)
        self.assertEqual(best['group']['distance_label'], '< 1km away')
        self.assertEqual(
            [(r['type'], r['value']) for r in best['match_reasons']],
            [('interest', 'hiking'), ('proximity', '< 1km away')],
        )

    def test_group_preferences_shape_scores(self):
        self.viewer.group_preferences = {'size_min': 1, 'size_max': 4, 'types': [SPIRITUAL]}
        self.viewer.save()
        group = membership_service.create_group(self.alice, {
            'name': 'Trail Crew', 'type': HOBBY, 'latitude': NYC[0], 'longitude': NYC[1],
        })

        score = group_compatibility(self.viewer, group, 0.0)

        self.assertEqual(score['size_match'], 1.0)
        self.assertEqual(score['type_match'], 0.5)
        self.assertAlmostEqual(score['overall_score'], 0.55)
        self.assertEqual(score['match_reasons'][-1]['value'], '1 members (in your preferred range)')

    def test_personality_distance_lowers_score(self):
        self.viewer.personality_traits = {'openness': 10}
        self.alice.personality_traits = {'openness': 1}

        score = person_compatibility(self.viewer, self.alice, 30.0)

        self.assertAlmostEqual(score['personality_match'], 0.0)
        self.assertAlmostEqual(score['proximity_score'], 0.4)
        self.assertAlmostEqual(score['overall_score'], 0.37)
        self.assertEqual([r['type'] for r in score['match_reasons']], ['interest'])

    def test_update_profile_stores_match_preferences(self):
        response = self.client.post('/api/profiles/persons/me/update-profile/', {
            'personality_traits': {'openness': 8},
            'group_preferences': {'size_min': 3, 'size_max': 12, 'types': [HOBBY]},
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.viewer.refresh_from_db()
        self.assertEqual(self.viewer.personality_traits, {'openness': 8})
        self.assertEqual(self.viewer.group_preferences, {'size_min': 3, 'size_max': 12, 'types': [HOBBY]})

    def test_update_profile_rejects_bad_match_preferences(self):
        url = '/api/profiles/persons/me/update-profile/'
        response = self.client.post(url, {'personality_traits': {'openness': 11}}, format='json')
        self.assertEqual(response.status_code, 400)

        response = self.client.post(url, {'group_preferences': {'size_min': 12, 'size_max': 3}}, format='json')
        self.assertEqual(response.status_code, 400)


class InterestCatalogueTests(ProfileTestCase):
    def test_seed_is_idempotent(self):
        call_command('seed_interests', stdout=StringIO())
        call_command('seed_interests', stdout=StringIO())

        expected = sum(len(names) for names in DEFAULT_INTERESTS.values())
        self.assertEqual(Interest.objects.count(), expected)

    def test_dry_run_writes_nothing(self):
        out = StringIO()
        call_command('seed_interests', '--dry-run', stdout=out)

        self.assertEqual(Interest.objects.count(), 0)
        self.assertIn('[dry-run]', out.getvalue())

    def test_list_grouped_by_category(self):
        Interest.objects.create(name='Hiking', category='Outdoor', popularity=5)
        Interest.objects.create(name='Chess', category='Strategy', popularity=9)
        person = make_person('john@example.com', 'John', onboarded=False)

        data = self._as(person).get('/api/profiles/interests/').json()

        self.assertEqual([i['name'] for i in data['interests']], ['Chess', 'Hiking'])
        self.assertEqual(data['categories'], ['Outdoor', 'Strategy'])
        self.assertEqual([i['name'] for i in data['grouped']['Outdoor']], ['Hiking'])
