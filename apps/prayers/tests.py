from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.profiles.models import Person
from .models import PrayerPost, PrayerResponse
from .services import recent_prayers

CustomUser = get_user_model()


def make_person(email, name, onboarded=True):
    user = CustomUser.objects.create_user(email=email, password='password123')
    return Person.objects.create(user=user, display_name=name, onboarding_level=1 if onboarded else 0)


class PrayerApiTests(TestCase):
    url = '/api/prayers/'

    def setUp(self):
        self.john = make_person('john@example.com', 'John')
        self.mark = make_person('mark@example.com', 'Mark')
        self.john_client = self._as(self.john)
        self.mark_client = self._as(self.mark)

    def _as(self, person):
        client = APIClient()
        client.force_authenticate(user=person.user)
        return client

    def test_create_trims_content(self):
        response = self.john_client.post(self.url, {'content': '  Pray for my family  '}, format='json')

        self.assertEqual(response.status_code, 201)
        prayer = response.json()['prayer']
        self.assertEqual(prayer['content'], 'Pray for my family')
        self.assertEqual(prayer['prayer_count'], 0)
        self.assertFalse(prayer['user_prayed'])

    def test_create_validates_length(self):
        self.assertEqual(self.john_client.post(self.url, {'content': '   '}, format='json').status_code, 400)
        self.assertEqual(self.john_client.post(self.url, {'content': 'x' * 501}, format='json').status_code, 400)

    def test_rate_limit_counts_deleted_posts(self):
        for i in range(5):
            PrayerPost.objects.create(author=self.john, content=f'p{i}', deleted_at=timezone.now() if i == 0 else None)

        response = self.john_client.post(self.url, {'content': 'one more'}, format='json')

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()['message'], 'Rate limit exceeded. Please wait before posting another prayer.')

    def test_rate_limit_window_rolls(self):
        old = timezone.now() - timedelta(minutes=61)
        for i in range(5):
            PrayerPost.objects.create(author=self.john, content=f'p{i}', created_at=old)

        response = self.john_client.post(self.url, {'content': 'fresh'}, format='json')
        self.assertEqual(response.status_code, 201)

    def test_feed_hides_deleted_and_blocked_authors(self):
        PrayerPost.objects.create(author=self.john, content='visible')
        PrayerPost.objects.create(author=self.john, content='gone', deleted_at=timezone.now())
        blocked = make_person('blocked@example.com', 'Blocked')
        PrayerPost.objects.create(author=blocked, content='hidden')
        self.mark.blocked_persons.add(blocked)

        response = self.mark_client.get(self.url)

        self.assertEqual(response.status_code, 200)
        self.assertEqual([p['content'] for p in response.json()['prayers']], ['visible'])

    def test_feed_is_newest_first_with_user_prayed(self):
        now = timezone.now()
        older = PrayerPost.objects.create(author=self.john, content='older', created_at=now - timedelta(hours=1))
        PrayerPost.objects.create(author=self.john, content='newer', created_at=now)
        PrayerResponse.objects.create(prayer=older, person=self.mark)

        prayers = self.mark_client.get(self.url).json()['prayers']

        self.assertEqual([p['content'] for p in prayers], ['newer', 'older'])
        self.assertEqual([p['user_prayed'] for p in prayers], [False, True])

    def test_feed_requires_onboarding(self):
        newbie = make_person('newbie@example.com', 'Newbie', onboarded=False)
        self.assertEqual(self._as(newbie).get(self.url).status_code, 422)

    def test_retrieve_deleted_is_404(self):
        prayer = PrayerPost.objects.create(author=self.john, content='gone', deleted_at=timezone.now())
        self.assertEqual(self.mark_client.get(f'{self.url}{prayer.id}/').status_code, 404)
        self.assertEqual(self.mark_client.get(f'{self.url}999999/').status_code, 404)

    def test_update_author_only(self):
        prayer = PrayerPost.objects.create(author=self.john, content='original')

        response = self.mark_client.patch(f'{self.url}{prayer.id}/', {'content': 'hijack'}, format='json')
        self.assertEqual(response.status_code, 403)

        response = self.john_client.patch(f'{self.url}{prayer.id}/', {'content': ' edited '}, format='json')
        self.assertEqual(response.status_code, 200)
        prayer.refresh_from_db()
        self.assertEqual(prayer.content, 'edited')

    def test_update_missing_and_deleted(self):
        self.assertEqual(
            self.john_client.patch(f'{self.url}999999/', {'content': 'x'}, format='json').status_code, 404,
        )
        prayer = PrayerPost.objects.create(author=self.john, content='gone', deleted_at=timezone.now())
        self.assertEqual(
            self.john_client.patch(f'{self.url}{prayer.id}/', {'content': 'x'}, format='json').status_code, 410,
        )

    def test_soft_delete(self):
        prayer = PrayerPost.objects.create(author=self.john, content='bye')

        self.assertEqual(self.mark_client.delete(f'{self.url}{prayer.id}/').status_code, 403)
        self.assertEqual(self.john_client.delete(f'{self.url}{prayer.id}/').status_code, 200)

        prayer.refresh_from_db()
        self.assertIsNotNone(prayer.deleted_at)
        self.assertEqual(self.john_client.delete(f'{self.url}{prayer.id}/').status_code, 410)

    def test_pray_once(self):
        prayer = PrayerPost.objects.create(author=self.john, content='help')

        response = self.mark_client.post(f'{self.url}{prayer.id}/pray/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['prayer_count'], 1)

        response = self.mark_client.post(f'{self.url}{prayer.id}/pray/')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['message'], 'You have already prayed for this prayer')

        prayer.refresh_from_db()
        self.assertEqual(prayer.prayer_count, 1)
        self.assertEqual(PrayerResponse.objects.filter(prayer=prayer).count(), 1)

    def test_pray_on_deleted_is_404(self):
        prayer = PrayerPost.objects.create(author=self.john, content='gone', deleted_at=timezone.now())
        self.assertEqual(self.mark_client.post(f'{self.url}{prayer.id}/pray/').status_code, 404)


class RecentPrayersTests(TestCase):
    def test_limit_and_flag(self):
        john = make_person('john@example.com', 'John')
        mark = make_person('mark@example.com', 'Mark')
        now = timezone.now()
        posts = [
            PrayerPost.objects.create(author=john, content=f'p{i}', created_at=now - timedelta(minutes=i))
            for i in range(4)
        ]
        PrayerResponse.objects.create(prayer=posts[0], person=mark)

        data = recent_prayers(mark, limit=3)

        self.assertEqual([p['content'] for p in data], ['p0', 'p1', 'p2'])
        self.assertTrue(data[0]['user_prayed'])
        self.assertEqual(data[0]['author']['display_name'], 'John')
