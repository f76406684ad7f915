from django.core.cache import cache
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.profiles.models import Person

CustomUser = get_user_model()


class RegisterTests(TestCase):
    url = '/api/accounts/auth/register/'

    def setUp(self):
        cache.clear()
        self.client = APIClient()

    def test_register_creates_user_and_person(self):
        response = self.client.post(self.url, {
            'email': 'Peter@Example.com',
            'password': 'rockSolid1',
            'display_name': 'Peter',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['user']['email'], 'peter@example.com')
        self.assertEqual(body['user']['display_name'], 'Peter')
        self.assertEqual(body['user']['onboarding_level'], 0)

        user = CustomUser.objects.get(email='peter@example.com')
        self.assertTrue(user.check_password('rockSolid1'))
        self.assertEqual(Person.objects.get(user=user).onboarding_level, 0)

    def test_duplicate_email_returns_409(self):
        CustomUser.objects.create_user(email='andrew@example.com', password='fisherman1')

        response = self.client.post(self.url, {
            'email': 'andrew@example.com',
            'password': 'fisherman2',
            'display_name': 'Andrew',
        }, format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['message'], 'Email already registered')
        self.assertEqual(CustomUser.objects.filter(email='andrew@example.com').count(), 1)

    def test_short_password_rejected(self):
        response = self.client.post(self.url, {
            'email': 'james@example.com',
            'password': 'short',
            'display_name': 'James',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertFalse(CustomUser.objects.filter(email='james@example.com').exists())

    def test_display_name_required(self):
        response = self.client.post(self.url, {
            'email': 'john@example.com',
            'password': 'beloved123',
            'display_name': '',
        }, format='json')

        self.assertEqual(response.status_code, 400)

    def test_token_obtain_with_email(self):
        CustomUser.objects.create_user(email='thomas@example.com', password='doubting1')

        response = self.client.post('/api/token/', {
            'email': 'thomas@example.com',
            'password': 'doubting1',
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.json())
