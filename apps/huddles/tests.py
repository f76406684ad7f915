from datetime import timedelta
from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.profiles.models import Person
from apps.gatherings.models import GroupMembership
from apps.gatherings.constants import HUDDLE, SPIRITUAL, HOBBY
from apps.gatherings.services import membership as membership_service
from .models import HuddleMessage
from .constants import HUDDLE_MESSAGE_EVENT
from .services.broadcast import broadcast_huddle_event
from .services.unread import compute_unread_count, unread_count

CustomUser = get_user_model()


def make_person(email, name, onboarded=True):
    user = CustomUser.objects.create_user(email=email, password='password123')
    return Person.objects.create(user=user, display_name=name, onboarding_level=1 if onboarded else 0)


def make_huddle(creator, name='Tuesday Huddle'):
    return membership_service.create_group(creator, {
        'name': name, 'type': SPIRITUAL, 'category': HUDDLE, 'min_size': 3, 'max_size': 6,
    })


@mock.patch('apps.huddles.views.broadcast_huddle_event')
class HuddleMessageTests(TestCase):
    def setUp(self):
        cache.clear()
        self.leader = make_person('leader@example.com', 'Leader')
        self.peter = make_person('peter@example.com', 'Peter')
        self.outsider = make_person('outsider@example.com', 'Outsider')

        self.huddle = make_huddle(self.leader)
        membership_service.join_group(self.peter, self.huddle.id)

        self.leader_client = self._as(self.leader)
        self.peter_client = self._as(self.peter)

    def _as(self, person):
        client = APIClient()
        client.force_authenticate(user=person.user)
        return client

    def _url(self, suffix=''):
        return f'/api/huddles/{self.huddle.id}/{suffix}'

    def test_post_message_trims_and_broadcasts(self, broadcast):
        response = self.peter_client.post(self._url('messages/'), {'content': '  Praying for you  '}, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['message']['content'], 'Praying for you')
        broadcast.assert_called_once()
        huddle_id, event_type, payload = broadcast.call_args[0]
        self.assertEqual(huddle_id, self.huddle.id)
        self.assertEqual(event_type, HUDDLE_MESSAGE_EVENT)
        self.assertEqual(payload['sender']['display_name'], 'Peter')

    def test_post_rejects_blank_and_long_content(self, broadcast):
        response = self.peter_client.post(self._url('messages/'), {'content': '   '}, format='json')
        self.assertEqual(response.status_code, 400)

        response = self.peter_client.post(self._url('messages/'), {'content': 'x' * 1001}, format='json')
        self.assertEqual(response.status_code, 400)
        broadcast.assert_not_called()

    def test_non_member_forbidden(self, broadcast):
        client = self._as(self.outsider)
        self.assertEqual(client.get(self._url('messages/')).status_code, 403)
        self.assertEqual(client.post(self._url('messages/'), {'content': 'hi'}, format='json').status_code, 403)

    def test_circle_is_not_a_huddle(self, broadcast):
        circle = membership_service.create_group(self.leader, {'name': 'Circle', 'type': HOBBY})
        response = self.leader_client.get(f'/api/huddles/{circle.id}/messages/')
        self.assertEqual(response.status_code, 400)

    def test_requires_onboarding(self, broadcast):
        newbie = make_person('newbie@example.com', 'Newbie', onboarded=False)
        response = self._as(newbie).get('/api/huddles/')
        self.assertEqual(response.status_code, 422)

    def test_history_returns_latest_100_oldest_first(self, broadcast):
        start = timezone.now() - timedelta(hours=3)
        HuddleMessage.objects.bulk_create([
            HuddleMessage(huddle=self.huddle, sender=self.leader, content=f'm{i}', created_at=start + timedelta(seconds=i))
            for i in range(105)
        ])
        deleted = HuddleMessage.objects.get(content='m104')
        deleted.soft_delete()

        response = self.peter_client.get(self._url('messages/'))

        self.assertEqual(response.status_code, 200)
        contents = [m['content'] for m in response.json()['messages']]
        self.assertEqual(len(contents), 100)
        self.assertEqual(contents[0], 'm4')
        self.assertEqual(contents[-1], 'm103')

    def test_message_detail_and_soft_delete(self, broadcast):
        message = HuddleMessage.objects.create(huddle=self.huddle, sender=self.peter, content='Hello')

        response = self.leader_client.get(self._url(f'messages/{message.id}/'))
        self.assertEqual(response.status_code, 200)

        response = self.leader_client.delete(self._url(f'messages/{message.id}/'))
        self.assertEqual(response.status_code, 403)

        response = self.peter_client.delete(self._url(f'messages/{message.id}/'))
        self.assertEqual(response.status_code, 200)
        message.refresh_from_db()
        self.assertIsNotNone(message.deleted_at)

        response = self.leader_client.get(self._url(f'messages/{message.id}/'))
        self.assertEqual(response.status_code, 404)

    def test_message_from_other_huddle_is_404(self, broadcast):
        other = make_huddle(self.leader, name='Other Huddle')
        message = HuddleMessage.objects.create(huddle=other, sender=self.leader, content='Elsewhere')

        response = self.peter_client.get(self._url(f'messages/{message.id}/'))
        self.assertEqual(response.status_code, 404)

    def test_unread_counts_and_read_marker(self, broadcast):
        self.leader_client.post(self._url('messages/'), {'content': 'one'}, format='json')
        self.leader_client.post(self._url('messages/'), {'content': 'two'}, format='json')
        self.peter_client.post(self._url('messages/'), {'content': 'mine'}, format='json')

        response = self.peter_client.get('/api/huddles/')
        self.assertEqual(response.status_code, 200)
        huddles = response.json()['huddles']
        self.assertEqual(len(huddles), 1)
        self.assertEqual(huddles[0]['group']['id'], self.huddle.id)
        self.assertEqual(huddles[0]['unread_count'], 2)

        response = self.peter_client.post(self._url('read/'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True})

        response = self.peter_client.get('/api/huddles/')
        self.assertEqual(response.json()['huddles'][0]['unread_count'], 0)

    def test_unread_huddles_sorted_first(self, broadcast):
        quiet = make_huddle(self.leader, name='Quiet Huddle')
        membership_service.join_group(self.peter, quiet.id)
        self.leader_client.post(self._url('messages/'), {'content': 'news'}, format='json')

        huddles = self.peter_client.get('/api/huddles/').json()['huddles']

        self.assertEqual([h['group']['id'] for h in huddles], [self.huddle.id, quiet.id])
        self.assertEqual(huddles[1]['unread_count'], 0)


class UnreadCountTests(TestCase):
    def test_counts_since_joined_when_never_read(self):
        leader = make_person('leader@example.com', 'Leader')
        peter = make_person('peter@example.com', 'Peter')
        huddle = make_huddle(leader)

        HuddleMessage.objects.create(
            huddle=huddle, sender=leader, content='before', created_at=timezone.now() - timedelta(days=1),
        )
        membership_service.join_group(peter, huddle.id)
        HuddleMessage.objects.create(huddle=huddle, sender=leader, content='after')

        membership = GroupMembership.objects.get(group=huddle, person=peter)
        self.assertEqual(compute_unread_count(membership), 1)

    def test_rejoin_discards_cached_count(self):
        cache.clear()
        leader = make_person('leader@example.com', 'Leader')
        peter = make_person('peter@example.com', 'Peter')
        huddle = make_huddle(leader)
        membership_service.join_group(peter, huddle.id)
        HuddleMessage.objects.create(
            huddle=huddle, sender=leader, content='old news', created_at=timezone.now() - timedelta(minutes=1),
        )
        GroupMembership.objects.filter(group=huddle, person=peter).update(
            joined_at=timezone.now() - timedelta(hours=1),
        )

        membership = GroupMembership.objects.get(group=huddle, person=peter)
        self.assertEqual(unread_count(membership), 1)

        membership_service.leave_group(peter, huddle.id)
        membership_service.join_group(peter, huddle.id)

        membership = GroupMembership.objects.get(group=huddle, person=peter)
        self.assertEqual(unread_count(membership), 0)


class BroadcastTests(TestCase):
    def test_broadcast_failure_is_swallowed(self):
        layer = mock.Mock()
        layer.group_send.side_effect = RuntimeError('redis down')
        with mock.patch('apps.huddles.services.broadcast.get_channel_layer', return_value=layer):
            broadcast_huddle_event(1, HUDDLE_MESSAGE_EVENT, {'id': 1})

    def test_broadcast_sends_to_huddle_group(self):
        sent = []

        async def group_send(group, event):
            sent.append((group, event))

        layer = mock.Mock()
        layer.group_send = group_send
        with mock.patch('apps.huddles.services.broadcast.get_channel_layer', return_value=layer):
            broadcast_huddle_event(7, HUDDLE_MESSAGE_EVENT, {'id': 3})

        self.assertEqual(sent, [('huddle_7', {'type': 'huddle.event', 'event': HUDDLE_MESSAGE_EVENT, 'data': {'id': 3}})])
