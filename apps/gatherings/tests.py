from django.core.cache import cache
from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.core.api_exceptions import GroupFull
from apps.profiles.models import Person
from .models import Group, GroupMembership
from .constants import (
    CIRCLE, HUDDLE, HOBBY, SOCIAL, SPIRITUAL,
    STATUS_ACTIVE, STATUS_PAUSED, STATUS_ARCHIVED,
    ROLE_CREATOR, ROLE_MEMBER,
    MEMBER_ACTIVE, MEMBER_INACTIVE, MEMBER_REMOVED,
)
from .services import membership as membership_service
from .tasks import reconcile_group_sizes

CustomUser = get_user_model()


def make_person(email, name, lat=None, lng=None, onboarded=True):
    user = CustomUser.objects.create_user(email=email, password='password123')
    return Person.objects.create(
        user=user,
        display_name=name,
        latitude=lat,
        longitude=lng,
        onboarding_level=1 if onboarded else 0,
    )


def make_group(creator, name='Saturday Hike', **kwargs):
    data = {'name': name, 'type': HOBBY}
    data.update(kwargs)
    return membership_service.create_group(creator, data)


class MembershipServiceTests(TestCase):
    def setUp(self):
        self.creator = make_person('creator@example.com', 'Creator', 40.0, -105.0)
        self.peter = make_person('peter@example.com', 'Peter')
        self.james = make_person('james@example.com', 'James')

    def test_create_group_adds_creator_membership(self):
        group = make_group(self.creator, max_size=5)

        self.assertEqual(group.current_size, 1)
        self.assertEqual(group.status, STATUS_ACTIVE)
        self.assertIn(self.creator, group.leaders.all())
        membership = GroupMembership.objects.get(group=group, person=self.creator)
        self.assertEqual(membership.role, ROLE_CREATOR)
        self.assertEqual(membership.status, MEMBER_ACTIVE)

    def test_huddle_type_forced_to_spiritual(self):
        group = make_group(self.creator, type=SOCIAL, category=HUDDLE, min_size=3, max_size=6)
        self.assertEqual(group.type, SPIRITUAL)

    def test_join_increments_counter(self):
        group = make_group(self.creator, max_size=5)

        membership = membership_service.join_group(self.peter, group.id)

        group.refresh_from_db()
        self.assertEqual(group.current_size, 2)
        self.assertEqual(membership.status, MEMBER_ACTIVE)
        self.assertEqual(membership.role, ROLE_MEMBER)

    def test_join_full_group_rejected(self):
        group = make_group(self.creator, max_size=2)
        membership_service.join_group(self.peter, group.id)

        with self.assertRaises(GroupFull):
            membership_service.join_group(self.james, group.id)

        group.refresh_from_db()
        self.assertEqual(group.current_size, 2)
        self.assertFalse(GroupMembership.objects.filter(group=group, person=self.james).exists())

    def test_leave_then_rejoin_keeps_counter_consistent(self):
        group = make_group(self.creator, max_size=3)
        membership_service.join_group(self.peter, group.id)
        membership_service.leave_group(self.peter, group.id)

        group.refresh_from_db()
        self.assertEqual(group.current_size, 1)
        self.assertEqual(GroupMembership.objects.get(group=group, person=self.peter).status, MEMBER_INACTIVE)

        membership_service.join_group(self.peter, group.id)
        group.refresh_from_db()
        self.assertEqual(group.current_size, 2)
        self.assertEqual(GroupMembership.objects.filter(group=group, person=self.peter).count(), 1)

    def test_rejoin_respects_capacity(self):
        group = make_group(self.creator, max_size=2)
        membership_service.join_group(self.peter, group.id)
        membership_service.leave_group(self.peter, group.id)
        membership_service.join_group(self.james, group.id)

        with self.assertRaises(GroupFull):
            membership_service.join_group(self.peter, group.id)

        group.refresh_from_db()
        self.assertEqual(group.current_size, 2)

    def test_leave_counter_never_negative(self):
        group = make_group(self.creator)
        membership_service.join_group(self.peter, group.id)
        Group.objects.filter(pk=group.pk).update(current_size=0)

        membership_service.leave_group(self.peter, group.id)

        group.refresh_from_db()
        self.assertEqual(group.current_size, 0)


class GroupApiTests(TestCase):
    def setUp(self):
        cache.clear()
        self.creator = make_person('creator@example.com', 'Creator', 40.0, -105.0)
        self.peter = make_person('peter@example.com', 'Peter', 40.01, -105.0)
        self.newbie = make_person('newbie@example.com', 'Newbie', onboarded=False)

        self.client = APIClient()
        self.client.force_authenticate(user=self.creator.user)

    def _as(self, person):
        client = APIClient()
        client.force_authenticate(user=person.user)
        return client

    def test_create_group(self):
        response = self.client.post('/api/gatherings/groups/', {
            'name': 'Men at the Grill',
            'type': HOBBY,
            'latitude': 40.0,
            'longitude': -105.0,
            'min_size': 2,
            'max_size': 8,
            'tags': ['bbq'],
        }, format='json')

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['group']['name'], 'Men at the Grill')
        self.assertEqual(body['group']['category'], CIRCLE)
        self.assertFalse(body['group']['is_virtual'])
        self.assertEqual(Group.objects.get(pk=body['group']['id']).current_size, 1)

    def test_create_requires_onboarding(self):
        response = self._as(self.newbie).post('/api/gatherings/groups/', {
            'name': 'Early Bird', 'type': HOBBY,
        }, format='json')

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()['redirect'], '/onboarding')

    def test_create_huddle_size_limits(self):
        response = self.client.post('/api/gatherings/groups/', {
            'name': 'Too Big Huddle', 'type': SPIRITUAL, 'category': HUDDLE,
            'min_size': 3, 'max_size': 10,
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_create_rejects_min_above_max(self):
        response = self.client.post('/api/gatherings/groups/', {
            'name': 'Backwards', 'type': HOBBY, 'min_size': 10, 'max_size': 5,
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_create_rejects_half_coordinates(self):
        response = self.client.post('/api/gatherings/groups/', {
            'name': 'Nowhere', 'type': HOBBY, 'latitude': 40.0,
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_join_and_leave_endpoints(self):
        group = make_group(self.creator, max_size=4)
        client = self._as(self.peter)

        response = client.post(f'/api/gatherings/groups/{group.id}/join/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['membership']['status'], MEMBER_ACTIVE)

        response = client.post(f'/api/gatherings/groups/{group.id}/join/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Already a member')

        response = client.post(f'/api/gatherings/groups/{group.id}/leave/')
        self.assertEqual(response.status_code, 200)

        response = client.post(f'/api/gatherings/groups/{group.id}/leave/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Not a member')

    def test_join_unknown_group_404(self):
        response = self._as(self.peter).post('/api/gatherings/groups/999999/join/')
        self.assertEqual(response.status_code, 404)

    def test_join_paused_group_rejected(self):
        group = make_group(self.creator)
        Group.objects.filter(pk=group.pk).update(status=STATUS_PAUSED)

        response = self._as(self.peter).post(f'/api/gatherings/groups/{group.id}/join/')
        self.assertEqual(response.status_code, 400)

    def test_removed_member_cannot_rejoin(self):
        group = make_group(self.creator)
        GroupMembership.objects.create(person=self.peter, group=group, status=MEMBER_REMOVED)

        response = self._as(self.peter).post(f'/api/gatherings/groups/{group.id}/join/')
        self.assertEqual(response.status_code, 403)

    def test_creator_cannot_leave(self):
        group = make_group(self.creator)
        response = self.client.post(f'/api/gatherings/groups/{group.id}/leave/')
        self.assertEqual(response.status_code, 400)

    def test_retrieve_includes_members_and_distance(self):
        group = make_group(self.creator, latitude=40.0, longitude=-105.0)
        membership_service.join_group(self.peter, group.id)

        response = self._as(self.peter).get(f'/api/gatherings/groups/{group.id}/')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['creator_name'], 'Creator')
        self.assertEqual([m['display_name'] for m in body['members']], ['Creator', 'Peter'])
        self.assertAlmostEqual(body['distance_km'], 1.11, places=1)

    def test_only_creator_can_update(self):
        group = make_group(self.creator, max_size=10)
        response = self._as(self.peter).patch(f'/api/gatherings/groups/{group.id}/', {'name': 'Hijacked'}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_cannot_reduce_capacity_below_attendance(self):
        group = make_group(self.creator, max_size=10)
        membership_service.join_group(self.peter, group.id)

        response = self.client.patch(f'/api/gatherings/groups/{group.id}/', {'max_size': 2}, format='json')
        self.assertEqual(response.status_code, 200)

        response = self.client.patch(f'/api/gatherings/groups/{group.id}/', {'max_size': 1}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_cannot_reduce_capacity_message(self):
        group = make_group(self.creator, max_size=10)
        membership_service.join_group(self.peter, group.id)
        membership_service.join_group(self.newbie, group.id)

        response = self.client.patch(f'/api/gatherings/groups/{group.id}/', {'max_size': 2}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Cannot reduce capacity below current attendance (3)')

    def test_delete_cascades(self):
        group = make_group(self.creator)
        membership_service.join_group(self.peter, group.id)

        response = self._as(self.peter).delete(f'/api/gatherings/groups/{group.id}/')
        self.assertEqual(response.status_code, 403)

        response = self.client.delete(f'/api/gatherings/groups/{group.id}/')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Group.objects.filter(pk=group.id).exists())
        self.assertFalse(GroupMembership.objects.filter(group_id=group.id).exists())

    def test_nearby_orders_physical_before_virtual(self):
        far = make_group(self.creator, name='Far', latitude=40.2, longitude=-105.0, tags=['hiking'])
        near = make_group(self.creator, name='Near', latitude=40.01, longitude=-105.0, tags=['bbq'])
        online = make_group(self.creator, name='Online', is_virtual=True)
        make_group(self.creator, name='Out of range', latitude=45.0, longitude=-105.0)
        make_group(self.creator, name='Huddle', category=HUDDLE, min_size=3, max_size=6,
                   latitude=40.0, longitude=-105.0)
        private = make_group(self.creator, name='Private', latitude=40.0, longitude=-105.0)
        Group.objects.filter(pk=private.pk).update(is_public=False)

        response = self.client.get('/api/gatherings/groups/nearby/', {'lat': 40.0, 'lng': -105.0, 'radius': 50})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([g['id'] for g in body['groups']], [near.id, far.id, online.id])
        self.assertEqual(body['count'], 3)
        self.assertIsNone(body['groups'][2]['distance_km'])

    def test_nearby_same_distance_ordered_by_id(self):
        first = make_group(self.creator, name='First', latitude=40.05, longitude=-105.0)
        second = make_group(self.creator, name='Second', latitude=40.05, longitude=-105.0)
        third = make_group(self.creator, name='Third', latitude=40.05, longitude=-105.0)
        closer = make_group(self.creator, name='Closer', latitude=40.01, longitude=-105.0)

        response = self.client.get('/api/gatherings/groups/nearby/', {'lat': 40.0, 'lng': -105.0, 'radius': 50})

        self.assertEqual(
            [g['id'] for g in response.json()['groups']],
            [closer.id] + sorted([first.id, second.id, third.id]),
        )

    def test_nearby_tag_filter(self):
        make_group(self.creator, name='Far', latitude=40.2, longitude=-105.0, tags=['hiking'])
        near = make_group(self.creator, name='Near', latitude=40.01, longitude=-105.0, tags=['bbq', 'grill'])

        response = self.client.get('/api/gatherings/groups/nearby/', {
            'lat': 40.0, 'lng': -105.0, 'tags': 'grill,fishing',
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual([g['id'] for g in response.json()['groups']], [near.id])

    def test_nearby_size_filter(self):
        small = make_group(self.creator, name='Small', latitude=40.01, longitude=-105.0)
        big = make_group(self.creator, name='Big', latitude=40.02, longitude=-105.0)
        membership_service.join_group(self.peter, big.id)

        response = self.client.get('/api/gatherings/groups/nearby/', {'lat': 40.0, 'lng': -105.0, 'minSize': 2})

        ids = [g['id'] for g in response.json()['groups']]
        self.assertIn(big.id, ids)
        self.assertNotIn(small.id, ids)

    def test_nearby_requires_valid_coordinates(self):
        response = self.client.get('/api/gatherings/groups/nearby/', {'lat': 100, 'lng': 0})
        self.assertEqual(response.status_code, 400)

    def test_my_circles(self):
        active = make_group(self.creator, name='Active')
        paused = make_group(self.creator, name='Paused')
        archived = make_group(self.creator, name='Archived')
        Group.objects.filter(pk=paused.pk).update(status=STATUS_PAUSED)
        Group.objects.filter(pk=archived.pk).update(status=STATUS_ARCHIVED)
        membership_service.join_group(self.peter, active.id)

        response = self.client.get('/api/gatherings/groups/my-circles/')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([g['id'] for g in body['active']], [active.id])
        self.assertEqual({g['id'] for g in body['history']}, {paused.id, archived.id})
        self.assertEqual(body['stats']['total_gatherings'], 3)
        # creator + peter
        self.assertEqual(body['stats']['total_reached'], 2)
        # sizes 2, 1, 1 -> 1.33
        self.assertEqual(body['stats']['avg_attendance'], 1)


class ReconcileGroupSizesTaskTests(TestCase):
    def test_repairs_drifted_counter(self):
        creator = make_person('creator@example.com', 'Creator')
        peter = make_person('peter@example.com', 'Peter')
        group = make_group(creator)
        membership_service.join_group(peter, group.id)
        Group.objects.filter(pk=group.pk).update(current_size=7)

        result = reconcile_group_sizes()

        group.refresh_from_db()
        self.assertEqual(group.current_size, 2)
        self.assertEqual(result, '1 groups repaired.')
