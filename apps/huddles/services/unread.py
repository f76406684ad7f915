# apps/huddles/services/unread.py
from datetime import datetime, timezone as dt_timezone

from django.db.models import Max, Q

from apps.core.geo.cache import get_or_compute, unread_count_key, invalidate_unread, UNREAD_COUNT_TTL
from apps.gatherings.models import GroupMembership
from apps.gatherings.constants import HUDDLE, MEMBER_ACTIVE
from apps.gatherings.serializers import GroupSerializer
from apps.huddles.models import HuddleMessage

EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)


def compute_unread_count(membership) -> int:
    since = membership.last_read_at or membership.joined_at or EPOCH
    return (
        HuddleMessage.objects
        .filter(huddle_id=membership.group_id, deleted_at__isnull=True, created_at__gt=since)
        .exclude(sender_id=membership.person_id)
        .count()
    )


def unread_count(membership) -> int:
    return get_or_compute(
        unread_count_key(membership.group_id, membership.person_id),
        UNREAD_COUNT_TTL,
        lambda: compute_unread_count(membership),
    )


def invalidate_for_members(huddle_id):
    person_ids = list(
        GroupMembership.objects
        .filter(group_id=huddle_id, status=MEMBER_ACTIVE)
        .values_list('person_id', flat=True)
    )
    invalidate_unread(huddle_id, person_ids)


def huddles_with_unread(person):
    """Active huddles of the person, unread first, then by most recent activity."""
    memberships = (
        GroupMembership.objects
        .filter(person=person, status=MEMBER_ACTIVE, group__category=HUDDLE)
        .select_related('group', 'group__created_by')
        .annotate(last_message_at=Max(
            'group__messages__created_at',
            filter=Q(group__messages__deleted_at__isnull=True),
        ))
    )

    huddles = []
    for membership in memberships:
        activity = membership.last_message_at or membership.group.updated_at
        if membership.group.updated_at and activity < membership.group.updated_at:
            activity = membership.group.updated_at
        huddles.append({
            "group": GroupSerializer(membership.group).data,
            "unread_count": unread_count(membership),
            "membership_id": membership.id,
            "last_activity_at": activity,
        })

    # Two stable passes: recent activity first, then unread before read
    huddles.sort(key=lambda h: h["last_activity_at"], reverse=True)
    huddles.sort(key=lambda h: h["unread_count"] == 0)
    return huddles
