# apps/gatherings/services/membership.py
"""
Group membership state machine.

Every transition that moves a membership into or out of ACTIVE updates
Group.current_size inside the same transaction, with the group row locked
and the counter changed through an F() expression.

    (none) / PENDING / INACTIVE --join--> ACTIVE --leave--> INACTIVE
    REMOVED is terminal for join.
"""
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from apps.core.api_exceptions import GroupFull, GroupNotJoinable, AlreadyMember, NotAMember
from apps.core.geo.cache import invalidate_unread
from apps.gatherings.models import Group, GroupMembership
from apps.gatherings.constants import (
    HUDDLE, CIRCLE, SPIRITUAL, STATUS_ACTIVE,
    ROLE_MEMBER, ROLE_CREATOR,
    MEMBER_ACTIVE, MEMBER_INACTIVE, MEMBER_REMOVED,
)

logger = logging.getLogger(__name__)


def _lock_group(group_id) -> Group:
    group = Group.objects.select_for_update().filter(pk=group_id).first()
    if group is None:
        raise NotFound("Group not found")
    return group


# Create ----------------------------------------------------------------------------------------------
@transaction.atomic
def create_group(creator, data: dict) -> Group:
    data = dict(data)
    if data.get("category", CIRCLE) == HUDDLE:
        data["type"] = SPIRITUAL

    group = Group.objects.create(
        created_by=creator,
        current_size=1,
        status=STATUS_ACTIVE,
        **data,
    )
    group.leaders.add(creator)

    now = timezone.now()
    GroupMembership.objects.create(
        person=creator,
        group=group,
        role=ROLE_CREATOR,
        status=MEMBER_ACTIVE,
        join_requested_at=now,
        joined_at=now,
    )

    logger.info(f"Group {group.id} ({group.category}) created by person {creator.id}")
    return group


# Join ------------------------------------------------------------------------------------------------
def join_group(person, group_id) -> GroupMembership:
    with transaction.atomic():
        group = _lock_group(group_id)
        if group.status != STATUS_ACTIVE:
            raise GroupNotJoinable()

        membership = (
            GroupMembership.objects
            .select_for_update()
            .filter(person=person, group=group)
            .first()
        )
        if membership is not None:
            if membership.status == MEMBER_ACTIVE:
                raise AlreadyMember()
            if membership.status == MEMBER_REMOVED:
                raise PermissionDenied("You have been removed from this group")

        if group.is_full:
            raise GroupFull()

        now = timezone.now()
        if membership is None:
            membership = GroupMembership.objects.create(
                person=person,
                group=group,
                role=ROLE_MEMBER,
                status=MEMBER_ACTIVE,
                join_requested_at=now,
                joined_at=now,
            )
        else:
            # PENDING or INACTIVE rejoin
            membership.status = MEMBER_ACTIVE
            membership.joined_at = now
            membership.last_read_at = None
            membership.save(update_fields=["status", "joined_at", "last_read_at"])

        Group.objects.filter(pk=group.pk).update(current_size=F("current_size") + 1, updated_at=now)

    # A rejoin restarts the unread window
    invalidate_unread(group.id, [person.pk])
    logger.info(f"Person {person.id} joined group {group.id}")
    return membership


# Leave -----------------------------------------------------------------------------------------------
def leave_group(person, group_id) -> GroupMembership:
    with transaction.atomic():
        group = _lock_group(group_id)

        membership = (
            GroupMembership.objects
            .select_for_update()
            .filter(person=person, group=group, status=MEMBER_ACTIVE)
            .first()
        )
        if membership is None:
            raise NotAMember()

        if membership.role == ROLE_CREATOR or group.created_by_id == person.pk:
            raise ValidationError("The creator cannot leave the group")

        membership.status = MEMBER_INACTIVE
        membership.save(update_fields=["status"])

        Group.objects.filter(pk=group.pk, current_size__gt=0).update(
            current_size=F("current_size") - 1,
            updated_at=timezone.now(),
        )

    logger.info(f"Person {person.id} left group {group.id}")
    return membership


# Update / delete -------------------------------------------------------------------------------------
def update_group(person, group_id, data: dict) -> Group:
    with transaction.atomic():
        group = _lock_group(group_id)
        if group.created_by_id != person.pk:
            raise PermissionDenied("Only the creator can update this group")

        max_size = data.get("max_size")
        if max_size is not None:
            if max_size < group.current_size:
                raise ValidationError(
                    f"Cannot reduce capacity below current attendance ({group.current_size})"
                )
            if group.min_size is not None and max_size < group.min_size:
                raise ValidationError("Maximum size must be greater than or equal to minimum size")

        for field, value in data.items():
            setattr(group, field, value)
        group.save()

    return group


def delete_group(person, group_id) -> None:
    with transaction.atomic():
        group = _lock_group(group_id)
        if group.created_by_id != person.pk:
            raise PermissionDenied("Only the creator can delete this group")
        group.delete()

    logger.info(f"Group {group_id} deleted by person {person.id}")


# Maintenance -----------------------------------------------------------------------------------------
def reconcile_group_size(group_id):
    """Recompute current_size from ACTIVE memberships. Returns (old, new) when it had drifted."""
    with transaction.atomic():
        group = Group.objects.select_for_update().filter(pk=group_id).first()
        if group is None:
            return None
        actual = group.memberships.filter(status=MEMBER_ACTIVE).count()
        if actual == group.current_size:
            return None
        old = group.current_size
        Group.objects.filter(pk=group.pk).update(current_size=actual)
    return old, actual
