# apps/gatherings/services/circles.py
from apps.core.geo.distance import round_half_up
from apps.gatherings.models import Group, GroupMembership
from apps.gatherings.constants import STATUS_ACTIVE, MEMBER_ACTIVE


def my_circles(person):
    """Groups created by the person, split into active and history, with reach statistics."""
    groups = list(
        Group.objects
        .filter(created_by=person)
        .select_related('created_by')
        .order_by('-created_at', '-id')
    )

    active = [g for g in groups if g.status == STATUS_ACTIVE]
    history = [g for g in groups if g.status != STATUS_ACTIVE]

    total_reached = (
        GroupMembership.objects
        .filter(group__in=[g.pk for g in groups], status=MEMBER_ACTIVE)
        .values('person_id')
        .distinct()
        .count()
    ) if groups else 0

    avg_attendance = 0
    if groups:
        avg_attendance = round_half_up(sum(g.current_size for g in groups) / len(groups))

    stats = {
        "total_gatherings": len(groups),
        "total_reached": total_reached,
        "avg_attendance": avg_attendance,
    }
    return active, history, stats
