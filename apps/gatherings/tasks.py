from celery import shared_task
import logging

from .models import Group
from .services.membership import reconcile_group_size

logger = logging.getLogger(__name__)


# Reconcile Group Sizes ----------------------------------------------------------------------------------
@shared_task
def reconcile_group_sizes():
    """Repair current_size counters that drifted from the number of ACTIVE memberships."""
    repaired = 0
    for group_id in Group.objects.values_list('id', flat=True).iterator():
        result = reconcile_group_size(group_id)
        if result is None:
            continue
        old, new = result
        repaired += 1
        logger.warning(f"[ReconcileGroupSizes] Group {group_id}: current_size {old} -> {new}")

    if repaired:
        logger.info(f"[ReconcileGroupSizes] Repaired {repaired} group(s)")
    return f"{repaired} groups repaired."
