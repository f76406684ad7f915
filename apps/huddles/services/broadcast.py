# apps/huddles/services/broadcast.py
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from apps.huddles.constants import huddle_group_name

logger = logging.getLogger(__name__)


def broadcast_huddle_event(huddle_id, event_type: str, payload: dict):
    """
    Send a WS event to everyone connected to the huddle.
    Failures are logged and never break the HTTP request that triggered them.
    """
    try:
        channel_layer = get_channel_layer()
        if not channel_layer:
            logger.warning("Channel layer not configured; skip WS send.")
            return
        async_to_sync(channel_layer.group_send)(
            huddle_group_name(huddle_id),
            {"type": "huddle.event", "event": event_type, "data": payload},
        )
    except Exception:
        logger.exception(f"WS broadcast to huddle {huddle_id} failed (ignored)")
