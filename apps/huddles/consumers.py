# apps/huddles/consumers.py

import logging
from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from apps.gatherings.models import GroupMembership
from apps.gatherings.constants import HUDDLE, MEMBER_ACTIVE
from .constants import huddle_group_name

logger = logging.getLogger(__name__)


class HuddleConsumer(AsyncJsonWebsocketConsumer):
    """Realtime stream of one huddle; only ACTIVE members may connect."""

    async def connect(self):
        user = self.scope.get("user")
        if not user or user.is_anonymous:
            logger.warning("[WS-Huddle] Anonymous user attempted to connect")
            await self.close()
            return

        self.user = user
        self.huddle_id = int(self.scope["url_route"]["kwargs"]["huddle_id"])

        if not await self.is_active_member(user.id, self.huddle_id):
            logger.warning(f"[WS-Huddle] User {user.id} is not a member of huddle {self.huddle_id}")
            await self.close()
            return

        self.group_name = huddle_group_name(self.huddle_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send_json({"type": "connected", "huddle_id": self.huddle_id})

        logger.info(f"[WS-Huddle] User {user.id} connected to huddle {self.huddle_id}")

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive_json(self, content, **kwargs):
        # Messages are posted over HTTP; the socket only answers keepalives
        if content.get("type") == "ping":
            await self.send_json({"type": "pong"})

    # Server → Client ----------------------------------------------------------
    async def huddle_event(self, event):
        """
        Handler for group_send(type="huddle.event")
        """
        await self.send_json({
            "type": event.get("event"),
            "data": event.get("data", {}),
        })

    @database_sync_to_async
    def is_active_member(self, user_id, huddle_id):
        return GroupMembership.objects.filter(
            person__user_id=user_id,
            group_id=huddle_id,
            group__category=HUDDLE,
            status=MEMBER_ACTIVE,
        ).exists()
