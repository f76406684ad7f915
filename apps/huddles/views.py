import logging

from django.shortcuts import get_object_or_404
from django.utils import timezone

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError, NotFound
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from apps.core.permissions import IsOnboarded, get_request_person
from apps.core.geo.cache import invalidate_unread
from apps.gatherings.models import Group, GroupMembership
from apps.gatherings.constants import MEMBER_ACTIVE
from .models import HuddleMessage
from .constants import MESSAGE_HISTORY_LIMIT, HUDDLE_MESSAGE_EVENT, HUDDLE_MESSAGE_DELETED_EVENT
from .serializers import HuddleMessageSerializer, MessageCreateSerializer
from .services.broadcast import broadcast_huddle_event
from .services.unread import huddles_with_unread, invalidate_for_members

logger = logging.getLogger(__name__)


# HUDDLE ViewSet --------------------------------------------------------------------------------------
class HuddleViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, IsOnboarded]
    lookup_value_regex = r'\d+'

    def _membership(self, request, pk):
        """Active membership of the viewer in huddle pk: 404 unknown group, 403 non-member, 400 non-huddle."""
        person = get_request_person(request)
        group = get_object_or_404(Group, pk=pk)

        membership = (
            GroupMembership.objects
            .filter(group=group, person=person, status=MEMBER_ACTIVE)
            .select_related('group')
            .first()
        )
        if membership is None:
            raise PermissionDenied("You are not a member of this huddle")
        if not group.is_huddle:
            raise ValidationError("This group is not a huddle")
        return membership

    def list(self, request):
        person = get_request_person(request)
        return Response({"huddles": huddles_with_unread(person)}, status=status.HTTP_200_OK)

    # Messages --------------------------------------------------------------------------
    @action(detail=True, methods=['get', 'post'])
    def messages(self, request, pk=None):
        membership = self._membership(request, pk)
        if request.method == 'POST':
            return self._post_message(request, membership)

        latest = list(
            HuddleMessage.objects
            .filter(huddle_id=membership.group_id, deleted_at__isnull=True)
            .select_related('sender')
            .order_by('-created_at', '-id')[:MESSAGE_HISTORY_LIMIT]
        )
        latest.reverse()

        return Response({
            "messages": HuddleMessageSerializer(latest, many=True).data,
            "count": len(latest),
        }, status=status.HTTP_200_OK)

    def _post_message(self, request, membership):
        ser = MessageCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        message = HuddleMessage.objects.create(
            huddle_id=membership.group_id,
            sender=membership.person,
            content=ser.validated_data['content'],
        )
        GroupMembership.objects.filter(pk=membership.pk).update(last_engaged_at=message.created_at)

        data = HuddleMessageSerializer(message).data
        invalidate_for_members(membership.group_id)
        broadcast_huddle_event(membership.group_id, HUDDLE_MESSAGE_EVENT, data)

        logger.info(f"Person {membership.person_id} posted message {message.id} in huddle {membership.group_id}")
        return Response({"message": data}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get', 'delete'], url_path=r'messages/(?P<message_id>\d+)')
    def message_detail(self, request, pk=None, message_id=None):
        membership = self._membership(request, pk)

        message = (
            HuddleMessage.objects
            .filter(pk=message_id, huddle_id=membership.group_id, deleted_at__isnull=True)
            .select_related('sender')
            .first()
        )
        if message is None:
            raise NotFound("Message not found")

        if request.method == 'GET':
            return Response({"message": HuddleMessageSerializer(message).data}, status=status.HTTP_200_OK)

        if message.sender_id != membership.person_id:
            raise PermissionDenied("You can only delete your own messages")

        message.soft_delete()
        invalidate_for_members(membership.group_id)
        broadcast_huddle_event(membership.group_id, HUDDLE_MESSAGE_DELETED_EVENT, {"id": message.id})
        return Response({"success": True}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        membership = self._membership(request, pk)
        GroupMembership.objects.filter(pk=membership.pk).update(last_read_at=timezone.now())
        invalidate_unread(membership.group_id, [membership.person_id])
        return Response({"success": True}, status=status.HTTP_200_OK)
