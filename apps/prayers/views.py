import logging

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from apps.core.permissions import IsOnboarded, get_request_person
from .models import PrayerPost
from .serializers import PrayerPostSerializer, PrayerContentSerializer
from . import services

logger = logging.getLogger(__name__)


# PRAYER ViewSet --------------------------------------------------------------------------------------
class PrayerViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, IsOnboarded]
    lookup_value_regex = r'\d+'

    def _serialize(self, prayer, viewer):
        return PrayerPostSerializer(prayer, context={'viewer': viewer}).data

    def list(self, request):
        viewer = get_request_person(request)
        prayers = services.prayer_feed(viewer)
        return Response({
            "prayers": PrayerPostSerializer(prayers, many=True, context={'viewer': viewer}).data,
            "count": len(prayers),
        }, status=status.HTTP_200_OK)

    def create(self, request):
        author = get_request_person(request)
        ser = PrayerContentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        prayer = services.create_prayer(author, ser.validated_data['content'])
        return Response({
            "message": "Prayer posted successfully",
            "prayer": self._serialize(prayer, author),
        }, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        viewer = get_request_person(request)
        prayer = (
            PrayerPost.objects
            .select_related('author')
            .filter(pk=pk, deleted_at__isnull=True)
            .first()
        )
        if prayer is None:
            raise NotFound("Prayer not found")
        return Response({"prayer": self._serialize(prayer, viewer)}, status=status.HTTP_200_OK)

    def partial_update(self, request, pk=None):
        person = get_request_person(request)
        ser = PrayerContentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        prayer = services.update_prayer(person, pk, ser.validated_data['content'])
        return Response({
            "message": "Prayer updated successfully",
            "prayer": self._serialize(prayer, person),
        }, status=status.HTTP_200_OK)

    def destroy(self, request, pk=None):
        person = get_request_person(request)
        services.delete_prayer(person, pk)
        return Response({"message": "Prayer deleted successfully"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def pray(self, request, pk=None):
        person = get_request_person(request)
        prayer = services.record_prayer(person, pk)
        return Response({
            "message": "Prayer recorded",
            "prayer_count": prayer.prayer_count,
        }, status=status.HTTP_200_OK)
