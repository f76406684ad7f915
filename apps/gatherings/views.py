import logging

from django.db.models import Prefetch
from django.shortcuts import get_object_or_404

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle

from apps.core.permissions import IsOnboarded, get_request_person
from apps.core.geo import proximity
from .models import Group, GroupMembership
from .serializers import (
    GroupCreateSerializer, GroupUpdateSerializer, GroupSerializer, GroupDetailSerializer,
    NearbyGroupSerializer, MembershipSerializer, GroupSearchSerializer,
)
from .services import membership as membership_service
from .services.circles import my_circles

logger = logging.getLogger(__name__)


# GROUP ViewSet ---------------------------------------------------------------------------------------
class GroupViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, IsOnboarded]
    throttle_classes = [ScopedRateThrottle]
    lookup_value_regex = r'\d+'
    allow_unonboarded_actions = {
        'retrieve', 'partial_update', 'destroy', 'join', 'leave', 'my_circles',
    }

    def get_queryset(self):
        return Group.objects.select_related('created_by').prefetch_related(
            Prefetch('memberships', queryset=GroupMembership.objects.select_related('person').order_by('joined_at', 'id')),
        )

    def get_throttles(self):
        self.throttle_scope = 'proximity' if getattr(self, 'action', None) == 'nearby' else None
        return super().get_throttles()

    def create(self, request):
        person = get_request_person(request)
        ser = GroupCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        group = membership_service.create_group(person, ser.validated_data)
        return Response({
            "message": "Group created successfully",
            "group": {
                "id": group.id,
                "name": group.name,
                "type": group.type,
                "category": group.category,
                "is_virtual": group.is_virtual,
            },
        }, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        viewer = get_request_person(request)
        group = get_object_or_404(self.get_queryset(), pk=pk)

        distance = proximity.distance_between(viewer.latitude, viewer.longitude, group.latitude, group.longitude)
        data = GroupDetailSerializer(group, context={'request': request, 'distance_km': distance}).data
        return Response(data, status=status.HTTP_200_OK)

    def partial_update(self, request, pk=None):
        person = get_request_person(request)
        ser = GroupUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        group = membership_service.update_group(person, pk, ser.validated_data)
        return Response({
            "message": "Group updated successfully",
            "group": GroupSerializer(group).data,
        }, status=status.HTTP_200_OK)

    def destroy(self, request, pk=None):
        person = get_request_person(request)
        membership_service.delete_group(person, pk)
        return Response({"message": "Group deleted successfully"}, status=status.HTTP_200_OK)

    # Membership ------------------------------------------------------------------------
    @action(detail=True, methods=['post'])
    def join(self, request, pk=None):
        person = get_request_person(request)
        membership = membership_service.join_group(person, pk)
        return Response({
            "message": "Joined group successfully",
            "membership": MembershipSerializer(membership).data,
        }, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        person = get_request_person(request)
        membership_service.leave_group(person, pk)
        return Response({"message": "Left group successfully"}, status=status.HTTP_200_OK)

    # Discovery -------------------------------------------------------------------------
    @action(detail=False, methods=['get'])
    def nearby(self, request):
        ser = GroupSearchSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        params = ser.validated_data

        groups = proximity.find_groups_nearby(
            params['lat'], params['lng'], params['radius'],
            group_type=params.get('type'),
            tags=params.get('tags') or None,
            min_size=params.get('min_size'),
            max_size=params.get('max_size'),
            limit=params['limit'],
        )

        return Response({
            "groups": NearbyGroupSerializer(groups, many=True).data,
            "count": len(groups),
            "search_params": {
                "latitude": params['lat'],
                "longitude": params['lng'],
                "radius_km": params['radius'],
                "type": params.get('type'),
                "tags": params.get('tags') or [],
                "min_size": params.get('min_size'),
                "max_size": params.get('max_size'),
                "limit": params['limit'],
            },
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'], url_path='my-circles')
    def my_circles(self, request):
        person = get_request_person(request)
        active, history, stats = my_circles(person)
        return Response({
            "active": GroupSerializer(active, many=True).data,
            "history": GroupSerializer(history, many=True).data,
            "stats": stats,
        }, status=status.HTTP_200_OK)
