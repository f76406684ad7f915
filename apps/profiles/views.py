import logging

from django.db.models import Prefetch
from django.shortcuts import get_object_or_404

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle

from apps.core.api_exceptions import ProfileNotAccessible
from apps.core.permissions import IsOnboarded, get_request_person
from apps.core.geo.privacy import visible_profile, approximate_distance
from apps.gatherings.models import GroupMembership
from apps.gatherings.constants import MEMBER_ACTIVE
from apps.gatherings.serializers import NearbyGroupSerializer
from .models import Person, Interest
from .serializers import (
    MyPersonSerializer, PersonUpdateSerializer, ProfileUpdateSerializer,
    ReplaceInterestsSerializer, NearbySearchSerializer, InterestSerializer,
    MatchSearchSerializer,
)
from .services import person_service
from .services.matching import find_compatible_persons, find_compatible_groups
from .services.person_service import UnknownInterests

logger = logging.getLogger(__name__)


def _person_queryset():
    return Person.objects.select_related('user').prefetch_related(
        'interests__interest',
        'blocked_persons',
        Prefetch(
            'memberships',
            queryset=GroupMembership.objects.filter(status=MEMBER_ACTIVE).select_related('group'),
            to_attr='prefetched_active_memberships',
        ),
    )


# PERSON ViewSet --------------------------------------------------------------------------------------
class PersonViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, IsOnboarded]
    throttle_classes = [ScopedRateThrottle]
    lookup_value_regex = r'\d+'
    allow_unonboarded_actions = {
        'me', 'update_profile', 'interests', 'complete_onboarding',
        'dashboard', 'retrieve', 'block',
    }

    def get_queryset(self):
        return _person_queryset()

    def get_throttles(self):
        # Only the proximity search is rate limited
        self.throttle_scope = 'proximity' if getattr(self, 'action', None) == 'nearby' else None
        return super().get_throttles()

    def _me(self, request):
        person = get_request_person(request)
        return self.get_queryset().get(pk=person.pk)

    # Own profile -----------------------------------------------------------------------
    @action(detail=False, methods=['get', 'patch'], url_path='me')
    def me(self, request):
        person = self._me(request)
        if request.method == 'GET':
            return Response(MyPersonSerializer(person).data, status=status.HTTP_200_OK)

        ser = PersonUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        person_service.update_person(person, ser.validated_data)
        return Response(MyPersonSerializer(self._me(request)).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post'], url_path='me/update-profile')
    def update_profile(self, request):
        person = self._me(request)
        ser = ProfileUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            person_service.update_profile(person, dict(ser.validated_data))
        except UnknownInterests as exc:
            raise ValidationError({"interests": f"Unknown interest ids: {exc.missing_ids}"})

        return Response({
            "message": "Profile updated successfully.",
            "person": MyPersonSerializer(self._me(request)).data,
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post'], url_path='me/interests')
    def interests(self, request):
        person = self._me(request)
        ser = ReplaceInterestsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        level = ser.validated_data['proficiency_level']
        try:
            person_service.replace_interests(person, [(pk, level) for pk in ser.validated_data['interest_ids']])
        except UnknownInterests as exc:
            raise ValidationError({"interest_ids": f"Unknown interest ids: {exc.missing_ids}"})

        person = self._me(request)
        return Response({
            "message": "Interests updated successfully.",
            "interests": MyPersonSerializer(person).data['interests'],
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post'], url_path='me/complete-onboarding')
    def complete_onboarding(self, request):
        person = self._me(request)
        missing = person_service.complete_onboarding(person)
        if missing:
            raise ValidationError({"detail": "Onboarding requirements not met", "missing": missing})
        return Response({
            "message": "Onboarding complete.",
            "onboarding_level": person.onboarding_level,
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'], url_path='me/dashboard')
    def dashboard(self, request):
        from apps.huddles.services.unread import huddles_with_unread
        from apps.prayers.services import recent_prayers

        person = get_request_person(request)
        return Response({
            "nearby_count": person_service.nearby_count(person),
            "my_huddles": huddles_with_unread(person),
            "recent_prayers": recent_prayers(person, limit=3),
            "saved_radius": person.proximity_radius_km,
        }, status=status.HTTP_200_OK)

    # Other persons ---------------------------------------------------------------------
    def retrieve(self, request, pk=None):
        viewer = get_request_person(request)
        person = get_object_or_404(self.get_queryset(), pk=pk)
        return Response(visible_profile(person, viewer), status=status.HTTP_200_OK)

    @action(detail=True, methods=['post', 'delete'])
    def block(self, request, pk=None):
        viewer = get_request_person(request)
        target = get_object_or_404(Person, pk=pk)

        if target.pk == viewer.pk:
            raise ValidationError("Cannot block yourself")

        if request.method == 'DELETE':
            person_service.unblock_person(viewer, target)
            return Response({"message": "Person unblocked."}, status=status.HTTP_200_OK)

        person_service.block_person(viewer, target)
        return Response({"message": "Person blocked."}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def nearby(self, request):
        viewer = get_request_person(request)
        ser = NearbySearchSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        params = ser.validated_data

        results = []
        for person in person_service.search_nearby_persons(
            viewer, params['lat'], params['lng'], params['radius'], params['limit'],
        ):
            try:
                profile = visible_profile(person, viewer)
            except ProfileNotAccessible:
                # The other person blocked the viewer
                continue
            profile['distance_km'] = round(person.distance_km, 2)
            profile['distance_label'] = approximate_distance(person.distance_km)
            results.append(profile)

        return Response({
            "persons": results,
            "count": len(results),
            "search_params": {
                "latitude": params['lat'],
                "longitude": params['lng'],
                "radius_km": params['radius'],
                "limit": params['limit'],
            },
        }, status=status.HTTP_200_OK)


# MATCH ViewSet ---------------------------------------------------------------------------------------
class MatchViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, IsOnboarded]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'proximity'

    def _search(self, request):
        # Plain dict so absent booleans fall back to their defaults
        ser = MatchSearchSerializer(data=request.query_params.dict())
        ser.is_valid(raise_exception=True)
        params = ser.validated_data
        viewer = _person_queryset().get(pk=get_request_person(request).pk)
        return viewer, params

    def _search_params(self, params):
        return {
            "limit": params["limit"],
            "min_score": params["min_score"],
            "use_cache": params["use_cache"],
            "radius_km": params["radius"],
        }

    @action(detail=False, methods=['get'])
    def persons(self, request):
        viewer, params = self._search(request)
        matches, cached = find_compatible_persons(
            viewer, params["radius"], params["limit"], params["min_score"], use_cache=params["use_cache"],
        )

        results = []
        for person, score in matches:
            try:
                profile = visible_profile(person, viewer)
            except ProfileNotAccessible:
                continue
            results.append({
                "person": profile,
                "distance_label": approximate_distance(person.distance_km),
                "interest_similarity": score["interest_similarity"],
                "proximity_score": score["proximity_score"],
                "personality_match": score["personality_match"],
                "overall_score": score["overall_score"],
                "match_reasons": score["match_reasons"],
            })

        return Response({
            "matches": results,
            "count": len(results),
            "cached": cached,
            "search_params": self._search_params(params),
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def groups(self, request):
        viewer, params = self._search(request)
        matches, cached = find_compatible_groups(
            viewer, params["radius"], params["limit"], params["min_score"], use_cache=params["use_cache"],
        )

        results = [
            {
                "group": NearbyGroupSerializer(group).data,
                "interest_score": score["interest_score"],
                "proximity_score": score["proximity_score"],
                "size_match": score["size_match"],
                "type_match": score["type_match"],
                "overall_score": score["overall_score"],
                "match_reasons": score["match_reasons"],
            }
            for group, score in matches
        ]

        return Response({
            "matches": results,
            "count": len(results),
            "cached": cached,
            "search_params": self._search_params(params),
        }, status=status.HTTP_200_OK)

# INTEREST ViewSet ------------------------------------------------------------------------------------
class InterestViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def list(self, request):
        qs = Interest.objects.order_by('-popularity', 'name')
        category = request.query_params.get('category')
        if category:
            qs = qs.filter(category=category)

        interests = InterestSerializer(qs, many=True).data
        grouped = {}
        for item in interests:
            grouped.setdefault(item['category'], []).append(item)

        return Response({
            "interests": interests,
            "grouped": grouped,
            "categories": sorted(grouped.keys()),
        }, status=status.HTTP_200_OK)
