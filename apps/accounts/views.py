import logging

from django.db import IntegrityError, transaction

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.throttling import ScopedRateThrottle

from apps.core.api_exceptions import Conflict
from apps.profiles.models import Person
from .serializers import RegisterUserSerializer
from django.contrib.auth import get_user_model

CustomUser = get_user_model()
logger = logging.getLogger(__name__)


# AUTH View  --------------------------------------------------------------------
class AuthViewSet(viewsets.ViewSet):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    @action(detail=False, methods=['post'], permission_classes=[AllowAny])
    def register(self, request):
        ser_data = RegisterUserSerializer(data=request.data)
        ser_data.is_valid(raise_exception=True)

        email = ser_data.validated_data['email']
        if CustomUser.objects.filter(email__iexact=email).exists():
            raise Conflict("Email already registered")

        try:
            with transaction.atomic():
                user = CustomUser.objects.create_user(
                    email=email,
                    password=ser_data.validated_data['password'],
                )
                person = Person.objects.create(
                    user=user,
                    display_name=ser_data.validated_data['display_name'],
                    onboarding_level=0,
                )
        except IntegrityError:
            # Concurrent signup with the same email
            raise Conflict("Email already registered")

        logger.info(f"New account registered: user={user.id} person={person.id}")
        return Response(
            {
                "message": "Account created successfully",
                "user": {
                    "id": user.id,
                    "email": user.email,
                    "display_name": person.display_name,
                    "onboarding_level": person.onboarding_level,
                },
            },
            status=status.HTTP_201_CREATED,
        )
