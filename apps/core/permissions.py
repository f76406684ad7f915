# apps/core/permissions.py
from rest_framework.permissions import BasePermission

from .api_exceptions import PersonProfileMissing, OnboardingRequired


def get_request_person(request):
    """Return the Person behind request.user, caching it on the request."""
    person = getattr(request, "_cached_person", None)
    if person is not None:
        return person

    from apps.profiles.models import Person

    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        return None
    try:
        person = Person.objects.get(user=user)
    except Person.DoesNotExist:
        raise PersonProfileMissing()

    request._cached_person = person
    return person


class HasPersonProfile(BasePermission):
    """
    Authenticated users must own a Person row.
    Raises 404 instead of returning False so the client knows signup is incomplete.
    """

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        get_request_person(request)
        return True


class IsOnboarded(HasPersonProfile):
    """
    Require onboarding_level >= 1 unless the action is whitelisted on the view.
    Views may define:
      - allow_unonboarded_actions = {'me', 'complete_onboarding', ...}
    """

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False

        action = getattr(view, "action", None)
        if action in getattr(view, "allow_unonboarded_actions", set()):
            return True

        if not get_request_person(request).is_onboarded:
            raise OnboardingRequired()
        return True
