# apps/profiles/services/person_service.py
import logging

from django.db import transaction
from django.utils import timezone

from apps.core.geo import proximity
from apps.core.geo.cache import (
    get_or_compute, bump_search_generation,
    nearby_persons_key, nearby_count_key,
    NEARBY_PERSONS_TTL, NEARBY_COUNT_TTL,
)
from apps.profiles.models import Person, Interest, PersonInterest
from apps.profiles.constants import ONBOARDING_COMPLETE, DEFAULT_PROFICIENCY

logger = logging.getLogger(__name__)


class UnknownInterests(Exception):
    def __init__(self, missing_ids):
        self.missing_ids = sorted(missing_ids)
        super().__init__(f"Unknown interest ids: {self.missing_ids}")


# Profile updates -------------------------------------------------------------------------------------
def update_person(person: Person, data: dict) -> Person:
    """Apply validated PATCH /me fields. A location change also refreshes last_active_at."""
    for field, value in data.items():
        setattr(person, field, value)

    update_fields = list(data.keys())
    if "latitude" in data or "longitude" in data:
        person.last_active_at = timezone.now()
        update_fields.append("last_active_at")

    if update_fields:
        person.save(update_fields=update_fields + ["updated_at"])
        bump_search_generation(person.pk)
    return person


@transaction.atomic
def replace_interests(person: Person, selections) -> None:
    """
    Replace every interest of the person.
    selections: iterable of (interest_id, proficiency_level).
    """
    selections = list(selections)
    wanted = {interest_id for interest_id, _ in selections}
    known = set(Interest.objects.filter(pk__in=wanted).values_list("pk", flat=True))
    missing = wanted - known
    if missing:
        raise UnknownInterests(missing)

    PersonInterest.objects.filter(person=person).delete()

    # Last proficiency wins for duplicated ids
    levels = {}
    for interest_id, level in selections:
        levels[interest_id] = level or DEFAULT_PROFICIENCY

    PersonInterest.objects.bulk_create([
        PersonInterest(person=person, interest_id=interest_id, proficiency_level=level)
        for interest_id, level in levels.items()
    ])
    bump_search_generation(person.pk)


@transaction.atomic
def update_profile(person: Person, data: dict) -> Person:
    """Onboarding-style profile update: optional interest replacement plus descriptive fields."""
    interests = data.pop("interests", None)
    if interests is not None:
        replace_interests(person, [(i["interest_id"], i.get("proficiency_level")) for i in interests])

    if data:
        for field, value in data.items():
            setattr(person, field, value)
        person.save(update_fields=list(data.keys()) + ["updated_at"])
        bump_search_generation(person.pk)
    return person


def onboarding_missing(person: Person):
    missing = []
    if not (person.display_name or "").strip():
        missing.append("display_name")
    if not person.has_location:
        missing.append("location")
    if not person.interests.exists():
        missing.append("interests")
    return missing


def complete_onboarding(person: Person):
    """Return the list of missing requirements; empty means the person is now onboarded."""
    missing = onboarding_missing(person)
    if missing:
        return missing

    if person.onboarding_level < ONBOARDING_COMPLETE:
        person.onboarding_level = ONBOARDING_COMPLETE
        person.save(update_fields=["onboarding_level", "updated_at"])
        logger.info(f"Person {person.id} completed onboarding")
    return []


# Blocking --------------------------------------------------------------------------------------------
def block_person(person: Person, target: Person) -> None:
    person.blocked_persons.add(target)
    bump_search_generation(person.pk)
    bump_search_generation(target.pk)
    logger.info(f"Person {person.id} blocked person {target.id}")


def unblock_person(person: Person, target: Person) -> None:
    person.blocked_persons.remove(target)
    bump_search_generation(person.pk)
    bump_search_generation(target.pk)


# Proximity -------------------------------------------------------------------------------------------
def search_nearby_persons(viewer: Person, latitude, longitude, radius_km, limit):
    """Nearby persons for the viewer, with the (id, distance) rows cached for a few minutes."""
    key = nearby_persons_key(viewer.pk, latitude, longitude, radius_km, limit)
    rows = get_or_compute(
        key,
        NEARBY_PERSONS_TTL,
        lambda: proximity.nearby_person_rows(latitude, longitude, radius_km, viewer, limit),
    )
    return proximity.hydrate_persons(rows)


def nearby_count(person: Person) -> int:
    if not person.has_location:
        return 0

    radius = person.proximity_radius_km
    return get_or_compute(
        nearby_count_key(person.pk, radius),
        NEARBY_COUNT_TTL,
        lambda: len(proximity.nearby_person_rows(person.latitude, person.longitude, radius, person)),
    )
