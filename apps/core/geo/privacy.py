# apps/core/geo/privacy.py
"""
Location privacy and profile visibility filtering.

Nothing leaving these helpers may contain an email, phone number, block list,
safety flags, or exact coordinates of a person who did not opt into EXACT.
"""
import math

from apps.core.api_exceptions import ProfileNotAccessible
from apps.core.geo.distance import round_half_up
from apps.profiles.constants import EXACT, APPROXIMATE, CITY_ONLY

# 0.01 degrees ≈ 1.1 km of latitude
LOCATION_GRID_DEGREES = 0.01


def round_to_grid(value: float, grid: float = LOCATION_GRID_DEGREES) -> float:
    snapped = math.floor(value / grid + 0.5) * grid
    return round(snapped, 6)


def has_blocked(person, viewer) -> bool:
    if viewer is None:
        return False
    # Works for prefetched and unprefetched relations alike
    cache = getattr(person, "_prefetched_objects_cache", {})
    if "blocked_persons" in cache:
        return any(p.pk == viewer.pk for p in cache["blocked_persons"])
    return person.blocked_persons.filter(pk=viewer.pk).exists()


def visible_location(person, viewer):
    if has_blocked(person, viewer):
        return None
    if person.latitude is None or person.longitude is None:
        return None

    if person.location_privacy == EXACT:
        return {"latitude": float(person.latitude), "longitude": float(person.longitude)}
    if person.location_privacy == APPROXIMATE:
        return {
            "latitude": round_to_grid(float(person.latitude)),
            "longitude": round_to_grid(float(person.longitude)),
        }
    # CITY_ONLY / HIDDEN
    return None


def visible_profile(person, viewer):
    if has_blocked(person, viewer):
        raise ProfileNotAccessible()

    show_city = person.location_privacy in (EXACT, APPROXIMATE, CITY_ONLY)

    return {
        "id": person.id,
        "display_name": person.display_name,
        "bio": person.bio,
        "profile_image_url": person.profile_image_url,
        "archetype": person.archetype,
        "connection_style": person.connection_style,
        "city": person.city if show_city else None,
        "location": visible_location(person, viewer),
        "interests": [
            {
                "id": pi.interest.id,
                "name": pi.interest.name,
                "category": pi.interest.category,
                "proficiency_level": pi.proficiency_level,
            }
            for pi in person.interests.all()
        ],
        "groups": [
            {"id": m.group.id, "name": m.group.name, "type": m.group.type}
            for m in person.active_memberships()
        ],
    }


def approximate_distance(distance_km: float) -> str:
    """Rounded distance label that does not reveal an exact position."""
    if distance_km < 1:
        return "< 1km away"
    if distance_km < 5:
        return f"~{round_half_up(distance_km)}km away"
    if distance_km < 10:
        return f"~{round_half_up(distance_km / 5) * 5}km away"
    if distance_km < 50:
        return f"~{round_half_up(distance_km / 10) * 10}km away"
    return "50+ km away"
