# apps/profiles/services/matching.py
"""
Rule-based compatibility scoring between a person and nearby persons or groups.

Person score = 0.5 * interest Jaccard + 0.3 * proximity + 0.2 * openness similarity.
Group score  = 0.4 * interest/tag overlap + 0.3 * proximity + 0.2 * size fit + 0.1 * type fit.

Proximity falls linearly from 1 at 0 km to 0 at MATCH_PROXIMITY_RANGE_KM.
Candidates come from the proximity search, so the block lists and onboarding
rules of nearby search apply here too. Full score lists are cached per person
and search generation; min_score and limit are applied on the way out.
"""
import logging

from django.core.cache import cache

from apps.core.geo import proximity
from apps.core.geo.cache import match_scores_key, MATCH_SCORES_TTL
from apps.core.geo.privacy import approximate_distance
from apps.profiles.constants import (
    PERSON_MATCH_WEIGHTS, GROUP_MATCH_WEIGHTS,
    MATCH_PROXIMITY_RANGE_KM, MATCH_REASON_DISTANCE_KM, MATCH_CANDIDATE_LIMIT,
    MAX_SHARED_INTEREST_REASONS,
    MIN_OPENNESS, MAX_OPENNESS, DEFAULT_OPENNESS, SIMILAR_PERSONALITY_THRESHOLD,
    DEFAULT_PREFERRED_SIZE_MIN, DEFAULT_PREFERRED_SIZE_MAX, PARTIAL_PREFERENCE_SCORE,
)

logger = logging.getLogger(__name__)


# Component scores ------------------------------------------------------------------------------------
def proximity_score(distance_km) -> float:
    if distance_km is None:
        return 0.0
    return max(0.0, min(1.0, 1 - distance_km / MATCH_PROXIMITY_RANGE_KM))


def _openness(person) -> float:
    traits = person.personality_traits if isinstance(person.personality_traits, dict) else {}
    value = traits.get("openness")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return DEFAULT_OPENNESS
    return min(max(value, MIN_OPENNESS), MAX_OPENNESS)


def personality_match(a, b) -> float:
    return 1 - abs(_openness(a) - _openness(b)) / (MAX_OPENNESS - MIN_OPENNESS)


def _group_preferences(person):
    prefs = person.group_preferences if isinstance(person.group_preferences, dict) else {}
    size_min = prefs.get("size_min") or DEFAULT_PREFERRED_SIZE_MIN
    size_max = prefs.get("size_max") or DEFAULT_PREFERRED_SIZE_MAX
    types = prefs.get("types") or []
    return size_min, size_max, types


def _reason(kind, value, score=None):
    reason = {"type": kind, "value": value}
    if score is not None:
        reason["score"] = round(score, 4)
    return reason


def _proximity_reason(distance_km, score):
    if distance_km is not None and distance_km < MATCH_REASON_DISTANCE_KM:
        return _reason("proximity", approximate_distance(distance_km), score)
    return None


def _ranked_interests(person):
    """The person's interests, strongest first, then by name."""
    return sorted(
        person.interests.all(),
        key=lambda pi: (-pi.proficiency_level, pi.interest.name),
    )


# Person <-> person -----------------------------------------------------------------------------------
def person_compatibility(viewer, candidate, distance_km) -> dict:
    viewer_interests = _ranked_interests(viewer)
    viewer_ids = {pi.interest_id for pi in viewer_interests}
    candidate_ids = {pi.interest_id for pi in candidate.interests.all()}

    union = viewer_ids | candidate_ids
    interest_similarity = len(viewer_ids & candidate_ids) / len(union) if union else 0.0
    near = proximity_score(distance_km)
    personality = personality_match(viewer, candidate)

    overall = (
        interest_similarity * PERSON_MATCH_WEIGHTS["interest"]
        + near * PERSON_MATCH_WEIGHTS["proximity"]
        + personality * PERSON_MATCH_WEIGHTS["personality"]
    )

    reasons = [
        _reason("interest", pi.interest.name, interest_similarity)
        for pi in viewer_interests if pi.interest_id in candidate_ids
    ][:MAX_SHARED_INTEREST_REASONS]

    proximity_reason = _proximity_reason(distance_km, near)
    if proximity_reason:
        reasons.append(proximity_reason)

    if personality > SIMILAR_PERSONALITY_THRESHOLD:
        reasons.append(_reason("personality", "Similar personality traits", personality))

    return {
        "person_id": candidate.pk,
        "distance_km": distance_km,
        "interest_similarity": round(interest_similarity, 4),
        "proximity_score": round(near, 4),
        "personality_match": round(personality, 4),
        "overall_score": round(overall, 4),
        "match_reasons": reasons,
    }


def _score_persons(viewer, radius_km):
    rows = proximity.nearby_person_rows(
        viewer.latitude, viewer.longitude, radius_km, viewer, MATCH_CANDIDATE_LIMIT,
    )

    # Persons who blocked the viewer never see or get matched with them
    blocked_by = set(viewer.blocked_by.values_list("pk", flat=True))
    rows = [row for row in rows if row[0] not in blocked_by]

    scores = [
        person_compatibility(viewer, candidate, candidate.distance_km)
        for candidate in proximity.hydrate_persons(rows)
    ]
    scores.sort(key=lambda s: (-s["overall_score"], s["distance_km"], s["person_id"]))
    logger.info(f"Scored {len(scores)} person matches for person {viewer.pk}")
    return scores


def find_compatible_persons(viewer, radius_km, limit, min_score, use_cache=True):
    """
    Return (matches, cached) where matches is a list of (Person, score dict),
    best first. Persons without a location get no matches.
    """
    if not viewer.has_location:
        return [], False

    scores, cached = _cached_scores(
        match_scores_key("persons", viewer.pk, radius_km),
        lambda: _score_persons(viewer, radius_km),
        use_cache,
    )

    selected = [s for s in scores if s["overall_score"] >= min_score][:limit]
    by_id = {s["person_id"]: s for s in selected}
    persons = proximity.hydrate_persons([(s["person_id"], s["distance_km"]) for s in selected])
    return [(person, by_id[person.pk]) for person in persons], cached


# Person <-> group ------------------------------------------------------------------------------------
def group_compatibility(person, group, distance_km) -> dict:
    interest_names = {pi.interest.name.lower() for pi in person.interests.all()}
    shared = []
    for tag in group.tags or []:
        lowered = str(tag).lower()
        if lowered in interest_names and lowered not in shared:
            shared.append(lowered)

    interest_score = len(shared) / len(interest_names) if interest_names else 0.0
    near = proximity_score(distance_km)

    size_min, size_max, preferred_types = _group_preferences(person)
    size_match = 1.0 if size_min <= group.current_size <= size_max else PARTIAL_PREFERENCE_SCORE
    type_match = 1.0 if not preferred_types or group.type in preferred_types else PARTIAL_PREFERENCE_SCORE

    overall = (
        interest_score * GROUP_MATCH_WEIGHTS["interest"]
        + near * GROUP_MATCH_WEIGHTS["proximity"]
        + size_match * GROUP_MATCH_WEIGHTS["size"]
        + type_match * GROUP_MATCH_WEIGHTS["type"]
    )

    reasons = []
    if shared:
        reasons.append(_reason("interest", ", ".join(shared[:MAX_SHARED_INTEREST_REASONS]), interest_score))

    proximity_reason = _proximity_reason(distance_km, near)
    if proximity_reason:
        reasons.append(proximity_reason)

    if size_match == 1.0:
        reasons.append(_reason(
            "group_preference", f"{group.current_size} members (in your preferred range)", size_match,
        ))

    return {
        "group_id": group.pk,
        "distance_km": distance_km,
        "interest_score": round(interest_score, 4),
        "proximity_score": round(near, 4),
        "size_match": size_match,
        "type_match": type_match,
        "overall_score": round(overall, 4),
        "match_reasons": reasons,
    }


def _score_groups(person, radius_km):
    from apps.gatherings.models import Group, GroupMembership
    from apps.gatherings.constants import MEMBER_ACTIVE

    joined = set(
        GroupMembership.objects
        .filter(person=person, status=MEMBER_ACTIVE)
        .values_list("group_id", flat=True)
    )
    rows = [
        (pk, distance)
        for pk, distance, is_virtual in proximity.nearby_group_rows(person.latitude, person.longitude, radius_km)
        if not is_virtual and pk not in joined
    ][:MATCH_CANDIDATE_LIMIT]

    groups = Group.objects.in_bulk([pk for pk, _ in rows])
    scores = [
        group_compatibility(person, groups[pk], distance)
        for pk, distance in rows if pk in groups
    ]
    scores.sort(key=lambda s: (-s["overall_score"], s["distance_km"], s["group_id"]))
    logger.info(f"Scored {len(scores)} group matches for person {person.pk}")
    return scores


def find_compatible_groups(person, radius_km, limit, min_score, use_cache=True):
    """
    Return (matches, cached) where matches is a list of (Group, score dict), best first.
    Virtual groups and groups the person already belongs to are not recommended.
    """
    from apps.gatherings.models import Group

    if not person.has_location:
        return [], False

    scores, cached = _cached_scores(
        match_scores_key("groups", person.pk, radius_km),
        lambda: _score_groups(person, radius_km),
        use_cache,
    )

    selected = [s for s in scores if s["overall_score"] >= min_score][:limit]
    groups = Group.objects.select_related("created_by").in_bulk([s["group_id"] for s in selected])

    matches = []
    for score in selected:
        group = groups.get(score["group_id"])
        if group is None:
            continue
        group.distance_km = score["distance_km"]
        matches.append((group, score))
    return matches, cached


# Cache -----------------------------------------------------------------------------------------------
def _cached_scores(key, compute, use_cache):
    scores = cache.get(key) if use_cache else None
    if scores is not None:
        return scores, True

    scores = compute()
    cache.set(key, scores, MATCH_SCORES_TTL)
    return scores, False
