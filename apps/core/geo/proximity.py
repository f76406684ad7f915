# apps/core/geo/proximity.py
"""
Proximity search over persons and groups.

Two interchangeable backends produce the same ordering:
  - "postgis":   ST_DWithin / ST_Distance on geography points built from the
                 latitude/longitude columns (backed by a functional GiST index).
  - "haversine": ORM bounding-box prefilter, exact great-circle distance in Python.

Rows are (id, distance_km) pairs ordered by distance then id; hydration into
model instances happens afterwards so both backends share it.
"""
import logging

from django.conf import settings
from django.db import connection
from django.db.models import Prefetch

from apps.core.geo.distance import haversine_km, bounding_box

logger = logging.getLogger(__name__)

# Distance reported for virtual groups without coordinates; sorts after every real one
VIRTUAL_DISTANCE_KM = 9999.0

_POINT_SQL = "ST_SetSRID(ST_MakePoint(%s, %s), 4326)::geography"


def _geog_sql(alias):
    return f"ST_SetSRID(ST_MakePoint({alias}.longitude, {alias}.latitude), 4326)::geography"


def use_postgis() -> bool:
    return settings.PROXIMITY_BACKEND == "postgis" and connection.vendor == "postgresql"


# Persons ---------------------------------------------------------------------------------------------
def nearby_person_rows(latitude, longitude, radius_km, viewer, limit=None):
    """Return [(person_id, distance_km), ...] for onboarded persons within radius_km."""
    if use_postgis():
        return _nearby_person_rows_postgis(latitude, longitude, radius_km, viewer, limit)
    return _nearby_person_rows_haversine(latitude, longitude, radius_km, viewer, limit)


def _nearby_person_rows_postgis(latitude, longitude, radius_km, viewer, limit):
    from apps.profiles.models import Person

    person_table = connection.ops.quote_name(Person._meta.db_table)
    blocked_table = connection.ops.quote_name(Person.blocked_persons.through._meta.db_table)
    geog = _geog_sql("p")

    sql = f"""
        SELECT p.id, ST_Distance({geog}, {_POINT_SQL}) / 1000.0 AS distance_km
        FROM {person_table} p
        WHERE p.onboarding_level >= 1
          AND p.latitude IS NOT NULL
          AND p.longitude IS NOT NULL
          AND p.id <> %s
          AND NOT EXISTS (
              SELECT 1 FROM {blocked_table} b
              WHERE b.from_person_id = %s AND b.to_person_id = p.id
          )
          AND ST_DWithin({geog}, {_POINT_SQL}, %s)
        ORDER BY distance_km ASC, p.id ASC
    """
    params = [longitude, latitude, viewer.pk, viewer.pk, longitude, latitude, radius_km * 1000]
    if limit is not None:
        sql += " LIMIT %s"
        params.append(limit)

    with connection.cursor() as cursor:
        cursor.execute(sql, params)
        return [(row[0], float(row[1])) for row in cursor.fetchall()]


def _nearby_person_rows_haversine(latitude, longitude, radius_km, viewer, limit):
    from apps.profiles.models import Person

    qs = (
        Person.objects
        .filter(onboarding_level__gte=1, latitude__isnull=False, longitude__isnull=False)
        .exclude(pk=viewer.pk)
        .exclude(pk__in=viewer.blocked_persons.values("pk"))
    )
    qs = _apply_bounding_box(qs, latitude, longitude, radius_km)

    rows = []
    for pk, lat, lng in qs.values_list("id", "latitude", "longitude").iterator():
        distance = haversine_km(latitude, longitude, lat, lng)
        if distance <= radius_km:
            rows.append((pk, distance))

    rows.sort(key=lambda row: (row[1], row[0]))
    return rows if limit is None else rows[:limit]


def hydrate_persons(rows):
    """Load Person instances for rows, keeping row order and setting .distance_km."""
    from apps.profiles.models import Person
    from apps.gatherings.models import GroupMembership
    from apps.gatherings.constants import MEMBER_ACTIVE

    ids = [pk for pk, _ in rows]
    persons = (
        Person.objects
        .filter(pk__in=ids)
        .prefetch_related(
            "interests__interest",
            "blocked_persons",
            Prefetch(
                "memberships",
                queryset=GroupMembership.objects.filter(status=MEMBER_ACTIVE).select_related("group"),
                to_attr="prefetched_active_memberships",
            ),
        )
        .in_bulk()
    )

    result = []
    for pk, distance in rows:
        person = persons.get(pk)
        if person is None:
            # Deleted between the id query and hydration
            continue
        person.distance_km = distance
        result.append(person)
    return result


def find_persons_nearby(latitude, longitude, radius_km, viewer, limit=20):
    return hydrate_persons(nearby_person_rows(latitude, longitude, radius_km, viewer, limit))


# Groups ----------------------------------------------------------------------------------------------
def nearby_group_rows(latitude, longitude, radius_km, group_type=None, min_size=None, max_size=None, limit=None):
    """
    Return [(group_id, distance_km, is_virtual), ...]: public ACTIVE non-huddle groups,
    physical ones within radius plus every virtual one. Physical groups come first.
    """
    if use_postgis():
        return _nearby_group_rows_postgis(latitude, longitude, radius_km, group_type, min_size, max_size, limit)
    return _nearby_group_rows_haversine(latitude, longitude, radius_km, group_type, min_size, max_size, limit)


def _nearby_group_rows_postgis(latitude, longitude, radius_km, group_type, min_size, max_size, limit):
    from apps.gatherings.models import Group
    from apps.gatherings.constants import STATUS_ACTIVE, HUDDLE

    group_table = connection.ops.quote_name(Group._meta.db_table)
    geog = _geog_sql("g")

    sql = f"""
        SELECT g.id,
               COALESCE(ST_Distance({geog}, {_POINT_SQL}) / 1000.0, %s) AS distance_km,
               g.is_virtual
        FROM {group_table} g
        WHERE g.status = %s
          AND g.is_public = TRUE
          AND g.category <> %s
          AND (
              (
                  g.is_virtual = FALSE
                  AND g.latitude IS NOT NULL
                  AND g.longitude IS NOT NULL
                  AND ST_DWithin({geog}, {_POINT_SQL}, %s)
              )
              OR g.is_virtual = TRUE
          )
    """
    params = [
        longitude, latitude, VIRTUAL_DISTANCE_KM,
        STATUS_ACTIVE, HUDDLE,
        longitude, latitude, radius_km * 1000,
    ]
    if group_type:
        sql += " AND g.type = %s"
        params.append(group_type)
    if min_size is not None:
        sql += " AND g.current_size >= %s"
        params.append(min_size)
    if max_size is not None:
        sql += " AND g.current_size <= %s"
        params.append(max_size)

    sql += " ORDER BY g.is_virtual ASC, distance_km ASC, g.id ASC"
    if limit is not None:
        sql += " LIMIT %s"
        params.append(limit)

    with connection.cursor() as cursor:
        cursor.execute(sql, params)
        return [(row[0], float(row[1]), bool(row[2])) for row in cursor.fetchall()]


def _nearby_group_rows_haversine(latitude, longitude, radius_km, group_type, min_size, max_size, limit):
    from apps.gatherings.models import Group
    from apps.gatherings.constants import STATUS_ACTIVE, HUDDLE

    qs = Group.objects.filter(status=STATUS_ACTIVE, is_public=True).exclude(category=HUDDLE)
    if group_type:
        qs = qs.filter(type=group_type)
    if min_size is not None:
        qs = qs.filter(current_size__gte=min_size)
    if max_size is not None:
        qs = qs.filter(current_size__lte=max_size)

    rows = []
    for pk, lat, lng, is_virtual in qs.values_list("id", "latitude", "longitude", "is_virtual").iterator():
        distance = None
        if lat is not None and lng is not None:
            distance = haversine_km(latitude, longitude, lat, lng)

        if is_virtual:
            rows.append((pk, VIRTUAL_DISTANCE_KM if distance is None else distance, True))
        elif distance is not None and distance <= radius_km:
            rows.append((pk, distance, False))

    rows.sort(key=lambda row: (row[2], row[1], row[0]))
    return rows if limit is None else rows[:limit]


def find_groups_nearby(latitude, longitude, radius_km, group_type=None, tags=None,
                       min_size=None, max_size=None, limit=50):
    from apps.gatherings.models import Group

    # Tags live in a JSON list; filter them here, before the limit is applied
    query_limit = None if tags else limit
    rows = nearby_group_rows(latitude, longitude, radius_km, group_type, min_size, max_size, query_limit)

    groups = Group.objects.filter(pk__in=[pk for pk, _, _ in rows]).select_related("created_by").in_bulk()

    wanted = set(tags or [])
    result = []
    for pk, distance, _ in rows:
        group = groups.get(pk)
        if group is None:
            continue
        if wanted and not wanted.intersection(group.tags or []):
            continue
        group.distance_km = distance
        result.append(group)
        if limit is not None and len(result) >= limit:
            break
    return result


# Point to point --------------------------------------------------------------------------------------
def distance_between(a_lat, a_lng, b_lat, b_lng):
    if None in (a_lat, a_lng, b_lat, b_lng):
        return None

    if use_postgis():
        with connection.cursor() as cursor:
            cursor.execute(
                f"SELECT ST_Distance({_POINT_SQL}, {_POINT_SQL}) / 1000.0",
                [a_lng, a_lat, b_lng, b_lat],
            )
            return float(cursor.fetchone()[0])

    return haversine_km(a_lat, a_lng, b_lat, b_lng)


# Helpers ---------------------------------------------------------------------------------------------
def _apply_bounding_box(qs, latitude, longitude, radius_km):
    min_lat, max_lat, min_lng, max_lng = bounding_box(latitude, longitude, radius_km)
    qs = qs.filter(latitude__gte=min_lat, latitude__lte=max_lat)
    if min_lng is not None:
        qs = qs.filter(longitude__gte=min_lng, longitude__lte=max_lng)
    return qs
