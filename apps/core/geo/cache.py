from django.core.cache import cache

NEARBY_PERSONS_TTL = 3 * 60
NEARBY_COUNT_TTL = 5 * 60
UNREAD_COUNT_TTL = 2 * 60
MATCH_SCORES_TTL = 30 * 60


# Search generation -------------------------------------------------------------
# Every cached search result of a person embeds that person's generation number.
# Bumping it (block, unblock, interest changes) orphans all earlier entries.
def search_generation_key(person_id):
    return f"search-gen:{person_id}"


def search_generation(person_id):
    return cache.get(search_generation_key(person_id), 0)


def bump_search_generation(person_id):
    key = search_generation_key(person_id)
    try:
        cache.incr(key)
    except ValueError:
        cache.set(key, 1, None)


# Keys --------------------------------------------------------------------------
def nearby_persons_key(person_id, lat, lng, radius_km, limit):
    gen = search_generation(person_id)
    return f"nearby-persons:{person_id}:{gen}:{lat}:{lng}:{radius_km}:{limit}"


def nearby_count_key(person_id, radius_km):
    gen = search_generation(person_id)
    return f"nearby-count:{person_id}:{gen}:{radius_km}"


def match_scores_key(kind, person_id, radius_km):
    gen = search_generation(person_id)
    return f"matches:{kind}:{person_id}:{gen}:{radius_km}"


def unread_count_key(group_id, person_id):
    return f"unread:{group_id}:{person_id}"


def get_or_compute(key, ttl, compute):
    value = cache.get(key)
    if value is not None:
        return value
    value = compute()
    cache.set(key, value, ttl)
    return value


def invalidate_unread(group_id, person_ids):
    cache.delete_many([unread_count_key(group_id, pid) for pid in person_ids])
