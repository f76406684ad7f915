# apps/prayers/services.py
import logging
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.db.models import Exists, F, OuterRef
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, Throttled

from apps.core.api_exceptions import AlreadyPrayed, PrayerGone
from .models import PrayerPost, PrayerResponse
from .constants import (
    PRAYER_FEED_LIMIT, PRAYER_POSTS_PER_WINDOW, PRAYER_POST_WINDOW_MINUTES, PRAYER_RATE_LIMIT_MESSAGE,
)

logger = logging.getLogger(__name__)


# Feed ------------------------------------------------------------------------------------------------
def feed_queryset(viewer):
    """Non-deleted posts, newest first, with user_prayed for the viewer and blocked authors hidden."""
    return (
        PrayerPost.objects
        .filter(deleted_at__isnull=True)
        .exclude(author__in=viewer.blocked_persons.all())
        .select_related('author')
        .annotate(user_prayed=Exists(
            PrayerResponse.objects.filter(prayer=OuterRef('pk'), person=viewer)
        ))
        .order_by('-created_at', '-id')
    )


def prayer_feed(viewer, limit=PRAYER_FEED_LIMIT):
    return list(feed_queryset(viewer)[:limit])


def recent_prayers(viewer, limit=3):
    from .serializers import PrayerPostSerializer
    return PrayerPostSerializer(prayer_feed(viewer, limit), many=True, context={'viewer': viewer}).data


# Lookup ----------------------------------------------------------------------------------------------
def get_prayer(prayer_id, for_update=False, allow_deleted=False) -> PrayerPost:
    qs = PrayerPost.objects.select_related('author')
    if for_update:
        qs = qs.select_for_update()
    prayer = qs.filter(pk=prayer_id).first()
    if prayer is None:
        raise NotFound("Prayer not found")
    if prayer.is_deleted and not allow_deleted:
        raise PrayerGone()
    return prayer


# Write -----------------------------------------------------------------------------------------------
def create_prayer(author, content) -> PrayerPost:
    window_start = timezone.now() - timedelta(minutes=PRAYER_POST_WINDOW_MINUTES)
    recent = PrayerPost.objects.filter(author=author, created_at__gte=window_start).count()
    if recent >= PRAYER_POSTS_PER_WINDOW:
        raise Throttled(detail=PRAYER_RATE_LIMIT_MESSAGE)

    prayer = PrayerPost.objects.create(author=author, content=content)
    logger.info(f"Person {author.id} posted prayer {prayer.id}")
    return prayer


def update_prayer(person, prayer_id, content) -> PrayerPost:
    with transaction.atomic():
        prayer = get_prayer(prayer_id, for_update=True)
        if prayer.author_id != person.pk:
            raise PermissionDenied("You can only edit your own prayers")
        prayer.content = content
        prayer.save(update_fields=['content', 'updated_at'])
    return prayer


def delete_prayer(person, prayer_id) -> None:
    with transaction.atomic():
        prayer = get_prayer(prayer_id, for_update=True)
        if prayer.author_id != person.pk:
            raise PermissionDenied("You can only delete your own prayers")
        prayer.deleted_at = timezone.now()
        prayer.save(update_fields=['deleted_at', 'updated_at'])
    logger.info(f"Person {person.id} deleted prayer {prayer_id}")


def record_prayer(person, prayer_id) -> PrayerPost:
    """Record that person prayed: one response row per person, counter incremented in the same transaction."""
    with transaction.atomic():
        prayer = PrayerPost.objects.filter(pk=prayer_id, deleted_at__isnull=True).first()
        if prayer is None:
            raise NotFound("Prayer not found")

        try:
            with transaction.atomic():
                PrayerResponse.objects.create(prayer=prayer, person=person)
        except IntegrityError:
            raise AlreadyPrayed()

        PrayerPost.objects.filter(pk=prayer.pk).update(prayer_count=F('prayer_count') + 1)

    prayer.refresh_from_db(fields=['prayer_count'])
    return prayer
