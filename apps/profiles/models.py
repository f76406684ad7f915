from django.db import models
from django.utils import timezone
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

from .constants import (
    LOCATION_PRIVACY_CHOICES, APPROXIMATE,
    DEFAULT_PROXIMITY_RADIUS_KM, ONBOARDING_NONE, ONBOARDING_COMPLETE,
    MIN_PROFICIENCY, MAX_PROFICIENCY, DEFAULT_PROFICIENCY,
)


# PERSON Manager ----------------------------------------------------------------------------------------
class Person(models.Model):
    id = models.BigAutoField(primary_key=True)
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='person', verbose_name='User')

    display_name = models.CharField(max_length=100, verbose_name='Display Name')
    bio = models.CharField(max_length=500, null=True, blank=True, verbose_name='Bio')
    profile_image_url = models.URLField(max_length=500, null=True, blank=True, verbose_name='Profile Image URL')
    phone = models.CharField(max_length=30, null=True, blank=True, verbose_name='Phone')

    # Location
    latitude = models.FloatField(null=True, blank=True, verbose_name='Latitude')
    longitude = models.FloatField(null=True, blank=True, verbose_name='Longitude')
    city = models.CharField(max_length=100, null=True, blank=True, verbose_name='City')
    region = models.CharField(max_length=100, null=True, blank=True, verbose_name='Region')
    community = models.CharField(max_length=100, null=True, blank=True, verbose_name='Community')
    proximity_radius_km = models.PositiveIntegerField(default=DEFAULT_PROXIMITY_RADIUS_KM, verbose_name='Proximity Radius (km)')
    location_privacy = models.CharField(max_length=20, choices=LOCATION_PRIVACY_CHOICES, default=APPROXIMATE, verbose_name='Location Privacy')

    # Demographics / personality
    age_range = models.CharField(max_length=20, null=True, blank=True, verbose_name='Age Range')
    gender = models.CharField(max_length=20, null=True, blank=True, verbose_name='Gender')
    archetype = models.CharField(max_length=50, null=True, blank=True, verbose_name='Archetype')
    connection_style = models.CharField(max_length=50, null=True, blank=True, verbose_name='Connection Style')
    personality_traits = models.JSONField(null=True, blank=True, verbose_name='Personality Traits')
    group_preferences = models.JSONField(null=True, blank=True, verbose_name='Group Preferences')
    leadership_signals = models.JSONField(null=True, blank=True, verbose_name='Leadership Signals')
    is_potential_shepherd = models.BooleanField(default=False, verbose_name='Is Potential Shepherd')

    # Safety
    blocked_persons = models.ManyToManyField('self', symmetrical=False, blank=True, related_name='blocked_by', verbose_name='Blocked Persons')
    safety_flags = models.JSONField(default=list, blank=True, verbose_name='Safety Flags')

    onboarding_level = models.PositiveSmallIntegerField(default=ONBOARDING_NONE, verbose_name='Onboarding Level')
    last_active_at = models.DateTimeField(default=timezone.now, verbose_name='Last Active At')
    created_at = models.DateTimeField(auto_now_add=True, verbose_name='Created At')
    updated_at = models.DateTimeField(auto_now=True, verbose_name='Updated At')

    class Meta:
        verbose_name = 'Person'
        verbose_name_plural = 'Persons'
        indexes = [
            models.Index(fields=['onboarding_level'], name='person_onboarding_idx'),
            models.Index(fields=['latitude', 'longitude'], name='person_lat_lng_idx'),
        ]

    def __str__(self):
        return self.display_name

    @property
    def is_onboarded(self):
        return self.onboarding_level >= ONBOARDING_COMPLETE

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    def active_memberships(self):
        """ACTIVE group memberships with their group, using a prefetch when one exists."""
        prefetched = getattr(self, 'prefetched_active_memberships', None)
        if prefetched is not None:
            return prefetched
        from apps.gatherings.constants import MEMBER_ACTIVE
        return self.memberships.filter(status=MEMBER_ACTIVE).select_related('group')

    def touch(self, save=True):
        self.last_active_at = timezone.now()
        if save:
            self.save(update_fields=['last_active_at'])


# INTEREST Manager --------------------------------------------------------------------------------------
class Interest(models.Model):
    id = models.BigAutoField(primary_key=True)
    name = models.CharField(max_length=100, unique=True, verbose_name='Name')
    category = models.CharField(max_length=100, db_index=True, verbose_name='Category')
    subcategory = models.CharField(max_length=100, null=True, blank=True, verbose_name='Subcategory')
    description = models.TextField(null=True, blank=True, verbose_name='Description')
    popularity = models.PositiveIntegerField(default=0, verbose_name='Popularity')
    metadata = models.JSONField(null=True, blank=True, verbose_name='Metadata')

    class Meta:
        verbose_name = 'Interest'
        verbose_name_plural = 'Interests'
        ordering = ['-popularity', 'name']

    def __str__(self):
        return self.name


class PersonInterest(models.Model):
    id = models.BigAutoField(primary_key=True)
    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='interests', verbose_name='Person')
    interest = models.ForeignKey(Interest, on_delete=models.CASCADE, related_name='person_interests', verbose_name='Interest')
    proficiency_level = models.PositiveSmallIntegerField(
        default=DEFAULT_PROFICIENCY,
        validators=[MinValueValidator(MIN_PROFICIENCY), MaxValueValidator(MAX_PROFICIENCY)],
        verbose_name='Proficiency Level',
    )

    class Meta:
        verbose_name = 'Person Interest'
        verbose_name_plural = 'Person Interests'
        constraints = [
            models.UniqueConstraint(fields=['person', 'interest'], name='unique_person_interest'),
        ]

    def __str__(self):
        return f"{self.person} - {self.interest} ({self.proficiency_level})"
