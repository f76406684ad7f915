from django.db import models
from django.utils import timezone

from apps.profiles.models import Person
from .constants import (
    GROUP_TYPE_CHOICES, GROUP_CATEGORY_CHOICES, GROUP_STATUS_CHOICES, CIRCLE, STATUS_ACTIVE,
    MEMBERSHIP_ROLE_CHOICES, MEMBERSHIP_STATUS_CHOICES, ROLE_MEMBER, MEMBER_PENDING,
    HUDDLE,
)


# GROUP Manager -----------------------------------------------------------------------------------------
class Group(models.Model):
    id = models.BigAutoField(primary_key=True)
    name = models.CharField(max_length=100, verbose_name='Name')
    description = models.CharField(max_length=300, null=True, blank=True, verbose_name='Description')
    protocol = models.CharField(max_length=500, null=True, blank=True, verbose_name='Protocol')
    image_url = models.URLField(max_length=500, null=True, blank=True, verbose_name='Image URL')
    type = models.CharField(max_length=20, choices=GROUP_TYPE_CHOICES, verbose_name='Type')
    category = models.CharField(max_length=10, choices=GROUP_CATEGORY_CHOICES, default=CIRCLE, verbose_name='Category')

    # Location
    location_name = models.CharField(max_length=200, null=True, blank=True, verbose_name='Location Name')
    latitude = models.FloatField(null=True, blank=True, verbose_name='Latitude')
    longitude = models.FloatField(null=True, blank=True, verbose_name='Longitude')
    is_virtual = models.BooleanField(default=False, verbose_name='Is Virtual')

    # Capacity
    min_size = models.PositiveSmallIntegerField(null=True, blank=True, verbose_name='Min Size')
    max_size = models.PositiveSmallIntegerField(null=True, blank=True, verbose_name='Max Size')
    current_size = models.PositiveIntegerField(default=0, verbose_name='Current Size')

    created_by = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='created_groups', verbose_name='Created By')
    leaders = models.ManyToManyField(Person, blank=True, related_name='led_groups', verbose_name='Leaders')
    is_public = models.BooleanField(default=True, verbose_name='Is Public')
    tags = models.JSONField(default=list, blank=True, verbose_name='Tags')
    status = models.CharField(max_length=10, choices=GROUP_STATUS_CHOICES, default=STATUS_ACTIVE, verbose_name='Status')

    created_at = models.DateTimeField(auto_now_add=True, verbose_name='Created At')
    updated_at = models.DateTimeField(auto_now=True, verbose_name='Updated At')

    class Meta:
        verbose_name = 'Group'
        verbose_name_plural = 'Groups'
        indexes = [
            models.Index(fields=['status', 'is_public', 'category'], name='group_discovery_idx'),
            models.Index(fields=['latitude', 'longitude'], name='group_lat_lng_idx'),
        ]

    def __str__(self):
        return self.name

    @property
    def is_huddle(self):
        return self.category == HUDDLE

    @property
    def is_full(self):
        return self.max_size is not None and self.current_size >= self.max_size


# GROUP MEMBERSHIP Manager ------------------------------------------------------------------------------
class GroupMembership(models.Model):
    id = models.BigAutoField(primary_key=True)
    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='memberships', verbose_name='Person')
    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='memberships', verbose_name='Group')
    role = models.CharField(max_length=10, choices=MEMBERSHIP_ROLE_CHOICES, default=ROLE_MEMBER, verbose_name='Role')
    status = models.CharField(max_length=10, choices=MEMBERSHIP_STATUS_CHOICES, default=MEMBER_PENDING, verbose_name='Status')

    join_requested_at = models.DateTimeField(default=timezone.now, verbose_name='Join Requested At')
    joined_at = models.DateTimeField(null=True, blank=True, verbose_name='Joined At')
    last_engaged_at = models.DateTimeField(null=True, blank=True, verbose_name='Last Engaged At')
    last_read_at = models.DateTimeField(null=True, blank=True, verbose_name='Last Read At')

    class Meta:
        verbose_name = 'Group Membership'
        verbose_name_plural = 'Group Memberships'
        constraints = [
            models.UniqueConstraint(fields=['person', 'group'], name='unique_group_membership'),
        ]
        indexes = [
            models.Index(fields=['group', 'status'], name='membership_group_status_idx'),
        ]

    def __str__(self):
        return f"{self.person} in {self.group} ({self.status})"
