from rest_framework import serializers

from apps.core.geo.privacy import approximate_distance
from apps.core.geo.proximity import VIRTUAL_DISTANCE_KM
from apps.profiles.constants import DEFAULT_SEARCH_RADIUS_KM, MAX_SEARCH_RADIUS_KM, MAX_NEARBY_LIMIT
from .models import Group, GroupMembership
from .constants import (
    GROUP_TYPE_CHOICES, GROUP_CATEGORY_CHOICES, GROUP_STATUS_CHOICES, CIRCLE, HUDDLE,
    MIN_GROUP_SIZE, MAX_GROUP_SIZE, HUDDLE_MIN_SIZE, HUDDLE_MAX_SIZE,
    DEFAULT_GROUP_SEARCH_LIMIT, MEMBER_ACTIVE,
)


# GROUP Create / Update --------------------------------------------------------------
class GroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=1, max_length=100)
    description = serializers.CharField(max_length=300, required=False, allow_blank=True)
    protocol = serializers.CharField(max_length=500, required=False, allow_blank=True)
    image_url = serializers.URLField(max_length=500, required=False)
    type = serializers.ChoiceField(choices=GROUP_TYPE_CHOICES)
    category = serializers.ChoiceField(choices=GROUP_CATEGORY_CHOICES, default=CIRCLE)
    location_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False)
    is_virtual = serializers.BooleanField(default=False)
    min_size = serializers.IntegerField(min_value=MIN_GROUP_SIZE, max_value=MAX_GROUP_SIZE, required=False)
    max_size = serializers.IntegerField(min_value=MIN_GROUP_SIZE, max_value=MAX_GROUP_SIZE, required=False)
    is_public = serializers.BooleanField(default=True)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False, max_length=20)

    def validate(self, attrs):
        if ("latitude" in attrs) != ("longitude" in attrs):
            raise serializers.ValidationError({"location": "Latitude and longitude must be provided together."})

        min_size = attrs.get("min_size")
        max_size = attrs.get("max_size")
        if min_size is not None and max_size is not None and min_size > max_size:
            raise serializers.ValidationError({"min_size": "Minimum size cannot exceed maximum size."})

        if attrs.get("category") == HUDDLE:
            for field in ("min_size", "max_size"):
                value = attrs.get(field)
                if value is None or not HUDDLE_MIN_SIZE <= value <= HUDDLE_MAX_SIZE:
                    raise serializers.ValidationError({
                        field: f"Huddles must have between {HUDDLE_MIN_SIZE} and {HUDDLE_MAX_SIZE} members."
                    })
        return attrs


class GroupUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=1, max_length=100, required=False)
    description = serializers.CharField(max_length=300, required=False, allow_blank=True)
    protocol = serializers.CharField(max_length=500, required=False, allow_blank=True)
    max_size = serializers.IntegerField(min_value=MIN_GROUP_SIZE, max_value=MAX_GROUP_SIZE, required=False, allow_null=True)
    status = serializers.ChoiceField(choices=GROUP_STATUS_CHOICES, required=False)


# GROUP Read -------------------------------------------------------------------------
class GroupSerializer(serializers.ModelSerializer):
    creator_name = serializers.CharField(source='created_by.display_name', read_only=True)

    class Meta:
        model = Group
        fields = [
            'id', 'name', 'description', 'protocol', 'image_url', 'type', 'category',
            'location_name', 'latitude', 'longitude', 'is_virtual',
            'min_size', 'max_size', 'current_size', 'is_public', 'tags', 'status',
            'created_by', 'creator_name', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class NearbyGroupSerializer(GroupSerializer):
    distance_km = serializers.SerializerMethodField()
    distance_label = serializers.SerializerMethodField()

    class Meta(GroupSerializer.Meta):
        fields = GroupSerializer.Meta.fields + ['distance_km', 'distance_label']
        read_only_fields = fields

    def _distance(self, obj):
        distance = getattr(obj, 'distance_km', None)
        if distance is None or distance >= VIRTUAL_DISTANCE_KM:
            return None
        return distance

    def get_distance_km(self, obj):
        distance = self._distance(obj)
        return None if distance is None else round(distance, 2)

    def get_distance_label(self, obj):
        distance = self._distance(obj)
        if distance is None:
            return "Online" if obj.is_virtual else None
        return approximate_distance(distance)


class GroupMemberSerializer(serializers.ModelSerializer):
    person_id = serializers.IntegerField(source='person.id', read_only=True)
    display_name = serializers.CharField(source='person.display_name', read_only=True)
    archetype = serializers.CharField(source='person.archetype', read_only=True)

    class Meta:
        model = GroupMembership
        fields = ['id', 'person_id', 'display_name', 'archetype', 'role', 'joined_at']
        read_only_fields = fields


class GroupDetailSerializer(GroupSerializer):
    members = serializers.SerializerMethodField()
    distance_km = serializers.SerializerMethodField()

    class Meta(GroupSerializer.Meta):
        fields = GroupSerializer.Meta.fields + ['members', 'distance_km']
        read_only_fields = fields

    def get_members(self, obj):
        memberships = [m for m in obj.memberships.all() if m.status == MEMBER_ACTIVE]
        return GroupMemberSerializer(memberships, many=True).data

    def get_distance_km(self, obj):
        distance = self.context.get('distance_km')
        return None if distance is None else round(distance, 2)


class MembershipSerializer(serializers.ModelSerializer):
    class Meta:
        model = GroupMembership
        fields = ['id', 'person', 'group', 'role', 'status', 'join_requested_at', 'joined_at', 'last_read_at']
        read_only_fields = fields


# NEARBY Search ----------------------------------------------------------------------
class GroupSearchSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
    radius = serializers.FloatField(min_value=1, max_value=MAX_SEARCH_RADIUS_KM, default=DEFAULT_SEARCH_RADIUS_KM)
    type = serializers.ChoiceField(choices=GROUP_TYPE_CHOICES, required=False)
    tags = serializers.CharField(required=False, allow_blank=True)
    minSize = serializers.IntegerField(source='min_size', min_value=0, required=False)
    maxSize = serializers.IntegerField(source='max_size', min_value=0, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=MAX_NEARBY_LIMIT, default=DEFAULT_GROUP_SEARCH_LIMIT)

    def validate_tags(self, value):
        return [tag.strip() for tag in value.split(',') if tag.strip()]
