from rest_framework import serializers

from .models import Person, Interest, PersonInterest
from .constants import (
    LOCATION_PRIVACY_CHOICES,
    MIN_PROFICIENCY, MAX_PROFICIENCY, DEFAULT_PROFICIENCY, MAX_INTERESTS,
    DEFAULT_SEARCH_RADIUS_KM, MAX_SEARCH_RADIUS_KM, DEFAULT_NEARBY_LIMIT, MAX_NEARBY_LIMIT,
    DEFAULT_MATCH_LIMIT, MAX_MATCH_LIMIT, DEFAULT_MATCH_MIN_SCORE, DEFAULT_MATCH_RADIUS_KM,
    MIN_OPENNESS, MAX_OPENNESS,
)
from apps.gatherings.constants import GROUP_TYPE_CHOICES, MIN_GROUP_SIZE, MAX_GROUP_SIZE


def validate_coordinate_pair(attrs):
    # Latitude and longitude only make sense together
    if ("latitude" in attrs) != ("longitude" in attrs):
        raise serializers.ValidationError({"location": "Latitude and longitude must be provided together."})
    return attrs


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# INTEREST Serializers ---------------------------------------------------------------
class InterestSerializer(serializers.ModelSerializer):
    class Meta:
        model = Interest
        fields = ['id', 'name', 'category', 'subcategory', 'description', 'popularity']


class PersonInterestSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source='interest.id', read_only=True)
    name = serializers.CharField(source='interest.name', read_only=True)
    category = serializers.CharField(source='interest.category', read_only=True)

    class Meta:
        model = PersonInterest
        fields = ['id', 'name', 'category', 'proficiency_level']


# PERSON Serializers -----------------------------------------------------------------
class MyPersonSerializer(serializers.ModelSerializer):
    """Own profile: the only projection that carries email and exact coordinates."""
    email = serializers.EmailField(source='user.email', read_only=True)
    interests = PersonInterestSerializer(many=True, read_only=True)
    groups = serializers.SerializerMethodField()

    class Meta:
        model = Person
        fields = [
            'id', 'email', 'display_name', 'bio', 'profile_image_url',
            'latitude', 'longitude', 'community', 'city', 'region',
            'location_privacy', 'proximity_radius_km', 'age_range', 'gender',
            'archetype', 'connection_style', 'leadership_signals',
            'personality_traits', 'group_preferences',
            'onboarding_level', 'interests', 'groups',
            'last_active_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_groups(self, obj):
        return [
            {
                'id': m.group.id,
                'name': m.group.name,
                'type': m.group.type,
                'category': m.group.category,
                'role': m.role,
            }
            for m in obj.active_memberships()
        ]


class PersonUpdateSerializer(serializers.Serializer):
    display_name = serializers.CharField(min_length=1, max_length=100, required=False)
    bio = serializers.CharField(max_length=500, required=False, allow_blank=True)
    profile_image_url = serializers.URLField(max_length=500, required=False)
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False)
    location_privacy = serializers.ChoiceField(choices=LOCATION_PRIVACY_CHOICES, required=False)
    proximity_radius_km = serializers.IntegerField(min_value=1, max_value=200, required=False)
    age_range = serializers.CharField(max_length=20, required=False)
    gender = serializers.CharField(max_length=20, required=False)

    def validate(self, attrs):
        return validate_coordinate_pair(attrs)


class InterestSelectionSerializer(serializers.Serializer):
    interest_id = serializers.IntegerField()
    proficiency_level = serializers.IntegerField(min_value=MIN_PROFICIENCY, max_value=MAX_PROFICIENCY)


class PersonalityTraitsSerializer(serializers.Serializer):
    openness = serializers.IntegerField(min_value=MIN_OPENNESS, max_value=MAX_OPENNESS)


class GroupPreferencesSerializer(serializers.Serializer):
    size_min = serializers.IntegerField(min_value=MIN_GROUP_SIZE, max_value=MAX_GROUP_SIZE, required=False)
    size_max = serializers.IntegerField(min_value=MIN_GROUP_SIZE, max_value=MAX_GROUP_SIZE, required=False)
    types = serializers.ListField(child=serializers.ChoiceField(choices=GROUP_TYPE_CHOICES), required=False)

    def validate(self, attrs):
        if "size_min" in attrs and "size_max" in attrs and attrs["size_min"] > attrs["size_max"]:
            raise serializers.ValidationError("size_min must be less than or equal to size_max")
        return attrs


class ProfileUpdateSerializer(serializers.Serializer):
    interests = InterestSelectionSerializer(many=True, required=False)
    personality_traits = PersonalityTraitsSerializer(required=False, allow_null=True)
    group_preferences = GroupPreferencesSerializer(required=False, allow_null=True)
    archetype = serializers.CharField(max_length=50, required=False, allow_null=True)
    connection_style = serializers.CharField(max_length=50, required=False, allow_null=True)
    community = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    region = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    proximity_radius_km = serializers.IntegerField(min_value=1, max_value=999, required=False)
    bio = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        for field in ('community', 'city', 'region', 'bio'):
            if field in attrs:
                attrs[field] = blank_to_none(attrs[field])
        return attrs


class ReplaceInterestsSerializer(serializers.Serializer):
    interest_ids = serializers.ListField(
        child=serializers.IntegerField(),
        min_length=1,
        max_length=MAX_INTERESTS,
    )
    proficiency_level = serializers.IntegerField(
        min_value=MIN_PROFICIENCY,
        max_value=MAX_PROFICIENCY,
        default=DEFAULT_PROFICIENCY,
    )


# NEARBY Search ----------------------------------------------------------------------
class NearbySearchSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
    radius = serializers.FloatField(min_value=1, max_value=MAX_SEARCH_RADIUS_KM, default=DEFAULT_SEARCH_RADIUS_KM)
    limit = serializers.IntegerField(min_value=1, max_value=MAX_NEARBY_LIMIT, default=DEFAULT_NEARBY_LIMIT)


# MATCH Search -----------------------------------------------------------------------
class MatchSearchSerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=MAX_MATCH_LIMIT, default=DEFAULT_MATCH_LIMIT)
    minScore = serializers.FloatField(source='min_score', min_value=0, max_value=1, default=DEFAULT_MATCH_MIN_SCORE)
    useCache = serializers.BooleanField(source='use_cache', default=True)
    radius = serializers.FloatField(min_value=1, max_value=MAX_SEARCH_RADIUS_KM, default=DEFAULT_MATCH_RADIUS_KM)
