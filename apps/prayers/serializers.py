from rest_framework import serializers

from .models import PrayerPost
from .constants import MAX_PRAYER_LENGTH


class PrayerAuthorSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    display_name = serializers.CharField()


class PrayerPostSerializer(serializers.ModelSerializer):
    author = PrayerAuthorSerializer(read_only=True)
    user_prayed = serializers.SerializerMethodField()

    class Meta:
        model = PrayerPost
        fields = ['id', 'content', 'prayer_count', 'created_at', 'updated_at', 'author', 'user_prayed']
        read_only_fields = fields

    def get_user_prayed(self, obj):
        # Annotated by the feed query; single objects fall back to a lookup
        annotated = getattr(obj, 'user_prayed', None)
        if annotated is not None:
            return bool(annotated)
        viewer = self.context.get('viewer')
        if viewer is None:
            return False
        return obj.responses.filter(person=viewer).exists()


class PrayerContentSerializer(serializers.Serializer):
    content = serializers.CharField(min_length=1, max_length=MAX_PRAYER_LENGTH, trim_whitespace=True)
