from rest_framework import serializers

from .models import HuddleMessage
from .constants import MAX_MESSAGE_LENGTH


class MessageSenderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    display_name = serializers.CharField()
    profile_image_url = serializers.CharField(allow_null=True)
    archetype = serializers.CharField(allow_null=True)


class HuddleMessageSerializer(serializers.ModelSerializer):
    sender = MessageSenderSerializer(read_only=True)
    huddle_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = HuddleMessage
        fields = ['id', 'huddle_id', 'sender', 'content', 'created_at']
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(min_length=1, max_length=MAX_MESSAGE_LENGTH, trim_whitespace=True)
