from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password


# REGISTER Serializer --------------------------------------------------------------
class RegisterUserSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    display_name = serializers.CharField(min_length=1, max_length=100, trim_whitespace=True)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_password(self, value):
        validate_password(value)
        return value

