from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from portal.models import User
from .base import StrictSerializer, clean_text


class LoginSerializer(StrictSerializer):
    username = serializers.CharField()
    password = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Username is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class RegisterSerializer(StrictSerializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True)
    name = serializers.CharField(max_length=255)
    role = serializers.ChoiceField(choices=[c[0] for c in User.ROLE_CHOICES], required=False,
                                   default=User.ROLE_COORDINATOR)

    def validate_username(self, v):
        v = v.strip()
        if User.objects.filter(username=v).exists():
            raise serializers.ValidationError('Username already exists')
        return v

    def validate_name(self, v):
        v = clean_text(v)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v

    def validate(self, attrs):
        try:
            validate_password(attrs['password'], user=User(username=attrs['username'], name=attrs['name']))
        except DjangoValidationError as e:
            raise serializers.ValidationError({'password': e.messages})
        return attrs


class LogoutSerializer(StrictSerializer):
    refresh = serializers.CharField()


class RefreshSerializer(StrictSerializer):
    refresh = serializers.CharField()
