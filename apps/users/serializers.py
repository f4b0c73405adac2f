from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db.models import Q
from django.utils import timezone

from core.constants import SERVICE_CATEGORY_CHOICES

import logging

User = get_user_model()
logger = logging.getLogger(__name__)

class ServiceLocationSerializer(serializers.Serializer):
    city = serializers.CharField(max_length=100)
    district = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)

    def validate_city(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("City is required.")
        return value

    def validate_district(self, value):
        return (value or '').strip()

class ProviderProfileSerializer(serializers.Serializer):
    service_category = serializers.CharField()
    completed_jobs_count = serializers.IntegerField()
    rating_average = serializers.DecimalField(max_digits=3, decimal_places=2)
    total_reviews = serializers.IntegerField()
    service_locations = ServiceLocationSerializer(many=True, source='service_locations.all')

class UserSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()
    provider = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name', 'email', 'phone_number', 'role', 'provider']

    def get_role(self, obj):
        if obj.is_provider:
            return 'provider'
        if obj.is_requester:
            return 'requester'
        return None

    def get_provider(self, obj):
        if not obj.is_provider:
            return None
        return ProviderProfileSerializer(obj.provider).data

class LoginSerializer(serializers.Serializer):
    identifier = serializers.CharField(max_length=255, trim_whitespace=True)
    password = serializers.CharField(max_length=128, write_only=True)

    def validate(self, data):
        identifier = data.get('identifier').strip().lower()
        password = data.get('password')
        cache_key = f'login_attempts_{identifier}'
        attempts = cache.get(cache_key, 0)
        if attempts >= 5:
            logger.warning(f"Too many login attempts for {identifier}")
            raise serializers.ValidationError("Too many login attempts. Please try again in 15 minutes.")
        user = User.objects.filter(
            Q(email__iexact=identifier) | Q(phone_number=identifier) | Q(username__iexact=identifier)
        ).first()
        if not user or not user.check_password(password):
            logger.warning(f"Failed login for identifier: {identifier}")
            cache.set(cache_key, attempts + 1, 900)
            raise serializers.ValidationError("Invalid credentials.")
        if not user.is_active:
            raise serializers.ValidationError("User account is disabled. Please contact support.")
        cache.delete(cache_key)
        data['user'] = user
        return data

    def save(self):
        user = self.validated_data['user']
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        return user

class PushTokenSerializer(serializers.Serializer):
    push_token = serializers.CharField(max_length=255, allow_null=True, allow_blank=True)

class ServiceAreaSerializer(serializers.Serializer):
    service_category = serializers.ChoiceField(choices=SERVICE_CATEGORY_CHOICES, required=False)
    locations = ServiceLocationSerializer(many=True)

    def validate_locations(self, value):
        unique = []
        for location in value:
            key = (location['city'], location.get('district', ''))
            if key not in unique:
                unique.append(key)
        return [{'city': city, 'district': district} for city, district in unique]
