from rest_framework import serializers
from .models import JobPost, Review
from core.constants import URGENCY_LEVEL_CHOICES

class JobRequesterSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    full_name = serializers.CharField(source='display_name')

class JobPostSerializer(serializers.ModelSerializer):
    requester = JobRequesterSerializer(read_only=True)
    location = serializers.SerializerMethodField()

    class Meta:
        model = JobPost
        fields = [
            'id', 'requester', 'title', 'description', 'category', 'subcategory', 'location',
            'urgency_level', 'estimated_budget', 'status', 'bid_count', 'assigned_provider',
            'accepted_bid', 'view_count', 'created_at', 'updated_at', 'cancelled_at',
            'cancellation_reason', 'completed_at'
        ]
        read_only_fields = fields

    def get_location(self, obj):
        return {
            'address': obj.address,
            'city': obj.city,
            'district': obj.district,
            'neighborhood': obj.neighborhood,
            'latitude': float(obj.latitude),
            'longitude': float(obj.longitude),
        }

class JobPostWriteSerializer(serializers.Serializer):
    """
    Type checks only. Required fields and state rules are enforced by
    JobService so that create and update share one set of messages.
    """
    title = serializers.CharField(required=False, allow_blank=True, max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(required=False, allow_blank=True, max_length=100)
    subcategory = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=100)
    address = serializers.CharField(required=False, allow_blank=True, max_length=255)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    district = serializers.CharField(required=False, allow_blank=True, max_length=100)
    neighborhood = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=100)
    latitude = serializers.DecimalField(max_digits=12, decimal_places=8, required=False)
    longitude = serializers.DecimalField(max_digits=12, decimal_places=8, required=False)
    urgency_level = serializers.ChoiceField(choices=URGENCY_LEVEL_CHOICES, required=False)
    estimated_budget = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)

    def to_internal_value(self, data):
        # Mobile clients send the location as a nested object
        location = data.get('location') if hasattr(data, 'get') else None
        if isinstance(location, dict):
            data = {**location, **{k: v for k, v in data.items() if k != 'location'}}
        return super().to_internal_value(data)

class JobCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)

class ReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = ['id', 'job', 'reviewer', 'provider', 'rating', 'comment', 'created_at']
        read_only_fields = fields

class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, allow_null=True)

class JobListQuerySerializer(serializers.Serializer):
    status = serializers.CharField(required=False)
    category = serializers.CharField(required=False)
    city = serializers.CharField(required=False)
    district = serializers.CharField(required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100)
