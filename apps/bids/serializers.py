from rest_framework import serializers
from .models import Bid

class BidProviderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    full_name = serializers.CharField(source='display_name')

class BidSerializer(serializers.ModelSerializer):
    provider = BidProviderSerializer(read_only=True)
    job_title = serializers.CharField(source='job.title', read_only=True)

    class Meta:
        model = Bid
        fields = [
            'id', 'job', 'job_title', 'provider', 'amount', 'estimated_duration',
            'estimated_start_date', 'message', 'status', 'accepted_at', 'rejected_at',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

class BidCreateSerializer(serializers.Serializer):
    job_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    estimated_duration = serializers.IntegerField()
    message = serializers.CharField(allow_blank=True, trim_whitespace=True)
    estimated_start_date = serializers.DateTimeField(required=False, allow_null=True)

class BidUpdateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    estimated_duration = serializers.IntegerField(required=False)
    message = serializers.CharField(required=False, allow_blank=True)
    estimated_start_date = serializers.DateTimeField(required=False, allow_null=True)
