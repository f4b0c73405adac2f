from rest_framework import serializers
from .models import CreditLedgerEntry
from core.constants import CREDIT_PACKAGES

class CreditLedgerEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditLedgerEntry
        fields = ['id', 'amount', 'transaction_type', 'related_id', 'description', 'balance_after', 'created_at']
        read_only_fields = fields

class CreditPurchaseSerializer(serializers.Serializer):
    package_id = serializers.ChoiceField(choices=list(CREDIT_PACKAGES.keys()))
