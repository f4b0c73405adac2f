from django.db import models
from django.conf import settings

from core.constants import CREDIT_TRANSACTION_CHOICES

class CreditAccount(models.Model):
    """Running credit balance of one provider. Changed only through CreditLedger.apply_delta."""
    provider = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='credit_account')
    balance = models.IntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=models.Q(balance__gte=0), name='credit_balance_non_negative'),
        ]

    def __str__(self):
        return f"{self.provider.username}: {self.balance} credit(s)"

class CreditLedgerEntry(models.Model):
    provider = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='credit_entries')
    amount = models.IntegerField()
    transaction_type = models.CharField(max_length=20, choices=CREDIT_TRANSACTION_CHOICES)
    related_id = models.CharField(max_length=64, blank=True, null=True)  # bid id for BID_SPENT / REFUND
    description = models.CharField(max_length=255, blank=True, default='')
    balance_after = models.IntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        verbose_name_plural = 'Credit ledger entries'
        indexes = [
            models.Index(fields=['provider', 'transaction_type', 'related_id']),
        ]

    def __str__(self):
        return f"{self.transaction_type} {self.amount:+d} for {self.provider.username} -> {self.balance_after}"
