from django.db import models
from django.conf import settings

from core.constants import BID_STATUS_CHOICES, BID_STATUS_PENDING, BID_ACTIVE_STATUSES

class Bid(models.Model):
    job = models.ForeignKey('jobs.JobPost', on_delete=models.CASCADE, related_name='bids')
    provider = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bids')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    estimated_duration = models.PositiveIntegerField(help_text='Estimated duration in hours')
    estimated_start_date = models.DateTimeField(null=True, blank=True)
    message = models.TextField()
    status = models.CharField(max_length=20, choices=BID_STATUS_CHOICES, default=BID_STATUS_PENDING)
    accepted_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['job', 'provider'],
                condition=models.Q(status__in=BID_ACTIVE_STATUSES),
                name='one_active_bid_per_provider',
            ),
        ]

    def __str__(self):
        return f"Bid #{self.id} by {self.provider.username} on {self.job.title} ({self.status})"
