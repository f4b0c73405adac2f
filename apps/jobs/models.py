from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

from core.constants import JOB_STATUS_CHOICES, JOB_STATUS_OPEN, URGENCY_LEVEL_CHOICES

class JobPostQuerySet(models.QuerySet):
    def visible(self):
        """Jobs that have not been soft-deleted."""
        return self.filter(deleted_at__isnull=True)

class JobPost(models.Model):
    requester = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='job_posts')
    title = models.CharField(max_length=200)
    description = models.TextField()
    category = models.CharField(max_length=100)
    subcategory = models.CharField(max_length=100, blank=True, null=True)

    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    district = models.CharField(max_length=100)
    neighborhood = models.CharField(max_length=100, blank=True, null=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)

    urgency_level = models.CharField(max_length=10, choices=URGENCY_LEVEL_CHOICES, default='MEDIUM')
    estimated_budget = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)

    status = models.CharField(max_length=25, choices=JOB_STATUS_CHOICES, default=JOB_STATUS_OPEN)
    bid_count = models.PositiveIntegerField(default=0)
    assigned_provider = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_jobs'
    )
    accepted_bid = models.OneToOneField(
        'bids.Bid', on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    view_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, null=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = JobPostQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status', 'city', 'district']),
        ]

    def __str__(self):
        return f"{self.title} - {self.requester.username}"

    def is_owned_by(self, user):
        return self.requester_id == getattr(user, 'pk', user)

class Review(models.Model):
    job = models.OneToOneField(JobPost, on_delete=models.CASCADE, related_name='review')
    reviewer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews_given')
    provider = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews_received')
    rating = models.IntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Review for {self.job.title} ({self.rating}/5)"
