from django.db import models
from django.contrib.auth.models import AbstractUser

from core.constants import ALL_DISTRICTS, SERVICE_CATEGORY_CHOICES, DEFAULT_SERVICE_CATEGORY

class User(AbstractUser):
    email = models.EmailField(blank=True, null=True, unique=True)
    phone_number = models.CharField(max_length=15, blank=True, null=True, unique=True)
    push_token = models.CharField(max_length=255, blank=True, null=True)

    @property
    def is_requester(self):
        return hasattr(self, 'requester')

    @property
    def is_provider(self):
        return hasattr(self, 'provider')

    @property
    def display_name(self):
        return self.get_full_name() or self.username

class Requester(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='requester')
    city = models.CharField(max_length=100, blank=True, null=True)

    def __str__(self):
        return f"Requester: {self.user.username}"

class Provider(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='provider')
    service_category = models.CharField(
        max_length=30, choices=SERVICE_CATEGORY_CHOICES, default=DEFAULT_SERVICE_CATEGORY
    )
    completed_jobs_count = models.PositiveIntegerField(default=0)
    rating_average = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    total_reviews = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"Provider: {self.user.username} ({self.service_category})"

class ServiceLocation(models.Model):
    """A city, optionally narrowed to one district, that a provider serves."""
    provider = models.ForeignKey(Provider, on_delete=models.CASCADE, related_name='service_locations')
    city = models.CharField(max_length=100)
    district = models.CharField(max_length=100, blank=True, default='')

    class Meta:
        unique_together = ('provider', 'city', 'district')

    def __str__(self):
        return f"{self.city}/{self.district or ALL_DISTRICTS}"
