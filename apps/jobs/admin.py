from django.contrib import admin
from .models import JobPost, Review

@admin.register(JobPost)
class JobPostAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'requester', 'category', 'city', 'district', 'status', 'bid_count', 'created_at')
    list_filter = ('status', 'category', 'urgency_level', 'city')
    search_fields = ('title', 'description', 'requester__username')
    raw_id_fields = ('requester', 'assigned_provider', 'accepted_bid')

@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('job', 'reviewer', 'provider', 'rating', 'created_at')
    list_filter = ('rating',)
