from django.contrib import admin
from .models import Bid

@admin.register(Bid)
class BidAdmin(admin.ModelAdmin):
    list_display = ('id', 'job', 'provider', 'amount', 'estimated_duration', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('job__title', 'provider__username')
    raw_id_fields = ('job', 'provider')
