from django.contrib import admin
from .models import User, Requester, Provider, ServiceLocation

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'phone_number', 'is_requester', 'is_provider', 'is_superuser')
    list_filter = ('is_superuser',)
    search_fields = ('username', 'email', 'phone_number')

@admin.register(Requester)
class RequesterAdmin(admin.ModelAdmin):
    list_display = ('user', 'city')
    search_fields = ('user__username', 'user__email')

class ServiceLocationInline(admin.TabularInline):
    model = ServiceLocation
    extra = 0

@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ('user', 'service_category', 'completed_jobs_count', 'rating_average', 'total_reviews')
    list_filter = ('service_category',)
    search_fields = ('user__username', 'user__email')
    inlines = [ServiceLocationInline]
