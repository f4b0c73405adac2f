from django.contrib import admin
from django.urls import path, include
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

schema_view = get_schema_view(
    openapi.Info(
        title="FixConnect API",
        default_version='v1',
        description="API for the FixConnect services marketplace",
    ),
    public=True,
)

urlpatterns = [
    path('', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('admin/', admin.site.urls),
    path('', include('apps.users.urls')),
    path('jobs/', include('apps.jobs.urls')),
    path('bids/', include('apps.bids.urls')),
    path('credits/', include('apps.credits.urls')),
    path('notifications/', include('apps.notifications.urls')),
]
