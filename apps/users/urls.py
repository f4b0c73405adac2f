from django.urls import path
from .views import AuthLoginView, UserProfileView, PushTokenView, ProviderServiceAreaView

urlpatterns = [
    # Authentication
    path('auth/login/', AuthLoginView.as_view(), name='auth_login'),

    # Profile Management
    path('users/profile/', UserProfileView.as_view(), name='user_profile'),
    path('users/push-token/', PushTokenView.as_view(), name='user_push_token'),
    path('users/provider/service-areas/', ProviderServiceAreaView.as_view(), name='provider_service_areas'),
]
