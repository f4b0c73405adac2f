from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authtoken.models import Token
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from django.db import transaction

from apps.notifications.push import is_expo_push_token
from core.exceptions import ValidationError
from core.utils import IsProvider, envelope
from .models import ServiceLocation
from .serializers import LoginSerializer, UserSerializer, PushTokenSerializer, ServiceAreaSerializer

import logging

logger = logging.getLogger(__name__)

class AuthLoginView(APIView):
    permission_classes = []

    @swagger_auto_schema(
        request_body=LoginSerializer,
        responses={
            200: openapi.Response(
                description='Login successful',
                schema=openapi.Schema(
                    type=openapi.TYPE_OBJECT,
                    properties={
                        'token': openapi.Schema(type=openapi.TYPE_STRING),
                        'user': openapi.Schema(type=openapi.TYPE_OBJECT),
                    }
                )
            ),
            400: 'Invalid credentials'
        }
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        token, created = Token.objects.get_or_create(user=user)
        return Response(envelope({
            "token": token.key,
            "user": UserSerializer(user).data
        }))

class UserProfileView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Profile of the authenticated user, including provider service areas.",
        responses={200: UserSerializer, 401: 'Unauthorized'}
    )
    def get(self, request):
        return Response(envelope(UserSerializer(request.user).data))

class PushTokenView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Register or clear the Expo push token of the current device.",
        request_body=PushTokenSerializer,
        responses={200: 'Saved', 400: 'Invalid push token', 401: 'Unauthorized'}
    )
    def put(self, request):
        serializer = PushTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        push_token = serializer.validated_data['push_token'] or None
        if push_token and not is_expo_push_token(push_token):
            raise ValidationError('Invalid Expo push token')
        request.user.push_token = push_token
        request.user.save(update_fields=['push_token'])
        return Response(envelope({'push_token': push_token}))

class ProviderServiceAreaView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(
        operation_description=(
            "Replace the provider's service locations and optionally the service category. "
            "Leave district empty to serve the whole city. Live connections rejoin their area rooms."
        ),
        request_body=ServiceAreaSerializer,
        responses={200: UserSerializer, 400: 'Bad Request', 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def put(self, request):
        serializer = ServiceAreaSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        provider = request.user.provider

        with transaction.atomic():
            provider.service_locations.all().delete()
            ServiceLocation.objects.bulk_create([
                ServiceLocation(provider=provider, city=location['city'], district=location['district'])
                for location in serializer.validated_data['locations']
            ])
            if 'service_category' in serializer.validated_data:
                provider.service_category = serializer.validated_data['service_category']
            # post_save on the provider schedules the room resync
            provider.save()

        logger.info(
            f"Provider {provider.id} now serves {len(serializer.validated_data['locations'])} location(s) "
            f"as {provider.service_category}"
        )
        return Response(envelope(UserSerializer(request.user).data))
