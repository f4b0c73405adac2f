from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from core.exceptions import NotFoundError
from core.utils import envelope
from .models import Notification
from .serializers import NotificationSerializer

class NotificationListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="List the authenticated user's notifications, newest first.",
        manual_parameters=[
            openapi.Parameter('unread', openapi.IN_QUERY, type=openapi.TYPE_BOOLEAN),
        ],
        responses={200: NotificationSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        notifications = Notification.objects.filter(user=request.user)
        if request.query_params.get('unread') in ('1', 'true', 'True'):
            notifications = notifications.filter(is_read=False)
        serializer = NotificationSerializer(notifications[:100], many=True)
        return Response(envelope(serializer.data))

class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_description="Unread notification count for badge display.")
    def get(self, request):
        count = Notification.objects.filter(user=request.user, is_read=False).count()
        return Response(envelope({'count': count}))

class NotificationReadView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_description="Mark one notification as read.")
    def post(self, request, pk):
        try:
            notification = Notification.objects.get(pk=pk, user=request.user)
        except Notification.DoesNotExist:
            raise NotFoundError('Notification not found')
        notification.mark_as_read()
        return Response(envelope(NotificationSerializer(notification).data))

class NotificationReadAllView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_description="Mark every notification of the user as read.")
    def post(self, request):
        updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
        return Response(envelope({'updated': updated}))
