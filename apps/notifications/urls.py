from django.urls import path
from .views import NotificationListView, UnreadCountView, NotificationReadView, NotificationReadAllView

urlpatterns = [
    path('', NotificationListView.as_view(), name='notification_list'),
    path('unread-count/', UnreadCountView.as_view(), name='notification_unread_count'),
    path('read-all/', NotificationReadAllView.as_view(), name='notification_read_all'),
    path('<int:pk>/read/', NotificationReadView.as_view(), name='notification_read'),
]
