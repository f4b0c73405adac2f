from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from apps.notifications.router import get_notifier

logger = logging.getLogger(__name__)

@receiver(post_save, sender='users.Provider')
def resync_provider_rooms(sender, instance, created, **kwargs):
    """Area rooms depend on the service category; refresh live connections on change."""
    if created:
        return
    try:
        get_notifier().resync_rooms(instance.user_id)
    except Exception as e:
        logger.error(f"Error scheduling room resync for provider {instance.id}: {str(e)}")

@receiver([post_save, post_delete], sender='users.ServiceLocation')
def resync_location_rooms(sender, instance, **kwargs):
    """Refresh area rooms when a provider adds, edits or drops a service location."""
    try:
        get_notifier().resync_rooms(instance.provider.user_id)
    except Exception as e:
        logger.error(f"Error scheduling room resync for location {instance.id}: {str(e)}")
