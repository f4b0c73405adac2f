import logging
from functools import partial

from django.db import transaction

from .models import Notification
from .push import ExpoPushSender
from .rooms import room_key, target_rooms
from .transport import ChannelsTransport, group_name

logger = logging.getLogger(__name__)


class NotificationRouter:
    """
    Fans lifecycle events out to a single user or to the providers of an area.

    Delivery happens after the surrounding transaction commits and is best
    effort: the durable record, the real-time emit and the push are each
    attempted independently and failures are only logged.
    """

    def __init__(self, transport=None, push_sender=None):
        self.transport = transport or ChannelsTransport()
        self.push_sender = push_sender or ExpoPushSender()

    def notify_user(self, user_id, event, payload):
        transaction.on_commit(partial(self._deliver_to_user, user_id, event, dict(payload)), robust=True)

    def notify_area(self, city, district, category, event, payload, exclude_user_id=None):
        transaction.on_commit(
            partial(self._deliver_to_area, city, district, category, event, dict(payload), exclude_user_id),
            robust=True,
        )

    def resync_rooms(self, user_id):
        transaction.on_commit(partial(self._resync, user_id), robust=True)

    def _deliver_to_user(self, user_id, event, payload):
        self._record([user_id], event, payload)

        try:
            self.transport.emit_to_user(user_id, event, payload)
            logger.info(f"Real-time notification sent to user {user_id}: {event}")
        except Exception as e:
            logger.error(f"Failed to emit {event} to user {user_id}: {str(e)}")

        self._push(user_id, event, payload)

    def _deliver_to_area(self, city, district, category, event, payload, exclude_user_id):
        try:
            user_ids = self._area_audience(city, district, category, exclude_user_id)
        except Exception as e:
            logger.error(f"Failed to resolve audience of {event} in {city}/{district}: {str(e)}")
            user_ids = []
        self._record(user_ids, event, payload)

        for room in target_rooms(city, district, category):
            try:
                self.transport.emit_to_room(room, event, payload)
                logger.info(f"Area notification {event} sent to {room}")
            except Exception as e:
                logger.error(f"Failed to emit {event} to {room}: {str(e)}")

    def _area_audience(self, city, district, category, exclude_user_id=None):
        """
        Providers whose area rooms receive the emit. Locations are compared by
        Channels group name so the stored records reach the same people as
        the live event.
        """
        from apps.users.models import ServiceLocation

        groups = {group_name(room) for room in target_rooms(city, district, category)}
        locations = ServiceLocation.objects.filter(provider__service_category=category)
        if exclude_user_id is not None:
            locations = locations.exclude(provider__user_id=exclude_user_id)
        user_ids = []
        for user_id, loc_city, loc_district in locations.values_list('provider__user_id', 'city', 'district'):
            if user_id not in user_ids and group_name(room_key(loc_city, loc_district, category)) in groups:
                user_ids.append(user_id)
        return user_ids

    def _record(self, user_ids, event, payload):
        if not user_ids:
            return
        try:
            Notification.objects.bulk_create([
                Notification(
                    user_id=user_id,
                    type=event,
                    title=payload.get('title', ''),
                    message=payload.get('message', ''),
                    data=payload,
                    related_id=payload.get('related_id'),
                    related_type=payload.get('related_type'),
                )
                for user_id in user_ids
            ])
        except Exception as e:
            logger.error(f"Failed to store {event} notification for {len(user_ids)} user(s): {str(e)}")

    def _push(self, user_id, event, payload):
        from apps.users.models import User

        try:
            token = User.objects.filter(pk=user_id).values_list('push_token', flat=True).first()
            if not token:
                return
            self.push_sender.send(
                token,
                payload.get('title') or 'New notification',
                payload.get('message') or 'You have a new notification.',
                {**payload, 'event': event},
            )
        except Exception as e:
            logger.warning(f"Push notification for user {user_id} failed: {str(e)}")

    def _resync(self, user_id):
        try:
            self.transport.resync_rooms(user_id)
        except Exception as e:
            logger.error(f"Failed to resync area rooms for user {user_id}: {str(e)}")


def get_notifier():
    return NotificationRouter()
