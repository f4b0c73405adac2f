import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils.text import slugify

logger = logging.getLogger(__name__)


def user_group(user_id):
    return f"user.{user_id}"


def group_name(room):
    """
    Channels group names only allow ASCII letters, digits, '-', '_' and '.',
    so each ':' separated segment of a room key is slugified.
    """
    segments = [slugify(segment) or '_' for segment in room.split(':')]
    return '.'.join(segments)[:99]


class ChannelsTransport:
    """Real-time transport over the Django Channels layer."""

    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    def join_room(self, channel_name, room):
        async_to_sync(self.channel_layer.group_add)(group_name(room), channel_name)

    def leave_room(self, channel_name, room):
        async_to_sync(self.channel_layer.group_discard)(group_name(room), channel_name)

    def join_user(self, channel_name, user_id):
        async_to_sync(self.channel_layer.group_add)(user_group(user_id), channel_name)

    def leave_user(self, channel_name, user_id):
        async_to_sync(self.channel_layer.group_discard)(user_group(user_id), channel_name)

    def emit_to_room(self, room, event, payload):
        self._send(group_name(room), {'type': 'notify.event', 'event': event, 'payload': payload})

    def emit_to_user(self, user_id, event, payload):
        self._send(user_group(user_id), {'type': 'notify.event', 'event': event, 'payload': payload})

    def resync_rooms(self, user_id):
        """Ask every live connection of a user to recompute its area rooms."""
        self._send(user_group(user_id), {'type': 'rooms.resync'})

    def _send(self, group, message):
        if self.channel_layer is None:
            logger.warning(f"No channel layer configured, dropping message for {group}")
            return
        async_to_sync(self.channel_layer.group_send)(group, message)
