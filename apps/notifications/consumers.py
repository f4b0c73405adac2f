import logging

from channels.generic.websocket import JsonWebsocketConsumer

from .rooms import diff_rooms, rooms_for_provider
from .transport import ChannelsTransport

logger = logging.getLogger(__name__)


class NotificationConsumer(JsonWebsocketConsumer):
    """
    One websocket connection of a signed-in user.

    Joins the user's personal channel and, for providers, the area rooms
    derived from their service locations. ``rooms.resync`` messages make the
    connection re-derive its rooms and apply only the difference.
    """
    transport_class = ChannelsTransport

    def connect(self):
        user = self.scope.get('user')
        if user is None or not user.is_authenticated:
            self.close(code=4401)
            return

        self.user = user
        self.rooms = set()
        self.transport = self.transport_class(self.channel_layer)
        self.accept()
        self.transport.join_user(self.channel_name, user.id)
        self.sync_rooms()
        logger.info(f"User {user.id} connected with {len(self.rooms)} area room(s)")

    def disconnect(self, code):
        user = getattr(self, 'user', None)
        if user is None:
            return
        for room in self.rooms:
            self.transport.leave_room(self.channel_name, room)
        self.transport.leave_user(self.channel_name, user.id)
        logger.info(f"User {user.id} disconnected")

    def desired_rooms(self):
        from apps.users.models import Provider

        try:
            provider = Provider.objects.get(user_id=self.user.id)
        except Provider.DoesNotExist:
            return set()
        return rooms_for_provider(provider)

    def sync_rooms(self):
        to_join, to_leave = diff_rooms(self.rooms, self.desired_rooms())
        for room in to_leave:
            self.transport.leave_room(self.channel_name, room)
            self.rooms.discard(room)
        for room in to_join:
            self.transport.join_room(self.channel_name, room)
            self.rooms.add(room)
        return to_join, to_leave

    def rooms_resync(self, message):
        to_join, to_leave = self.sync_rooms()
        logger.info(f"User {self.user.id} rooms resynced: +{len(to_join)} -{len(to_leave)}")

    def notify_event(self, message):
        self.send_json({'event': message['event'], 'payload': message['payload']})
