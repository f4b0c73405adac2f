"""Tests for websocket room membership of the notification consumer."""

import pytest

from apps.notifications.consumers import NotificationConsumer
from apps.users.models import Provider, ServiceLocation


class RecordingTransport:
    def __init__(self, channel_layer=None):
        self.joined = []
        self.left = []

    def join_room(self, channel_name, room):
        self.joined.append(room)

    def leave_room(self, channel_name, room):
        self.left.append(room)


@pytest.fixture
def consumer():
    def _make(user):
        consumer = NotificationConsumer()
        consumer.channel_name = "test.channel"
        consumer.user = user
        consumer.rooms = set()
        consumer.transport = RecordingTransport()
        return consumer

    return _make


def test_provider_joins_rooms_of_declared_locations(consumer, make_provider):
    connection = consumer(make_provider(district="Kadikoy", category="klima"))

    connection.sync_rooms()

    assert connection.rooms == {"area:Istanbul:Kadikoy:klima"}
    assert connection.transport.joined == ["area:Istanbul:Kadikoy:klima"]


def test_requester_joins_no_area_rooms(consumer, requester):
    connection = consumer(requester)

    assert connection.sync_rooms() == (set(), set())
    assert connection.rooms == set()


def test_resync_applies_only_the_difference(consumer, make_provider):
    user = make_provider(district="Kadikoy")
    provider = Provider.objects.get(user=user)
    ServiceLocation.objects.create(provider=provider, city="Istanbul", district="Besiktas")
    connection = consumer(user)
    connection.sync_rooms()
    connection.transport.joined.clear()

    ServiceLocation.objects.filter(provider=provider, district="Kadikoy").delete()
    ServiceLocation.objects.create(provider=provider, city="Istanbul", district="")
    connection.rooms_resync({"type": "rooms.resync"})

    assert connection.transport.left == ["area:Istanbul:Kadikoy:elektrik"]
    assert connection.transport.joined == ["area:Istanbul:all:elektrik"]
    assert connection.rooms == {"area:Istanbul:Besiktas:elektrik", "area:Istanbul:all:elektrik"}


def test_category_change_moves_every_room(consumer, make_provider):
    user = make_provider(district="Kadikoy", category="elektrik")
    connection = consumer(user)
    connection.sync_rooms()

    Provider.objects.filter(user=user).update(service_category="tesisat")
    to_join, to_leave = connection.sync_rooms()

    assert to_leave == {"area:Istanbul:Kadikoy:elektrik"}
    assert to_join == {"area:Istanbul:Kadikoy:tesisat"}


def test_notify_event_forwards_to_socket(consumer, requester):
    connection = consumer(requester)
    sent = []
    connection.send_json = sent.append

    connection.notify_event({"type": "notify.event", "event": "bid_received", "payload": {"job_id": 1}})

    assert sent == [{"event": "bid_received", "payload": {"job_id": 1}}]
