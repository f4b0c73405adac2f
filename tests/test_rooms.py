"""Tests for area room derivation and Channels group naming."""

from apps.notifications.rooms import diff_rooms, room_key, rooms_for, rooms_for_provider, target_rooms
from apps.notifications.transport import group_name, user_group
from apps.users.models import Provider, ServiceLocation


def test_room_key_uses_all_for_whole_city():
    assert room_key("Istanbul", "Kadikoy", "elektrik") == "area:Istanbul:Kadikoy:elektrik"
    assert room_key("Istanbul", "", "elektrik") == "area:Istanbul:all:elektrik"
    assert room_key("Istanbul", None, "elektrik") == "area:Istanbul:all:elektrik"


def test_rooms_for_one_room_per_location():
    rooms = rooms_for([("Istanbul", "Kadikoy"), ("Istanbul", ""), ("Ankara", "Cankaya"), ("", "Nowhere")], "klima")

    assert rooms == {
        "area:Istanbul:Kadikoy:klima",
        "area:Istanbul:all:klima",
        "area:Ankara:Cankaya:klima",
    }


def test_rooms_are_qualified_by_category():
    plumbing = rooms_for([("Izmir", "Bornova")], "tesisat")
    electrical = rooms_for([("Izmir", "Bornova")], "elektrik")

    assert plumbing.isdisjoint(electrical)


def test_target_rooms_reach_district_and_whole_city():
    assert target_rooms("Istanbul", "Kadikoy", "elektrik") == [
        "area:Istanbul:Kadikoy:elektrik",
        "area:Istanbul:all:elektrik",
    ]
    assert target_rooms("Istanbul", "", "elektrik") == ["area:Istanbul:all:elektrik"]


def test_diff_rooms_only_moves_area_rooms():
    current = {"area:Istanbul:Kadikoy:elektrik", "area:Istanbul:all:elektrik", "user.5"}
    desired = {"area:Istanbul:all:elektrik", "area:Ankara:all:elektrik"}

    to_join, to_leave = diff_rooms(current, desired)

    assert to_join == {"area:Ankara:all:elektrik"}
    assert to_leave == {"area:Istanbul:Kadikoy:elektrik"}


def test_diff_rooms_is_empty_when_unchanged():
    rooms = {"area:Istanbul:all:klima"}

    assert diff_rooms(rooms, set(rooms)) == (set(), set())


def test_rooms_for_provider_reads_declared_locations(make_provider):
    user = make_provider(district="Kadikoy", category="cilingir")
    provider = Provider.objects.get(user=user)
    ServiceLocation.objects.create(provider=provider, city="Ankara", district="")

    assert rooms_for_provider(provider) == {"area:Istanbul:Kadikoy:cilingir", "area:Ankara:all:cilingir"}


def test_group_names_are_channels_safe():
    name = group_name("area:İstanbul:Kadıköy:beyaz-esya")

    assert name == "area.istanbul.kadkoy.beyaz-esya"
    assert len(group_name("area:" + "x" * 200 + ":all:klima")) < 100
    assert group_name("area::all:klima") == "area._.all.klima"
    assert user_group(12) == "user.12"
