"""
Area rooms: providers are grouped by the places and trade they serve so a
new job can be announced without enumerating recipients.

A room key looks like ``area:{city}:{district|all}:{category}``.
"""
from core.constants import ALL_DISTRICTS

AREA_PREFIX = 'area'


def room_key(city, district, category):
    return f"{AREA_PREFIX}:{city}:{district or ALL_DISTRICTS}:{category}"


def rooms_for(locations, category):
    """
    Rooms a provider belongs to.

    ``locations`` is an iterable of ``(city, district)`` pairs; an empty
    district means the provider covers the whole city.
    """
    return {room_key(city, district, category) for city, district in locations if city}


def rooms_for_provider(provider):
    locations = provider.service_locations.values_list('city', 'district')
    return rooms_for(locations, provider.service_category)


def target_rooms(city, district, category):
    """Rooms that must hear about a job posted in city/district."""
    rooms = [room_key(city, None, category)]
    if district:
        rooms.insert(0, room_key(city, district, category))
    return rooms


def diff_rooms(current, desired):
    """Return (to_join, to_leave) turning ``current`` into ``desired``."""
    current = {room for room in current if room.startswith(AREA_PREFIX + ':')}
    desired = set(desired)
    return desired - current, current - desired
