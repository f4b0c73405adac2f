import re

from rest_framework import permissions


class IsRequester(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'requester')

class IsProvider(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'provider')


PHONE_SEPARATORS = re.compile(r'[\s.\-()]')
# 10 or 11 consecutive digits starting with 5 or 05 (local mobile numbers)
PHONE_PATTERN = re.compile(r'(05|5)\d{9}')


def contains_phone_number(text):
    """
    Detect a phone number hidden in free text, e.g. '0 (505) 123 45 67'
    or '505-123-45-67'. Separators are stripped before matching.
    """
    if not text:
        return False
    normalized = PHONE_SEPARATORS.sub('', text)
    return bool(PHONE_PATTERN.search(normalized))


def envelope(data=None):
    return {'success': True, 'data': data}
