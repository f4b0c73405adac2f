from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from django.contrib.auth.models import AnonymousUser


@database_sync_to_async
def get_user_for_token(key):
    from rest_framework.authtoken.models import Token

    try:
        return Token.objects.select_related('user').get(key=key).user
    except Token.DoesNotExist:
        return AnonymousUser()


class TokenAuthMiddleware:
    """Authenticates websocket connections with a DRF token passed as ?token=..."""

    def __init__(self, inner):
        self.inner = inner

    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get('query_string', b'').decode())
        token = (query.get('token') or [None])[0]
        scope = dict(scope)
        scope['user'] = await get_user_for_token(token) if token else AnonymousUser()
        return await self.inner(scope, receive, send)
