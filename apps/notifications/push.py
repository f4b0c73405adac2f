import logging
import re
from collections import namedtuple

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

PushResult = namedtuple('PushResult', ['token', 'ok', 'error'])

EXPO_TOKEN_PATTERN = re.compile(r'^(ExponentPushToken|ExpoPushToken)\[.+\]$')


def is_expo_push_token(token):
    return bool(token) and bool(EXPO_TOKEN_PATTERN.match(token))


class ExpoPushSender:
    """
    Sends push notifications through the Expo push HTTP API.

    Never raises: every token gets a PushResult telling whether Expo
    accepted the message.
    """

    def __init__(self, url=None, access_token=None, timeout=None):
        self.url = url or settings.EXPO_PUSH_URL
        self.access_token = access_token if access_token is not None else settings.EXPO_ACCESS_TOKEN
        self.timeout = timeout or settings.PUSH_TIMEOUT

    def send(self, token, title, body, data=None):
        if not is_expo_push_token(token):
            logger.error(f"Push token {token} is not a valid Expo push token")
            return [PushResult(token, False, 'InvalidToken')]

        payload = [{
            'to': token,
            'title': title,
            'body': body,
            'data': data or {},
            'sound': 'default',
            'priority': 'high',
            'channelId': 'default',
        }]
        headers = {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }
        if self.access_token:
            headers['Authorization'] = f'Bearer {self.access_token}'

        try:
            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            tickets = response.json().get('data', [])
        except requests.exceptions.RequestException as e:
            logger.error(f"Expo push request failed for {token}: {str(e)}")
            return [PushResult(token, False, str(e))]
        except ValueError as e:
            logger.error(f"Expo push returned an unreadable response for {token}: {str(e)}")
            return [PushResult(token, False, 'InvalidResponse')]

        results = []
        for ticket in tickets:
            if ticket.get('status') == 'ok':
                logger.info(f"Push delivered to Expo for {token}, ticket {ticket.get('id')}")
                results.append(PushResult(token, True, None))
            else:
                error = (ticket.get('details') or {}).get('error') or ticket.get('message')
                if error == 'DeviceNotRegistered':
                    logger.warning(f"Push token {token} is no longer registered")
                else:
                    logger.error(f"Push failed for {token}: {error}")
                results.append(PushResult(token, False, error))
        return results
