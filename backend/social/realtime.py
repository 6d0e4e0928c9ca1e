"""
Realtime Notifier
=================

Best-effort fan-out of mutation events to connected clients.

CONTRACT:
---------
publish() may fail, but it never raises and never affects the mutation that
triggered it. A failed publish is logged as a warning and reported as False.

TRANSPORT:
----------
Redis pub/sub. Each event is published as JSON {"event": ..., "data": ...}
on "<prefix>:<channel>". Public post events go to the "posts" channel; direct
messages go to the receiver's private channel "user-<app_user_id>".

When REALTIME_REDIS_URL is empty or still holds a placeholder value, the
NullNotifier is used and the app runs in no-realtime mode.
"""

import json
import logging
from functools import lru_cache

import redis
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

from .exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

POSTS_CHANNEL = 'posts'

# Event names
NEW_POST = 'new-post'
UPDATE_POST = 'update-post'
UPDATE_LIKE = 'update-like'
NEW_COMMENT = 'new-comment'
DELETE_POST = 'delete-post'
NEW_MESSAGE = 'new-message'

PLACEHOLDER_PREFIXES = ('your-', 'placeholder', 'example', 'test-', 'xxx')


def user_channel(app_user_id: str) -> str:
    return f"user-{app_user_id}"


def is_placeholder(value) -> bool:
    """True for values copied verbatim from a sample .env file."""
    if not value:
        return True
    value = value.strip().lower()
    return not value or value.startswith(PLACEHOLDER_PREFIXES)


class Notifier:
    """Port for realtime events. Subclasses implement send()."""
    enabled = True

    def send(self, channel: str, event: str, payload: dict) -> None:
        raise NotImplementedError

    def publish(self, channel: str, event: str, payload: dict) -> bool:
        try:
            self.send(channel, event, payload)
        except UpstreamUnavailable as exc:
            logger.warning("Realtime publish of %s on %s failed: %s", event, channel, exc.message)
            return False
        return True


class NullNotifier(Notifier):
    """No-realtime mode: every event is dropped."""
    enabled = False

    def send(self, channel, event, payload):
        logger.debug("Realtime disabled, dropping %s on %s", event, channel)


class RedisNotifier(Notifier):
    def __init__(self, client, prefix: str = 'chirpline'):
        self.client = client
        self.prefix = prefix

    def send(self, channel, event, payload):
        message = json.dumps({'event': event, 'data': payload}, cls=DjangoJSONEncoder)
        try:
            self.client.publish(f"{self.prefix}:{channel}", message)
        except redis.RedisError as exc:
            raise UpstreamUnavailable(f"Event bus unreachable: {exc}") from exc


def build_notifier(url, prefix='chirpline', timeout=2.0) -> Notifier:
    if is_placeholder(url):
        logger.info("Realtime event bus not configured, running without realtime updates")
        return NullNotifier()
    try:
        client = redis.Redis.from_url(
            url,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
    except ValueError as exc:
        logger.warning("Invalid REALTIME_REDIS_URL (%s), running without realtime updates", exc)
        return NullNotifier()
    return RedisNotifier(client, prefix)


@lru_cache(maxsize=1)
def get_notifier() -> Notifier:
    """The process-wide notifier built from settings. Views pass it to services."""
    return build_notifier(
        settings.REALTIME_REDIS_URL,
        prefix=settings.REALTIME_CHANNEL_PREFIX,
        timeout=settings.REALTIME_TIMEOUT,
    )


def broadcast(notifier, channel, event, payload) -> bool:
    """Publish through an optional notifier. None means no broadcast."""
    if notifier is None:
        return False
    return notifier.publish(channel, event, payload)
