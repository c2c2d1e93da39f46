"""
Notification sink publisher.

The ordering core informs other parts of the platform (admin dashboard,
courier/messaging feature) through fire-and-forget events on a Redis channel.
Publishing never blocks or fails a request: routers schedule it as a
background task and failures are only logged.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

import redis.asyncio as redis
from fastapi import Request

from nutribite_shared.config.logging import get_logger
from nutribite_shared.config.settings import Settings, settings as default_settings

logger = get_logger(__name__)


@dataclass
class Notification:
    """One event for the notification sink."""

    type: str
    payload: dict[str, Any]
    occurred_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_json(self) -> str:
        return json.dumps(asdict(self), default=str)


class NotificationPublisher(Protocol):
    async def publish(self, notification: Notification) -> None: ...

    async def close(self) -> None: ...


class RedisNotificationPublisher:
    """Publishes notifications as JSON messages on a Redis pub/sub channel."""

    def __init__(self, client: redis.Redis, channel: str):
        self._client = client
        self._channel = channel

    @classmethod
    def from_settings(cls, app_settings: Settings | None = None) -> RedisNotificationPublisher:
        app_settings = app_settings or default_settings
        client = redis.from_url(app_settings.redis_url, decode_responses=True)
        return cls(client, app_settings.notifications_channel)

    async def publish(self, notification: Notification) -> None:
        receivers = await self._client.publish(self._channel, notification.to_json())
        logger.debug(
            "Notification published",
            event_type=notification.type,
            channel=self._channel,
            receivers=receivers,
        )

    async def close(self) -> None:
        await self._client.aclose()


class NullNotificationPublisher:
    """Used when notifications are disabled."""

    async def publish(self, notification: Notification) -> None:
        logger.debug("Notification dropped (disabled)", event_type=notification.type)

    async def close(self) -> None:
        return None


def build_publisher(app_settings: Settings | None = None) -> NotificationPublisher:
    app_settings = app_settings or default_settings
    if not app_settings.notifications_enabled:
        return NullNotificationPublisher()
    return RedisNotificationPublisher.from_settings(app_settings)


async def publish_safely(publisher: NotificationPublisher, notification: Notification) -> None:
    """Background-task entry point: publish and log failures without raising."""
    try:
        await publisher.publish(notification)
    except Exception as e:
        logger.error(
            "Failed to publish notification",
            event_type=notification.type,
            error=str(e),
        )


def get_notifier(request: Request) -> NotificationPublisher:
    """FastAPI dependency: the publisher built by the app lifespan."""
    return request.app.state.notifier
