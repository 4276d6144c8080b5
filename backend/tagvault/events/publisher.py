"""Fire-and-forget domain event publishing.

Publishing happens after a mutation has been committed. The mutation is the
source of truth, so a failed publish is logged and never undoes or fails the
operation that triggered it.
"""
import json
import logging
from typing import Any, Dict, Optional, Protocol

from tagvault.core.config import settings

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    """Anything that can publish a JSON payload under a subject."""

    async def publish(self, subject: str, payload: Dict[str, Any]) -> None:
        ...


class NullEventPublisher:
    """Discards every event."""

    async def publish(self, subject: str, payload: Dict[str, Any]) -> None:
        return None


class LoggingEventPublisher:
    """Writes events to the log instead of a broker."""

    async def publish(self, subject: str, payload: Dict[str, Any]) -> None:
        logger.info(f"Event {subject}: {json.dumps(payload, default=str, sort_keys=True)}")


class RedisEventPublisher:
    """Publishes events as JSON on Redis pub/sub channels '<prefix>.<subject>'."""

    def __init__(self, url: Optional[str] = None, channel_prefix: Optional[str] = None, client: Any = None):
        """Initialize the publisher.

        Args:
            url: Redis URL (defaults to settings.REDIS_URL)
            channel_prefix: Channel prefix (defaults to settings.EVENTS_CHANNEL_PREFIX)
            client: Pre-built redis.asyncio client, mainly for tests
        """
        self.url = url or settings.REDIS_URL
        self.channel_prefix = channel_prefix or settings.EVENTS_CHANNEL_PREFIX
        self._client = client

    @property
    def client(self):
        """Lazy-load the Redis client."""
        if self._client is None:
            import redis.asyncio as redis

            self._client = redis.Redis.from_url(self.url)
        return self._client

    def channel(self, subject: str) -> str:
        return f"{self.channel_prefix}.{subject}"

    async def publish(self, subject: str, payload: Dict[str, Any]) -> None:
        data = json.dumps(payload, default=str)
        receivers = await self.client.publish(self.channel(subject), data)
        logger.debug(f"Published {subject} to {receivers} subscriber(s)")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def create_publisher(backend: Optional[str] = None) -> EventPublisher:
    """Build the publisher selected by settings.EVENTS_BACKEND."""
    backend = (backend or settings.EVENTS_BACKEND).lower()
    if backend == "redis":
        return RedisEventPublisher()
    if backend == "log":
        return LoggingEventPublisher()
    if backend == "none":
        return NullEventPublisher()
    raise ValueError(f"Unknown events backend: {backend}")


async def publish_safely(publisher: Optional[EventPublisher], subject: str, payload: Dict[str, Any]) -> bool:
    """Publish an event, logging instead of raising on failure.

    Returns:
        True if the event was handed to the publisher
    """
    if publisher is None:
        return False
    try:
        await publisher.publish(subject, payload)
        return True
    except Exception as e:
        logger.warning(f"Failed to publish {subject} event: {type(e).__name__}: {e}")
        return False
