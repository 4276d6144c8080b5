"""Domain event publishing."""
from tagvault.events import subjects
from tagvault.events.publisher import (
    EventPublisher,
    LoggingEventPublisher,
    NullEventPublisher,
    RedisEventPublisher,
    create_publisher,
    publish_safely,
)

__all__ = [
    "subjects",
    "EventPublisher",
    "LoggingEventPublisher",
    "NullEventPublisher",
    "RedisEventPublisher",
    "create_publisher",
    "publish_safely",
]
