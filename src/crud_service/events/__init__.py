"""
Event-driven integration for the CRUD microservices.

Lifecycle events go out through an event publisher (log-only or SNS); the
notification processor turns some of them into notifications on a queue
(log-only or SQS).
"""

from .event_publisher import (
    BaseEventPublisher,
    BaseNotificationQueue,
    EventPublishError,
    LoggingEventPublisher,
    LoggingNotificationQueue,
    SnsEventPublisher,
    SqsNotificationQueue,
)
from .event_schemas import EventType, LifecycleEvent, Notification, NotificationType

__all__ = [
    "EventType",
    "NotificationType",
    "LifecycleEvent",
    "Notification",
    "BaseEventPublisher",
    "LoggingEventPublisher",
    "SnsEventPublisher",
    "EventPublishError",
    "BaseNotificationQueue",
    "LoggingNotificationQueue",
    "SqsNotificationQueue",
]
