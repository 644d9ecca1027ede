"""
Event publisher and notification queue.

Publishing is best-effort: callers publish strictly after a successful store
write, and a failed publish is logged and counted but never raised back into
the request, so the write is never rolled back.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from crud_service.events.event_schemas import LifecycleEvent, Notification
from crud_service.handlers.utils.errors import UpstreamError
from crud_service.handlers.utils.observability import count, duration, logger, tracer


class EventPublishError(UpstreamError):
    """Raised by transports when an event cannot be delivered."""

    def __init__(self, message: str, event_type: Optional[str] = None):
        super().__init__(message=message, service_name="SNS", error_code="EVENT_PUBLISH_ERROR")
        self.event_type = event_type


class BaseEventPublisher(ABC):
    """Publishes lifecycle events to subscribers."""

    @abstractmethod
    def _send(self, event: LifecycleEvent) -> None:
        """Deliver one event; raise EventPublishError on failure."""

    @abstractmethod
    def health_check(self) -> Dict[str, str]:
        """Report transport reachability."""

    def publish(self, event_type: str, payload: Dict[str, Any]) -> bool:
        """
        Publish ``payload`` under ``event_type``.

        Returns:
            True when the event was handed to the transport, False when it was
            dropped (the failure is logged and counted)
        """
        event = LifecycleEvent(eventType=event_type, data=payload)
        started = time.time()
        try:
            self._send(event)
        except EventPublishError as e:
            count("EventPublishFailed")
            logger.error("Failed to publish event", extra={
                "event_type": event_type,
                "error_id": e.error_id,
                "error": e.message,
            })
            return False

        count("EventPublished")
        duration("EventPublishDuration", (time.time() - started) * 1000)
        logger.info("Event published", extra={"event_type": event_type})
        return True


class LoggingEventPublisher(BaseEventPublisher):
    """Offline publisher: logs events and keeps them for inspection."""

    def __init__(self) -> None:
        self.published_events: List[LifecycleEvent] = []

    def _send(self, event: LifecycleEvent) -> None:
        logger.debug("Offline event", extra={"event_type": event.eventType, "event": event.model_dump()})
        self.published_events.append(event)

    def health_check(self) -> Dict[str, str]:
        return {"status": "healthy", "backend": "log"}


class SnsEventPublisher(BaseEventPublisher):
    """Publishes events to an SNS topic, using the event type as the subject."""

    def __init__(self, topic_arn: str, region_name: Optional[str] = None):
        self.topic_arn = topic_arn
        self.sns = boto3.client('sns', region_name=region_name) if region_name else boto3.client('sns')

    @tracer.capture_method
    def _send(self, event: LifecycleEvent) -> None:
        try:
            self.sns.publish(
                TopicArn=self.topic_arn,
                Message=event.to_message(),
                Subject=event.eventType,
            )
        except (ClientError, BotoCoreError) as e:
            raise EventPublishError(message=f"SNS publish failed: {e}", event_type=event.eventType) from e

    def health_check(self) -> Dict[str, str]:
        try:
            self.sns.get_topic_attributes(TopicArn=self.topic_arn)
        except (ClientError, BotoCoreError) as e:
            return {"status": "unhealthy", "backend": "sns", "error": str(e)}
        return {"status": "healthy", "backend": "sns"}


class BaseNotificationQueue(ABC):
    """Queue of user-facing notifications."""

    @abstractmethod
    def enqueue(self, notification: Notification) -> None:
        """Enqueue one notification; raises UpstreamError on failure."""

    @abstractmethod
    def health_check(self) -> Dict[str, str]:
        """Report transport reachability."""


class LoggingNotificationQueue(BaseNotificationQueue):
    """Offline queue: logs notifications and keeps them for inspection."""

    def __init__(self) -> None:
        self.sent: List[Notification] = []

    def enqueue(self, notification: Notification) -> None:
        logger.debug("Offline notification", extra={"notification": notification.model_dump(exclude_none=True)})
        self.sent.append(notification)

    def health_check(self) -> Dict[str, str]:
        return {"status": "healthy", "backend": "log"}


class SqsNotificationQueue(BaseNotificationQueue):
    """Sends notifications to an SQS queue."""

    def __init__(self, queue_url: str, region_name: Optional[str] = None):
        self.queue_url = queue_url
        self.sqs = boto3.client('sqs', region_name=region_name) if region_name else boto3.client('sqs')

    @tracer.capture_method
    def enqueue(self, notification: Notification) -> None:
        try:
            self.sqs.send_message(QueueUrl=self.queue_url, MessageBody=notification.to_message())
        except (ClientError, BotoCoreError) as e:
            count("NotificationEnqueueFailed")
            raise UpstreamError(message=f"SQS send failed: {e}", service_name="SQS") from e
        count("NotificationEnqueued")

    def health_check(self) -> Dict[str, str]:
        try:
            self.sqs.get_queue_attributes(QueueUrl=self.queue_url, AttributeNames=['QueueArn'])
        except (ClientError, BotoCoreError) as e:
            return {"status": "unhealthy", "backend": "sqs", "error": str(e)}
        return {"status": "healthy", "backend": "sqs"}
