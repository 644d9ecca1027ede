"""
Unit tests for lifecycle events, publishers and notifications.
"""

import json

from crud_service.events import (
    EventPublishError,
    EventType,
    LifecycleEvent,
    LoggingEventPublisher,
    LoggingNotificationQueue,
    NotificationType,
)
from crud_service.events.event_publisher import BaseEventPublisher
from crud_service.logic import NotificationService


class FailingPublisher(BaseEventPublisher):
    def _send(self, event):
        raise EventPublishError("topic unreachable", event_type=event.eventType)

    def health_check(self):
        return {"status": "unhealthy", "backend": "test"}


class TestLifecycleEvent:
    """Test cases for the event wire format."""

    def test_message_shape(self):
        """Test the message carries eventType, data and timestamp."""
        event = LifecycleEvent(eventType=EventType.USER_CREATED.value, data={"id": "u1"})

        message = json.loads(event.to_message())

        assert set(message) == {"eventType", "data", "timestamp"}
        assert message["eventType"] == "USER_CREATED"

    def test_from_sns_envelope(self):
        """Test an event wrapped in an SNS envelope is unwrapped."""
        inner = LifecycleEvent(eventType="ORDER_CREATED", data={"id": "o1"}).to_message()

        event = LifecycleEvent.from_message(json.dumps({"Type": "Notification", "Message": inner}))

        assert event.eventType == "ORDER_CREATED"
        assert event.data == {"id": "o1"}


class TestEventPublisher:
    """Test cases for best-effort publishing."""

    def test_logging_publisher_keeps_events(self):
        """Test the offline publisher records what it publishes."""
        publisher = LoggingEventPublisher()

        assert publisher.publish("PRODUCT_DELETED", {"id": "p1"}) is True
        assert [e.eventType for e in publisher.published_events] == ["PRODUCT_DELETED"]

    def test_failed_publish_is_not_raised(self):
        """Test a transport failure is reported as False, never raised."""
        assert FailingPublisher().publish("USER_CREATED", {"id": "u1"}) is False


class TestNotificationService:
    """Test cases for event to notification mapping."""

    def setup_method(self):
        self.queue = LoggingNotificationQueue()
        self.service = NotificationService(self.queue)

    def test_welcome(self):
        """Test USER_CREATED produces a welcome notification."""
        notification = self.service.process_event(
            LifecycleEvent(eventType="USER_CREATED", data={"id": "u1", "name": "Alice"})
        )

        assert notification.type == NotificationType.USER_WELCOME
        assert notification.userId == "u1"
        assert notification.message == "Welcome Alice! Your account has been created successfully."
        assert self.queue.sent == [notification]

    def test_order_confirmation(self):
        """Test ORDER_CREATED produces a confirmation with a two-decimal total."""
        notification = self.service.process_event(
            LifecycleEvent(eventType="ORDER_CREATED", data={"id": "o1", "userId": "u1", "totalAmount": 34})
        )

        assert notification.type == NotificationType.ORDER_CONFIRMATION
        assert notification.message == "Order o1 has been placed successfully. Total: $34.00"

    def test_product_announcement(self):
        """Test PRODUCT_CREATED produces a catalogue announcement."""
        notification = self.service.process_event(
            LifecycleEvent(eventType="PRODUCT_CREATED", data={"id": "p1", "name": "Lamp", "category": "home"})
        )

        assert notification.productId == "p1"
        assert notification.message == "New product added to the home category: Lamp"

    def test_unknown_event_skipped(self):
        """Test event types without a notification are skipped."""
        assert self.service.process_event(LifecycleEvent(eventType="USER_DELETED", data={"id": "u1"})) is None
        assert self.queue.sent == []

    def test_notification_message_omits_empty_ids(self):
        """Test the queue message leaves out unset ids."""
        notification = self.service.process_event(
            LifecycleEvent(eventType="USER_CREATED", data={"id": "u1", "name": "Alice"})
        )

        body = json.loads(notification.to_message())

        assert body["type"] == "USER_WELCOME"
        assert "orderId" not in body
