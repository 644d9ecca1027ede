"""Turns lifecycle events into user-facing notifications."""

from typing import Any, Callable, Dict, Optional

from crud_service.events import BaseNotificationQueue, EventType, LifecycleEvent, Notification, NotificationType
from crud_service.handlers.utils.observability import count, logger


def _welcome(user: Dict[str, Any]) -> Notification:
    return Notification(
        type=NotificationType.USER_WELCOME,
        userId=user['id'],
        message=f"Welcome {user['name']}! Your account has been created successfully.",
    )


def _order_confirmation(order: Dict[str, Any]) -> Notification:
    return Notification(
        type=NotificationType.ORDER_CONFIRMATION,
        userId=order['userId'],
        orderId=order['id'],
        message=f"Order {order['id']} has been placed successfully. Total: ${order['totalAmount']:.2f}",
    )


def _product_announcement(product: Dict[str, Any]) -> Notification:
    return Notification(
        type=NotificationType.PRODUCT_NOTIFICATION,
        productId=product['id'],
        message=f"New product added to the {product['category']} category: {product['name']}",
    )


NOTIFICATION_BUILDERS: Dict[str, Callable[[Dict[str, Any]], Notification]] = {
    EventType.USER_CREATED.value: _welcome,
    EventType.ORDER_CREATED.value: _order_confirmation,
    EventType.PRODUCT_CREATED.value: _product_announcement,
}


class NotificationService:
    """Maps lifecycle events to notifications and enqueues them."""

    def __init__(self, queue: BaseNotificationQueue):
        self.queue = queue

    def process_event(self, event: LifecycleEvent) -> Optional[Notification]:
        """Enqueue the notification for ``event``; unknown event types are skipped."""
        builder = NOTIFICATION_BUILDERS.get(event.eventType)
        if builder is None:
            logger.info("No notification for event type", extra={"event_type": event.eventType})
            count("NotificationSkipped")
            return None

        notification = builder(event.data)
        self.queue.enqueue(notification)
        logger.info("Notification enqueued", extra={
            "event_type": event.eventType,
            "notification_type": notification.type.value,
        })
        return notification
