"""
Lifecycle event and notification schemas.

A lifecycle event is published after a successful mutation. Its wire form is
``{eventType, data, timestamp}`` and the event type doubles as the SNS subject.
"""

import json
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from crud_service.models.common import utc_now_iso


class EventType(str, Enum):
    """Lifecycle event types."""

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"

    PRODUCT_CREATED = "PRODUCT_CREATED"
    PRODUCT_UPDATED = "PRODUCT_UPDATED"
    PRODUCT_DELETED = "PRODUCT_DELETED"

    ORDER_CREATED = "ORDER_CREATED"


class NotificationType(str, Enum):
    """Notification kinds produced from lifecycle events."""

    USER_WELCOME = "USER_WELCOME"
    ORDER_CONFIRMATION = "ORDER_CONFIRMATION"
    PRODUCT_NOTIFICATION = "PRODUCT_NOTIFICATION"


class LifecycleEvent(BaseModel):
    """A domain event emitted after a store mutation."""

    eventType: str
    data: Dict[str, Any]
    timestamp: str = Field(default_factory=utc_now_iso)

    def to_message(self) -> str:
        return json.dumps(self.model_dump(), default=str)

    @classmethod
    def from_message(cls, message: str) -> 'LifecycleEvent':
        """
        Parse an SNS message body.

        Accepts the bare event or an event wrapped once more in an SNS
        ``{"Message": "..."}`` envelope, as delivered through SNS to SQS fan-out.
        """
        payload = json.loads(message)
        if isinstance(payload, dict) and 'Message' in payload and 'eventType' not in payload:
            payload = json.loads(payload['Message'])
        return cls.model_validate(payload)


class Notification(BaseModel):
    """A user-facing notification placed on the notification queue."""

    type: NotificationType
    message: str
    userId: Optional[str] = None
    orderId: Optional[str] = None
    productId: Optional[str] = None
    timestamp: str = Field(default_factory=utc_now_iso)

    def to_message(self) -> str:
        return self.model_dump_json(exclude_none=True)
