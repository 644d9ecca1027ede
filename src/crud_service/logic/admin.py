"""System statistics and health reporting."""

from typing import Any, Dict

from crud_service.dal import ORDERS, PRODUCTS, USERS
from crud_service.dal.record_store import BaseRecordStore
from crud_service.events import BaseEventPublisher, BaseNotificationQueue
from crud_service.handlers.utils.observability import tracer
from crud_service.models.common import utc_now_iso
from crud_service.security import ADMIN_GROUP, CallerIdentity, ensure_group


class AdminService:
    """Administrative views over the whole system."""

    def __init__(self, store: BaseRecordStore, publisher: BaseEventPublisher, queue: BaseNotificationQueue):
        self.store = store
        self.publisher = publisher
        self.queue = queue

    @tracer.capture_method
    def get_stats(self, caller: CallerIdentity) -> Dict[str, Any]:
        """Record counts per table. Full scans, so admin use only."""
        ensure_group(caller, ADMIN_GROUP)
        return {
            "users": len(self.store.scan(USERS)),
            "products": len(self.store.scan(PRODUCTS)),
            "orders": len(self.store.scan(ORDERS)),
            "timestamp": utc_now_iso(),
        }

    def check_health(self) -> Dict[str, Any]:
        checks = {
            "recordStore": self.store.health_check(),
            "eventPublisher": self.publisher.health_check(),
            "notificationQueue": self.queue.health_check(),
        }
        healthy = all(check["status"] == "healthy" for check in checks.values())
        return {
            "status": "healthy" if healthy else "unhealthy",
            "checks": checks,
            "timestamp": utc_now_iso(),
        }
