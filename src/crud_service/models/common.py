"""Identifier and timestamp helpers shared by the domain records."""

from datetime import datetime, timezone
from uuid import uuid4


def new_id() -> str:
    """Generate a globally unique record id."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Server timestamp in ISO 8601 with an explicit UTC offset."""
    return datetime.now(timezone.utc).isoformat()


def touched_at(created_at: str) -> str:
    """
    Timestamp for ``updatedAt`` that never sorts before ``createdAt``.

    All timestamps share one ISO format, so string order is time order.
    """
    return max(utc_now_iso(), created_at)
