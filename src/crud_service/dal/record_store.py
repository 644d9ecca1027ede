"""
Record store interface and the in-memory implementation.

All tables are keyed by a single ``id`` field. There are no cross-table
transactions: a multi-step mutation such as "check stock on N products, then
write an order" is not atomic, and only the conditional primitives below are
safe against concurrent writers.
"""

import copy
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from crud_service.handlers.utils.errors import ConditionFailedError, NotFoundError
from crud_service.handlers.utils.observability import count, logger

KEY_FIELD = 'id'


def describe_condition(condition: Mapping[str, Any]) -> str:
    return ' AND '.join(f"{name} = {value!r}" for name, value in condition.items())


class BaseRecordStore(ABC):
    """Abstract base class for record store implementations."""

    @abstractmethod
    def get(self, table: str, key: str) -> Optional[Dict[str, Any]]:
        """Get a record by id, or None when absent."""

    @abstractmethod
    def put(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Create or replace a record."""

    @abstractmethod
    def update(
        self,
        table: str,
        key: str,
        patch: Dict[str, Any],
        condition: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Merge ``patch`` into an existing record.

        Raises:
            NotFoundError: If the key is absent
            ConditionFailedError: If any ``condition`` field differs
        """

    @abstractmethod
    def delete(self, table: str, key: str, condition: Optional[Mapping[str, Any]] = None) -> None:
        """Delete a record; deleting an absent key is a no-op unless a condition is given."""

    @abstractmethod
    def scan(self, table: str) -> List[Dict[str, Any]]:
        """Return every record. O(table size); for listing and admin use only."""

    @abstractmethod
    def conditional_decrement(self, table: str, key: str, field: str, amount: int) -> Dict[str, Any]:
        """Atomically subtract ``amount`` from ``field`` when ``field >= amount``."""

    @abstractmethod
    def increment(self, table: str, key: str, field: str, amount: int) -> Dict[str, Any]:
        """Atomically add ``amount`` to ``field``."""

    @abstractmethod
    def health_check(self) -> Dict[str, str]:
        """Report backend reachability."""


class InMemoryRecordStore(BaseRecordStore):
    """
    Process-local record store for offline mode and tests.

    Plain reads and writes are unsynchronized, like the managed store seen by
    independent invocations. The conditional operations hold a lock so that
    compare-and-swap semantics hold under threads.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def _table(self, table: str) -> Dict[str, Dict[str, Any]]:
        return self._tables.setdefault(table, {})

    def get(self, table: str, key: str) -> Optional[Dict[str, Any]]:
        item = self._table(table).get(key)
        return copy.deepcopy(item) if item is not None else None

    def put(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self._table(table)[record[KEY_FIELD]] = copy.deepcopy(record)
        count("RecordStorePut")
        logger.debug("Stored record", extra={"table_name": table, "item_id": record[KEY_FIELD]})
        return copy.deepcopy(record)

    def _check(self, table: str, key: str, condition: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        existing = self._table(table).get(key)
        if existing is None:
            raise NotFoundError(message='Item not found', resource_type=table, resource_id=key)
        if condition and any(existing.get(name) != value for name, value in condition.items()):
            raise ConditionFailedError(table_name=table, condition=describe_condition(condition))
        return existing

    def update(
        self,
        table: str,
        key: str,
        patch: Dict[str, Any],
        condition: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        with self._lock:
            existing = self._check(table, key, condition)
            updated = {**existing, **copy.deepcopy(patch), KEY_FIELD: key}
            self._table(table)[key] = updated
        count("RecordStoreUpdate")
        return copy.deepcopy(updated)

    def delete(self, table: str, key: str, condition: Optional[Mapping[str, Any]] = None) -> None:
        with self._lock:
            if condition:
                self._check(table, key, condition)
            self._table(table).pop(key, None)
        count("RecordStoreDelete")

    def scan(self, table: str) -> List[Dict[str, Any]]:
        items = [copy.deepcopy(item) for item in self._table(table).values()]
        logger.debug("Scanned table", extra={"table_name": table, "item_count": len(items)})
        return items

    def conditional_decrement(self, table: str, key: str, field: str, amount: int) -> Dict[str, Any]:
        with self._lock:
            existing = self._check(table, key, None)
            current = existing.get(field)
            if current is None or current < amount:
                raise ConditionFailedError(table_name=table, condition=f"{field} >= {amount}")
            existing[field] = current - amount
            return copy.deepcopy(existing)

    def increment(self, table: str, key: str, field: str, amount: int) -> Dict[str, Any]:
        with self._lock:
            existing = self._check(table, key, None)
            existing[field] = existing.get(field, 0) + amount
            return copy.deepcopy(existing)

    def health_check(self) -> Dict[str, str]:
        return {"status": "healthy", "backend": "memory"}
