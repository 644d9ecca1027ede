"""
Unit tests for the in-memory record store.
"""

import threading

import pytest

from crud_service.dal import InMemoryRecordStore
from crud_service.handlers.utils.errors import ConditionFailedError, NotFoundError


@pytest.fixture
def store():
    return InMemoryRecordStore()


class TestInMemoryRecordStore:
    """Test cases for basic record operations."""

    def test_put_then_get(self, store):
        """Test a stored record is returned by id."""
        store.put('products', {"id": "p1", "name": "Keyboard"})

        assert store.get('products', "p1") == {"id": "p1", "name": "Keyboard"}
        assert store.get('products', "missing") is None

    def test_returned_records_are_copies(self, store):
        """Test mutating a returned record does not change the stored one."""
        store.put('products', {"id": "p1", "tags": ["a"]})
        store.get('products', "p1")["tags"].append("b")

        assert store.get('products', "p1")["tags"] == ["a"]

    def test_tables_are_isolated(self, store):
        """Test the same id in two tables refers to two records."""
        store.put('users', {"id": "x", "kind": "user"})
        store.put('orders', {"id": "x", "kind": "order"})

        assert store.get('users', "x")["kind"] == "user"
        assert store.get('orders', "x")["kind"] == "order"

    def test_update_merges_patch(self, store):
        """Test update merges fields and keeps the id."""
        store.put('products', {"id": "p1", "name": "Keyboard", "price": 10})
        updated = store.update('products', "p1", {"price": 12, "id": "other"})

        assert updated == {"id": "p1", "name": "Keyboard", "price": 12}

    def test_update_missing_key(self, store):
        """Test update of an absent key raises NotFoundError."""
        with pytest.raises(NotFoundError):
            store.update('products', "p1", {"price": 12})

    def test_conditional_update_mismatch(self, store):
        """Test a condition mismatch leaves the record unchanged."""
        store.put('products', {"id": "p1", "createdBy": "alice", "price": 10})

        with pytest.raises(ConditionFailedError):
            store.update('products', "p1", {"price": 1}, condition={"createdBy": "bob"})

        assert store.get('products', "p1")["price"] == 10

    def test_delete(self, store):
        """Test delete removes the record and is a no-op for absent keys."""
        store.put('users', {"id": "u1"})
        store.delete('users', "u1")
        store.delete('users', "u1")

        assert store.get('users', "u1") is None

    def test_conditional_delete_mismatch(self, store):
        """Test a conditional delete keeps the record on mismatch."""
        store.put('products', {"id": "p1", "createdBy": "alice"})

        with pytest.raises(ConditionFailedError):
            store.delete('products', "p1", condition={"createdBy": "bob"})

        assert store.get('products', "p1") is not None

    def test_scan(self, store):
        """Test scan returns every record of a table."""
        for i in range(3):
            store.put('orders', {"id": f"o{i}"})

        assert sorted(item["id"] for item in store.scan('orders')) == ["o0", "o1", "o2"]
        assert store.scan('empty') == []


class TestStockPrimitives:
    """Test cases for conditional decrement and increment."""

    def test_decrement_and_increment(self, store):
        """Test stock can be reserved and released."""
        store.put('products', {"id": "p1", "stock": 5})

        assert store.conditional_decrement('products', "p1", "stock", 3)["stock"] == 2
        assert store.increment('products', "p1", "stock", 1)["stock"] == 3

    def test_decrement_below_zero_rejected(self, store):
        """Test a decrement larger than the stock fails and changes nothing."""
        store.put('products', {"id": "p1", "stock": 1})

        with pytest.raises(ConditionFailedError):
            store.conditional_decrement('products', "p1", "stock", 2)

        assert store.get('products', "p1")["stock"] == 1

    def test_decrement_missing_record(self, store):
        """Test a decrement on an absent record raises NotFoundError."""
        with pytest.raises(NotFoundError):
            store.conditional_decrement('products', "p1", "stock", 1)

    def test_concurrent_decrements_never_oversell(self, store):
        """Test concurrent reservations of the last units are serialized."""
        store.put('products', {"id": "p1", "stock": 3})
        barrier = threading.Barrier(10)
        results = []

        def reserve():
            barrier.wait()
            try:
                store.conditional_decrement('products', "p1", "stock", 1)
                results.append(True)
            except ConditionFailedError:
                results.append(False)

        threads = [threading.Thread(target=reserve) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 3
        assert store.get('products', "p1")["stock"] == 0
