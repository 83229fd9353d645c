# tests/test_registry.py
import pytest

from billing.errors import DuplicateAttempt, DuplicateHandle
from billing.ledger import PurchaseLedger
from billing.registry import PendingRequestRegistry
from tests.support import RecordingCaller


def test_fetch_resolves_once():
    registry = PendingRequestRegistry()
    caller = RecordingCaller()
    registry.register_fetch("h1", caller)
    assert registry.resolve_fetch("h1") is caller
    assert registry.resolve_fetch("h1") is None
    assert registry.resolve_fetch("never") is None


def test_duplicate_handle_and_attempt_rejected():
    registry = PendingRequestRegistry()
    registry.register_fetch("h1", RecordingCaller())
    registry.register_purchase("a1", RecordingCaller())
    with pytest.raises(DuplicateHandle):
        registry.register_fetch("h1", RecordingCaller())
    with pytest.raises(DuplicateAttempt):
        registry.register_purchase("a1", RecordingCaller())


def test_purchase_resolves_once():
    registry = PendingRequestRegistry()
    caller = RecordingCaller()
    registry.register_purchase("a1", caller)
    assert registry.resolve_purchase("a1") is caller
    assert registry.resolve_purchase("a1") is None


def test_restore_waiters_drain_in_order():
    registry = PendingRequestRegistry()
    assert registry.drain_restore_waiters() == []
    first, second = RecordingCaller(), RecordingCaller()
    registry.register_restore_waiter(first)
    registry.register_restore_waiter(second)
    assert registry.has_restore_waiters
    assert registry.drain_restore_waiters() == [first, second]
    assert not registry.has_restore_waiters
    assert registry.counts() == {"fetches": 0, "restore_waiters": 0, "purchases": 0}


def test_ledger_is_an_ordered_set():
    ledger = PurchaseLedger()
    assert ledger.add("p2")
    assert ledger.add("p1")
    assert not ledger.add("p2")
    assert ledger.snapshot() == ["p2", "p1"]
    assert "p1" in ledger
    assert len(ledger) == 2
