# billing/registry.py
from typing import Dict, List, Optional

from .callers import Caller
from .errors import DuplicateAttempt, DuplicateHandle


class PendingRequestRegistry:
    """In-flight requests keyed by identity. No locking, the engine owns that."""

    def __init__(self):
        self._fetches: Dict[str, Caller] = {}
        self._restore_waiters: List[Caller] = []
        self._purchases: Dict[str, Caller] = {}

    # ---------------------------
    # Product fetches
    # ---------------------------
    def register_fetch(self, handle: str, caller: Caller) -> None:
        if handle in self._fetches:
            raise DuplicateHandle(details=handle)
        self._fetches[handle] = caller

    def resolve_fetch(self, handle: str) -> Optional[Caller]:
        return self._fetches.pop(handle, None)

    # ---------------------------
    # Restore cycle
    # ---------------------------
    @property
    def has_restore_waiters(self) -> bool:
        return bool(self._restore_waiters)

    def register_restore_waiter(self, caller: Caller) -> None:
        self._restore_waiters.append(caller)

    def drain_restore_waiters(self) -> List[Caller]:
        waiters, self._restore_waiters = self._restore_waiters, []
        return waiters

    # ---------------------------
    # Purchases
    # ---------------------------
    def register_purchase(self, attempt_id: str, caller: Caller) -> None:
        if attempt_id in self._purchases:
            raise DuplicateAttempt(details=attempt_id)
        self._purchases[attempt_id] = caller

    def resolve_purchase(self, attempt_id: str) -> Optional[Caller]:
        return self._purchases.pop(attempt_id, None)

    def counts(self) -> Dict[str, int]:
        return {
            "fetches": len(self._fetches),
            "restore_waiters": len(self._restore_waiters),
            "purchases": len(self._purchases),
        }
