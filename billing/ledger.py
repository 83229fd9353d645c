# billing/ledger.py
from typing import Dict, List


class PurchaseLedger:
    """Product identifiers the user owns this session. Grows only."""

    def __init__(self):
        # dict keeps first-seen order so snapshots are stable
        self._owned: Dict[str, None] = {}

    def add(self, identifier: str) -> bool:
        if identifier in self._owned:
            return False
        self._owned[identifier] = None
        return True

    def snapshot(self) -> List[str]:
        return list(self._owned)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._owned

    def __len__(self) -> int:
        return len(self._owned)
