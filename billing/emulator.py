# billing/emulator.py
import asyncio
import functools
import logging
import threading
import uuid
from typing import Callable, Dict, Iterable, List, Optional, Set

from .models import Disposition, ProductDescriptor, ProductType, TransactionEvent

logger = logging.getLogger(__name__)


class StoreEmulator:
    """
    In-memory stand-in for the platform store.

    Implements the StoreGateway calls and answers them through the attached
    engine's on_* handlers. With ``latency`` set, answers are scheduled on the
    running asyncio loop; with ``latency=None`` they queue up until
    ``run_pending()`` is called, which keeps tests deterministic.
    """

    def __init__(self, latency: Optional[float] = None):
        self.latency = latency
        self.catalog: Dict[str, ProductDescriptor] = {}
        # Owned products survive engine restarts; restore replays them.
        self.owned: Dict[str, None] = {}
        self.declined: Set[str] = set()
        self.fail_products = False
        self.fail_restore = False
        self.subscriptions_enabled = True
        self.unacknowledged: Dict[str, TransactionEvent] = {}
        self.acknowledged_count = 0
        self.restore_requests = 0
        self._engine = None
        self._pending: List[Callable[[], None]] = []
        self._lock = threading.RLock()

    def attach(self, engine) -> None:
        self._engine = engine

    # ---------------------------
    # Seeding / behaviour
    # ---------------------------
    def register_product(self, product: ProductDescriptor) -> None:
        with self._lock:
            self.catalog[product.identifier] = product

    def grant(self, identifiers: Iterable[str]) -> None:
        with self._lock:
            for identifier in identifiers:
                self.owned[identifier] = None

    def decline(self, identifiers: Iterable[str]) -> None:
        with self._lock:
            self.declined = set(identifiers)

    # ---------------------------
    # StoreGateway
    # ---------------------------
    def supports_subscriptions(self) -> bool:
        return self.subscriptions_enabled

    def submit_products_request(self, handle: str, identifiers: Set[str],
                                product_type: ProductType = ProductType.PRODUCT) -> None:
        if self.fail_products:
            self._schedule(self._engine.on_products_failure, handle, "store unavailable")
            return
        with self._lock:
            products = [
                self.catalog[i] for i in sorted(identifiers)
                if i in self.catalog and self.catalog[i].type == product_type
            ]
        self._schedule(self._engine.on_products_response, handle, products)

    def submit_payment_request(self, attempt_id: str, product: ProductDescriptor,
                               consume: bool = False) -> None:
        with self._lock:
            if product.identifier in self.declined:
                disposition = Disposition.FAILED
            else:
                disposition = Disposition.PURCHASED
                # consumed right away, so nothing for a restore to replay
                if not consume:
                    self.owned[product.identifier] = None
            event = self._record(TransactionEvent(
                transaction_id=uuid.uuid4().hex,
                disposition=disposition,
                product_identifier=product.identifier,
                attempt_id=attempt_id,
            ))
        self._schedule(self._engine.on_transactions_batch, [event])

    def submit_restore_request(self) -> None:
        with self._lock:
            self.restore_requests += 1
            if self.fail_restore:
                events = None
            else:
                events = [
                    self._record(TransactionEvent(
                        transaction_id=uuid.uuid4().hex,
                        disposition=Disposition.RESTORED,
                        product_identifier=identifier,
                        original_product_identifier=identifier,
                    ))
                    for identifier in self.owned
                ]
        # Batch and terminal callback travel together so they stay ordered.
        self._schedule(self._finish_restore, events)

    def acknowledge_transaction(self, transaction_id: str) -> None:
        with self._lock:
            if self.unacknowledged.pop(transaction_id, None) is None:
                logger.warning("acknowledgement for unknown transaction %s", transaction_id)
            self.acknowledged_count += 1

    # ---------------------------
    # Delivery
    # ---------------------------
    def redeliver_unacknowledged(self) -> int:
        with self._lock:
            events = list(self.unacknowledged.values())
        if events:
            self._schedule(self._engine.on_transactions_batch, events)
        return len(events)

    def run_pending(self) -> int:
        ran = 0
        while True:
            with self._lock:
                if not self._pending:
                    return ran
                callback = self._pending.pop(0)
            callback()
            ran += 1

    def _finish_restore(self, events: Optional[List[TransactionEvent]]) -> None:
        if events is None:
            self._engine.on_restore_failed("restore rejected by store")
            return
        if events:
            self._engine.on_transactions_batch(events)
        self._engine.on_restore_finished()

    def _record(self, event: TransactionEvent) -> TransactionEvent:
        self.unacknowledged[event.transaction_id] = event
        return event

    def _schedule(self, callback: Callable, *args) -> None:
        if self._engine is None:
            raise RuntimeError("store emulator is not attached to an engine")
        if self.latency is None:
            with self._lock:
                self._pending.append(functools.partial(callback, *args))
        else:
            asyncio.get_running_loop().call_later(self.latency, callback, *args)
