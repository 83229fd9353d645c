# billing/engine.py
import logging
import threading
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set, Tuple

from .callers import Caller
from .catalog import ProductCache
from .classifier import classify_transactions
from .errors import (
    DuplicateAttempt, ProductNotFound, PurchaseFailed, RestoreFailed, StoreRequestFailed,
    SubscriptionsNotSupported
)
from .ledger import PurchaseLedger
from .models import ProductDescriptor, ProductType, TransactionEvent
from .registry import PendingRequestRegistry

logger = logging.getLogger(__name__)

Delivery = Tuple[Callable[[Any], None], Any]


class StoreGateway(Protocol):
    """What the platform store adapter must provide. Every submit is fire-and-forget."""

    def submit_products_request(self, handle: str, identifiers: Set[str],
                                product_type: ProductType) -> None: ...

    def submit_payment_request(self, attempt_id: str, product: ProductDescriptor,
                               consume: bool) -> None: ...

    def submit_restore_request(self) -> None: ...

    def acknowledge_transaction(self, transaction_id: str) -> None: ...

    def supports_subscriptions(self) -> bool: ...


class CorrelationEngine:
    """
    Matches caller requests to the store's asynchronous callbacks.

    Caller operations (fetch_products, fetch_subscriptions, purchase, subscribe,
    fetch_purchases) register a pending entry and return straight away. The
    store adapter reports back through the on_* handlers. State is only touched
    under self._lock; callers are resolved and transactions acknowledged once
    the lock is released.
    """

    def __init__(self, store: StoreGateway, id_factory: Optional[Callable[[], str]] = None):
        self._store = store
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._lock = threading.RLock()
        self._registry = PendingRequestRegistry()
        self._ledger = PurchaseLedger()
        self._catalog = ProductCache()
        # handle -> type of catalog the fetch was for
        self._fetch_types: Dict[str, ProductType] = {}
        # product identifier -> attempt id of the purchase not yet terminal
        self._in_flight: Dict[str, str] = {}
        # attempts whose product is used up on purchase, so never entitled
        self._consumable: Set[str] = set()

    # ---------------------------
    # Caller operations
    # ---------------------------
    def fetch_products(self, identifiers: Iterable[str], caller: Caller) -> str:
        return self._fetch(identifiers, caller, ProductType.PRODUCT)

    def fetch_subscriptions(self, identifiers: Iterable[str], caller: Caller) -> str:
        return self._fetch(identifiers, caller, ProductType.SUBSCRIPTION)

    def purchase(self, identifier: str, caller: Caller, consume: bool = False) -> Optional[str]:
        return self._pay(identifier, caller, ProductType.PRODUCT, consume)

    def subscribe(self, identifier: str, caller: Caller) -> Optional[str]:
        if not self._store.supports_subscriptions():
            logger.warning("subscription to %s rejected: not supported by store", identifier)
            caller.error(SubscriptionsNotSupported(details=identifier))
            return None
        return self._pay(identifier, caller, ProductType.SUBSCRIPTION, False)

    def fetch_purchases(self, caller: Caller) -> None:
        with self._lock:
            start_cycle = not self._registry.has_restore_waiters
            self._registry.register_restore_waiter(caller)
        if not start_cycle:
            logger.debug("restore already in flight, waiter queued")
            return
        logger.debug("restore cycle started")
        try:
            self._store.submit_restore_request()
        except Exception as exc:
            logger.exception("store rejected restore request")
            self.on_restore_failed(reason=str(exc))

    # ---------------------------
    # Store callbacks
    # ---------------------------
    def on_products_response(self, handle: str, products: Iterable[ProductDescriptor]) -> None:
        products = list(products)
        with self._lock:
            caller = self._registry.resolve_fetch(handle)
            product_type = self._fetch_types.pop(handle, ProductType.PRODUCT)
            # A late or duplicate answer must not clobber a newer catalog.
            if caller is not None:
                self._catalog.replace(products, product_type)
        if caller is None:
            logger.warning("products response for unknown handle %s ignored", handle)
            return
        caller.success(products)

    def on_products_failure(self, handle: str, reason: Optional[str] = None) -> None:
        with self._lock:
            caller = self._registry.resolve_fetch(handle)
            self._fetch_types.pop(handle, None)
        if caller is None:
            logger.warning("products failure for unknown handle %s ignored", handle)
            return
        logger.warning("products request %s failed: %s", handle, reason)
        caller.error(StoreRequestFailed(details=reason))

    def on_transactions_batch(self, events: Iterable[TransactionEvent]) -> None:
        batch = classify_transactions(events)
        acknowledged: List[str] = []
        deliveries: List[Delivery] = []

        with self._lock:
            purchased_callers = []
            for event in batch.purchased:
                consumed = event.attempt_id in self._consumable
                if not consumed:
                    self._ledger.add(event.entitled_identifier)
                caller = self._release_attempt(event.attempt_id, event.product_identifier)
                if caller is not None:
                    purchased_callers.append((caller, event.product_identifier if consumed else None))
                acknowledged.append(event.transaction_id)

            for event in batch.restored:
                self._ledger.add(event.entitled_identifier)
                acknowledged.append(event.transaction_id)

            for event in batch.failed:
                caller = self._release_attempt(event.attempt_id, event.product_identifier)
                if caller is not None:
                    deliveries.append((caller.error, PurchaseFailed(details=event.product_identifier)))
                acknowledged.append(event.transaction_id)

            snapshot = self._ledger.snapshot()
            for caller, consumed in purchased_callers:
                # a consumable is reported to its buyer once, on top of the ledger
                if consumed is None or consumed in snapshot:
                    deliveries.append((caller.success, snapshot))
                else:
                    deliveries.append((caller.success, snapshot + [consumed]))

        # Callers above are already out of the registry; they get answered
        # whatever the store does with the acknowledgements.
        for transaction_id in acknowledged:
            try:
                self._store.acknowledge_transaction(transaction_id)
            except Exception:
                logger.exception("acknowledging transaction %s failed", transaction_id)
        self._deliver(deliveries)

    def on_restore_finished(self) -> None:
        with self._lock:
            waiters = self._registry.drain_restore_waiters()
            snapshot = self._ledger.snapshot()
        logger.info("restore cycle finished, %d waiter(s), %d entitlement(s)", len(waiters), len(snapshot))
        self._deliver([(waiter.success, snapshot) for waiter in waiters])

    def on_restore_failed(self, reason: Optional[str] = None) -> None:
        with self._lock:
            waiters = self._registry.drain_restore_waiters()
        logger.warning("restore cycle failed for %d waiter(s): %s", len(waiters), reason)
        self._deliver([(waiter.error, RestoreFailed(details=reason)) for waiter in waiters])

    # ---------------------------
    # Request submission
    # ---------------------------
    def _fetch(self, identifiers: Iterable[str], caller: Caller, product_type: ProductType) -> str:
        identifiers = set(identifiers)
        with self._lock:
            handle = self._new_id()
            self._registry.register_fetch(handle, caller)
            self._fetch_types[handle] = product_type
        logger.debug("%s request %s for %s", product_type.value, handle, sorted(identifiers))
        try:
            self._store.submit_products_request(handle, identifiers, product_type)
        except Exception as exc:
            logger.exception("store rejected products request %s", handle)
            self.on_products_failure(handle, reason=str(exc))
        return handle

    def _pay(self, identifier: str, caller: Caller, product_type: ProductType,
             consume: bool) -> Optional[str]:
        with self._lock:
            product = self._catalog.find(identifier, product_type)
            if product is None:
                rejection = ProductNotFound(details=identifier)
            elif identifier in self._in_flight:
                rejection = DuplicateAttempt(details=identifier)
            else:
                rejection = None
                attempt_id = self._new_id()
                self._registry.register_purchase(attempt_id, caller)
                self._in_flight[identifier] = attempt_id
                if consume:
                    self._consumable.add(attempt_id)

        if rejection is not None:
            logger.warning("purchase of %s rejected: %s", identifier, rejection.message)
            caller.error(rejection)
            return None

        logger.debug("payment %s submitted for %s", attempt_id, identifier)
        try:
            self._store.submit_payment_request(attempt_id, product, consume)
        except Exception:
            logger.exception("store rejected payment %s", attempt_id)
            with self._lock:
                pending = self._release_attempt(attempt_id, identifier)
            if pending is not None:
                pending.error(PurchaseFailed(details=identifier))
        return attempt_id

    # ---------------------------
    # Read-only views
    # ---------------------------
    def entitlements(self) -> List[str]:
        with self._lock:
            return self._ledger.snapshot()

    def products(self, product_type: Optional[ProductType] = None) -> List[ProductDescriptor]:
        with self._lock:
            return self._catalog.products(product_type)

    def pending(self) -> Dict[str, Any]:
        with self._lock:
            counts = self._registry.counts()
            counts["in_flight_products"] = sorted(self._in_flight)
            return counts

    # ---------------------------
    # Helpers
    # ---------------------------
    def _release_attempt(self, attempt_id: Optional[str], identifier: str) -> Optional[Caller]:
        # Caller must hold self._lock.
        if attempt_id is None:
            return None
        self._consumable.discard(attempt_id)
        if self._in_flight.get(identifier) == attempt_id:
            del self._in_flight[identifier]
        return self._registry.resolve_purchase(attempt_id)

    @staticmethod
    def _deliver(deliveries: List[Delivery]) -> None:
        for resolve, value in deliveries:
            resolve(value)
