# billing/__init__.py
from .engine import CorrelationEngine, StoreGateway
from .errors import (
    BillingError, DuplicateAttempt, DuplicateHandle, ProductNotFound,
    PurchaseFailed, RestoreFailed, StoreRequestFailed, SubscriptionsNotSupported
)
from .models import Disposition, ProductDescriptor, ProductType, TransactionEvent

__all__ = [
    "CorrelationEngine", "StoreGateway",
    "BillingError", "DuplicateAttempt", "DuplicateHandle", "ProductNotFound",
    "PurchaseFailed", "RestoreFailed", "StoreRequestFailed", "SubscriptionsNotSupported",
    "Disposition", "ProductDescriptor", "ProductType", "TransactionEvent",
]
