# billing/errors.py
from typing import Optional


class BillingError(Exception):
    code = "ERROR"
    message = "Billing request failed!"
    status_code = 500

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self):
        return {"code": self.code, "message": self.message, "details": self.details}


class StoreRequestFailed(BillingError):
    message = "Failed to make IAP request!"
    status_code = 502


class RestoreFailed(StoreRequestFailed):
    message = "Failed to restore purchases!"


class PurchaseFailed(BillingError):
    message = "Failed to make a payment!"
    status_code = 402


class ProductNotFound(BillingError):
    message = "product not found"
    status_code = 404


# Identity collisions in request tracking. Raised by the registry; these
# indicate misuse rather than a store outcome.
class DuplicateHandle(BillingError):
    message = "request handle already registered"
    status_code = 409


class DuplicateAttempt(BillingError):
    message = "purchase already in progress"
    status_code = 409


class InvalidArguments(BillingError):
    message = "Invalid or missing arguments!"
    status_code = 400


class MethodNotImplemented(BillingError):
    code = "NOT_IMPLEMENTED"
    message = "method not implemented"
    status_code = 501


class SubscriptionsNotSupported(BillingError):
    code = "NOT SUPPORTED"
    message = "Subscriptions are not supported."
    status_code = 501
