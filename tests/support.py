# tests/support.py
from decimal import Decimal
from itertools import count

from billing.models import Disposition, ProductDescriptor, ProductType, TransactionEvent


class RecordingCaller:
    def __init__(self):
        self.results = []
        self.errors = []

    def success(self, value):
        self.results.append(value)

    def error(self, error):
        self.errors.append(error)

    @property
    def calls(self):
        return len(self.results) + len(self.errors)


class FakeStore:
    """Records what the engine asks of the store; answers nothing by itself."""

    def __init__(self):
        self.products_requests = []
        self.payments = []
        self.restore_requests = 0
        self.acknowledged = []
        self.requested_types = []
        self.consumed = []
        self.subscriptions = True

    def supports_subscriptions(self):
        return self.subscriptions

    def submit_products_request(self, handle, identifiers, product_type=ProductType.PRODUCT):
        self.products_requests.append((handle, identifiers))
        self.requested_types.append(product_type)

    def submit_payment_request(self, attempt_id, product, consume=False):
        self.payments.append((attempt_id, product.identifier))
        if consume:
            self.consumed.append(attempt_id)

    def submit_restore_request(self):
        self.restore_requests += 1

    def acknowledge_transaction(self, transaction_id):
        self.acknowledged.append(transaction_id)


def make_product(identifier, price="1.99", currency="USD", product_type=ProductType.PRODUCT):
    return ProductDescriptor(
        identifier=identifier,
        title=identifier.title(),
        description=f"{identifier} description",
        price=Decimal(price),
        currency_code=currency,
        formatted_price=f"${price}",
        locale_tag="en_US",
        type=product_type,
    )


_txn_ids = count(1)


def make_event(disposition, product, attempt_id=None, transaction_id=None, original=None):
    return TransactionEvent(
        transaction_id=transaction_id or f"t{next(_txn_ids)}",
        disposition=Disposition(disposition),
        product_identifier=product,
        attempt_id=attempt_id,
        original_product_identifier=original,
    )


def load_catalog(engine, *identifiers):
    """Run a products fetch to completion so purchases can find the products."""
    caller = RecordingCaller()
    handle = engine.fetch_products(identifiers, caller)
    engine.on_products_response(handle, [make_product(i) for i in identifiers])
    return caller


def load_subscriptions(engine, *identifiers):
    caller = RecordingCaller()
    handle = engine.fetch_subscriptions(identifiers, caller)
    engine.on_products_response(
        handle, [make_product(i, product_type=ProductType.SUBSCRIPTION) for i in identifiers]
    )
    return caller
