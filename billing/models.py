# billing/models.py
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Disposition(str, Enum):
    PURCHASED = "purchased"
    RESTORED = "restored"
    FAILED = "failed"
    PURCHASING = "purchasing"
    DEFERRED = "deferred"


class ProductType(str, Enum):
    PRODUCT = "product"
    SUBSCRIPTION = "subscription"


class ProductDescriptor(BaseModel):
    identifier: str
    title: str
    description: str = ""
    price: Decimal
    currency_code: str = "USD"
    formatted_price: str = ""
    locale_tag: str = "en_US"
    type: ProductType = ProductType.PRODUCT


class TransactionEvent(BaseModel):
    transaction_id: str
    disposition: Disposition
    product_identifier: str
    attempt_id: Optional[str] = None
    # Set on restored transactions; points at the purchase being replayed.
    original_product_identifier: Optional[str] = None

    @property
    def entitled_identifier(self) -> str:
        if self.disposition == Disposition.RESTORED and self.original_product_identifier:
            return self.original_product_identifier
        return self.product_identifier


class FetchProductsIn(BaseModel):
    identifiers: List[str] = Field(..., min_length=1)


class PurchaseIn(BaseModel):
    identifier: str = Field(..., min_length=1)
    # consumables are used up on purchase and never restored
    consume: bool = False


class SubscribeIn(BaseModel):
    identifier: str = Field(..., min_length=1)


class StoreSettingsIn(BaseModel):
    owned: Optional[List[str]] = None
    declined: Optional[List[str]] = None
    fail_products: Optional[bool] = None
    fail_restore: Optional[bool] = None
    supports_subscriptions: Optional[bool] = None
