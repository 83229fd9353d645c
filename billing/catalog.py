# billing/catalog.py
from typing import Dict, Iterable, List, Optional

from .models import ProductDescriptor, ProductType


class ProductCache:
    """
    The last catalog the store returned, one per product type. A fetch
    replaces the entries of its own type entirely.
    """

    def __init__(self):
        self._products: Dict[ProductType, Dict[str, ProductDescriptor]] = {}

    def replace(self, products: Iterable[ProductDescriptor],
                product_type: ProductType = ProductType.PRODUCT) -> None:
        self._products[product_type] = {p.identifier: p for p in products}

    def find(self, identifier: str,
             product_type: ProductType = ProductType.PRODUCT) -> Optional[ProductDescriptor]:
        return self._products.get(product_type, {}).get(identifier)

    def products(self, product_type: Optional[ProductType] = None) -> List[ProductDescriptor]:
        if product_type is not None:
            return list(self._products.get(product_type, {}).values())
        return [p for entries in self._products.values() for p in entries.values()]
