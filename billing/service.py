# billing/service.py
import asyncio
from typing import Any, Dict, List, Optional

from .callers import FutureCaller
from .engine import CorrelationEngine
from .errors import InvalidArguments, MethodNotImplemented
from .models import ProductDescriptor

# Awaitable wrappers around the engine, plus the plugin-style method dispatch
# used by the HTTP layer.


class BillingService:
    def __init__(self, engine: CorrelationEngine):
        self.engine = engine

    async def fetch_products(self, identifiers: List[str]) -> List[ProductDescriptor]:
        caller = self._new_caller()
        self.engine.fetch_products(identifiers, caller)
        return await caller.future

    async def fetch_subscriptions(self, identifiers: List[str]) -> List[ProductDescriptor]:
        caller = self._new_caller()
        self.engine.fetch_subscriptions(identifiers, caller)
        return await caller.future

    async def purchase(self, identifier: str, consume: bool = False) -> List[str]:
        caller = self._new_caller()
        self.engine.purchase(identifier, caller, consume=consume)
        return await caller.future

    async def subscribe(self, identifier: str) -> List[str]:
        caller = self._new_caller()
        self.engine.subscribe(identifier, caller)
        return await caller.future

    async def fetch_purchases(self) -> List[str]:
        caller = self._new_caller()
        self.engine.fetch_purchases(caller)
        return await caller.future

    async def handle(self, method: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidArguments()

        if method == "fetchPurchases":
            return await self.fetch_purchases()

        if method == "purchase":
            consume = arguments.get("consume", False)
            if consume is None:
                consume = False
            if not isinstance(consume, bool):
                raise InvalidArguments()
            return await self.purchase(_identifier(arguments), consume=consume)

        if method == "subscribe":
            return await self.subscribe(_identifier(arguments))

        if method == "fetchProducts":
            products = await self.fetch_products(_identifiers(arguments))
            return [p.model_dump(mode="json") for p in products]

        if method == "fetchSubscriptions":
            products = await self.fetch_subscriptions(_identifiers(arguments))
            return [p.model_dump(mode="json") for p in products]

        raise MethodNotImplemented(details=method)

    @staticmethod
    def _new_caller() -> FutureCaller:
        return FutureCaller(asyncio.get_running_loop().create_future())


def _identifier(arguments: Dict[str, Any]) -> str:
    identifier = arguments.get("identifier")
    if not isinstance(identifier, str) or not identifier:
        raise InvalidArguments()
    return identifier


def _identifiers(arguments: Dict[str, Any]) -> List[str]:
    identifiers = arguments.get("identifiers")
    if not isinstance(identifiers, list) or not all(isinstance(i, str) for i in identifiers):
        raise InvalidArguments()
    return identifiers
