# billing/callers.py
import asyncio
import logging
from typing import Any, Protocol

from .errors import BillingError

logger = logging.getLogger(__name__)


class Caller(Protocol):
    """Whoever is waiting on a request. Exactly one of its methods is called, once."""

    def success(self, value: Any) -> None: ...

    def error(self, error: BillingError) -> None: ...


class FutureCaller:
    """Resolves an asyncio future from whichever thread the store calls back on."""

    def __init__(self, future: asyncio.Future):
        self.future = future
        self._loop = future.get_loop()

    def success(self, value: Any) -> None:
        self._post(self._set_result, value)

    def error(self, error: BillingError) -> None:
        self._post(self._set_exception, error)

    def _post(self, callback, value) -> None:
        # The awaiting request may be long gone, e.g. a client that hung up.
        if self._loop.is_closed():
            logger.warning("dropping result for caller on a closed event loop")
            return
        self._loop.call_soon_threadsafe(callback, value)

    def _set_result(self, value: Any) -> None:
        if not self.future.done():
            self.future.set_result(value)

    def _set_exception(self, error: BillingError) -> None:
        if not self.future.done():
            self.future.set_exception(error)
