"""
offersexercised route: a single market passed straight to the ledger query service.
"""

from typing import Any, Dict

from ..core.errors import BaseRequired, SubQueryFailure
from ..providers.base import ProviderError
from ..providers.ledger_provider import LedgerQueryProvider
from ..services.time_window import resolve_window
from .base import RouteHandler
from .validation import validate_pair


class OffersExercisedRoute(RouteHandler):
    """Returns the ledger query service's rows for one market unchanged."""

    name = "offersexercised"

    def __init__(self, ledger: LedgerQueryProvider, native_currency: str = "XRP"):
        self._ledger = ledger
        self._native_currency = native_currency

    def is_cacheable(self, params: Dict[str, Any]) -> bool:
        return params.get("startTime") is not None

    async def handle(self, params: Dict[str, Any]) -> Any:
        window = resolve_window(params.get("range"), params.get("startTime"))
        pair = validate_pair(params.get("base"), params.get("counter"), self._native_currency)
        if pair is None:
            raise BaseRequired()

        try:
            return await self._ledger.offers_exercised(
                base=pair.base,
                counter=pair.counter,
                start_time=window.start,
                end_time=window.end,
                reduce=bool(params.get("reduce", False))
            )
        except ProviderError as e:
            raise SubQueryFailure(e.message, pair.model_dump())
