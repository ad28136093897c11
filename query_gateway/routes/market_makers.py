"""
marketmakers route.

Returns the accounts that traded a market during a time range, ordered by
volume. Without an explicit base/counter pair the configured basket of
reference markets is queried, each against the native currency.

Request body:
    base (object, optional): {"currency": ..., "issuer": ...}
    counter (object, optional): required when base is present
    range (string, optional): "30d", "7d" or "24h"; anything else means 24h
    startTime (string, optional): anchor; the window runs forward from it
    format (string, optional): "json", "csv", otherwise a raw table
"""

from typing import Any, Dict, List, Sequence

from ..api.schemas import Instrument, InstrumentPair
from ..core.logging_config import create_logger
from ..services.aggregator import MarketAggregator
from ..services.formatter import format_results
from ..services.time_window import resolve_window
from .base import RouteHandler
from .validation import validate_pair

logger = create_logger(__name__)


def default_pairs(basket: Sequence[Instrument], native_currency: str) -> List[InstrumentPair]:
    """Pair every basket instrument with the native currency as base."""
    native = Instrument(currency=native_currency)
    return [InstrumentPair(base=native, counter=instrument) for instrument in basket]


class MarketMakersRoute(RouteHandler):
    """Ranks market participants by traded volume."""

    name = "marketmakers"

    def __init__(self, aggregator: MarketAggregator, basket: Sequence[Instrument], native_currency: str = "XRP"):
        self._aggregator = aggregator
        self._native_currency = native_currency
        self._default_pairs = default_pairs(basket, native_currency)

    def is_cacheable(self, params: Dict[str, Any]) -> bool:
        # windows without an anchor slide with the clock
        return params.get("startTime") is not None

    async def handle(self, params: Dict[str, Any]) -> Any:
        window = resolve_window(params.get("range"), params.get("startTime"))
        pair = validate_pair(params.get("base"), params.get("counter"), self._native_currency)
        pairs = [pair] if pair is not None else self._default_pairs

        logger.debug("Market makers query", extra={
            "pairs": len(pairs),
            "default_basket": pair is None,
            "range": params.get("range")
        })

        rows = await self._aggregator.aggregate(pairs, window)
        return format_results(rows, window, params.get("format"))
