"""
Error taxonomy for the Query Gateway.
Every error that can reach the dispatch boundary derives from GatewayError.
"""

from typing import Any, Dict, List, Optional


class GatewayError(Exception):
    """Base exception for gateway errors."""

    code = "GATEWAY_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        """Convert to the ``{error}`` response envelope."""
        return {"error": self.message}


class RouteNotFound(GatewayError):
    """Raised when a normalized route key is not in the route table."""

    code = "ROUTE_NOT_FOUND"

    def __init__(self, route: str, valid_routes: List[str]):
        self.route = route
        self.valid_routes = list(valid_routes)
        super().__init__(
            "Sorry, that API route doesn't seem to exist."
            " Available paths are: " + ", ".join(self.valid_routes) + "\n",
            {"route": route},
        )


class InvalidParameter(GatewayError):
    """A request parameter could not be used."""

    code = "INVALID_PARAMETER"


class InvalidBaseInstrument(InvalidParameter):
    def __init__(self):
        super().__init__("invalid base currency")


class InvalidCounterInstrument(InvalidParameter):
    def __init__(self):
        super().__init__("invalid counter currency")


class BaseRequired(InvalidParameter):
    def __init__(self):
        super().__init__("base currency is required")


class CounterRequired(InvalidParameter):
    def __init__(self):
        super().__init__("counter currency is required")


class MissingCounterparty(InvalidParameter):
    """An issued currency arrived without its issuing counterparty."""

    def __init__(self, side: str):
        self.side = side
        super().__init__(f"{side} issuer is required")


class NativeIssuerNotAllowed(InvalidParameter):
    def __init__(self, native_currency: str):
        super().__init__(f"{native_currency} cannot have an issuer")


class SubQueryFailure(GatewayError):
    """One fan-out sub-query failed; the whole aggregation is abandoned."""

    code = "SUB_QUERY_FAILURE"

    def __init__(self, message: str, pair: Optional[Dict[str, Any]] = None):
        super().__init__(message, {"pair": pair} if pair else None)


class CacheUnavailable(GatewayError):
    """Internal only: the cache store failed and caching is now off."""

    code = "CACHE_UNAVAILABLE"
