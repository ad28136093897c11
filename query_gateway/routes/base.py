"""
Route handler contract and the immutable route table.
"""

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping


class RouteHandler(ABC):
    """One named analytical route."""

    # Normalized route key, e.g. "marketmakers"
    name: str = ""

    def is_cacheable(self, params: Dict[str, Any]) -> bool:
        """Whether a successful result for these params may be cached."""
        return True

    @abstractmethod
    async def handle(self, params: Dict[str, Any]) -> Any:
        """
        Run the route for one request body.

        Raises:
            GatewayError: On validation or downstream failure
        """
        pass


def build_route_table(handlers: Iterable[RouteHandler]) -> Mapping[str, RouteHandler]:
    """Register handlers by name into a read-only mapping."""
    table: Dict[str, RouteHandler] = {}
    for handler in handlers:
        if not handler.name:
            raise ValueError(f"{type(handler).__name__} has no route name")
        if handler.name in table:
            raise ValueError(f"Duplicate route: {handler.name}")
        table[handler.name] = handler
    return MappingProxyType(table)
