"""
Route dispatcher for the Query Gateway.
Maps an inbound path onto a route handler and wraps the call with the cache.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from ..core.errors import GatewayError, RouteNotFound
from ..core.logging_config import create_logger
from ..routes.base import RouteHandler
from ..services.cache import ResponseCache

logger = create_logger(__name__)

API_PREFIX = "/api/"


def route_segment(raw_path: str, prefix: str = API_PREFIX) -> str:
    """First path segment after the prefix, e.g. "/api/market_makers/x" -> "market_makers"."""
    path = raw_path[len(prefix):] if raw_path.startswith(prefix) else raw_path
    slash = path.find('/')
    if slash > 0:
        path = path[:slash]
    return path


def normalize_route(raw_path: str, prefix: str = API_PREFIX) -> str:
    """Route key for a raw path: underscores removed, lower-cased."""
    return route_segment(raw_path, prefix).replace('_', '').lower()


class RouteDispatcher:
    """Looks up and invokes route handlers. Holds no per-request state."""

    def __init__(self, routes: Mapping[str, RouteHandler], cache: ResponseCache):
        self._routes = routes
        self._cache = cache

    @property
    def route_keys(self) -> List[str]:
        return list(self._routes.keys())

    async def dispatch(self, raw_path: str, body: Dict[str, Any], remote: Optional[str] = None) -> Any:
        """
        Run the handler registered for ``raw_path``.

        Raises:
            RouteNotFound: If the normalized route is not registered
            GatewayError: If the handler fails
        """
        path = route_segment(raw_path)
        logger.info("Request received", extra={
            "remote": remote,
            "method": "POST",
            "path": path,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })

        route = normalize_route(raw_path)
        handler = self._routes.get(route)
        if handler is None:
            logger.info("Response 404 Not Found", extra={"path": path})
            raise RouteNotFound(route, self.route_keys)

        cache_key = None
        if self._cache.enabled and handler.is_cacheable(body):
            cache_key = ResponseCache.make_key(route, body)
            cached = await self._cache.get(cache_key)
            if cached is not None:
                logger.info("Response 200 OK", extra={
                    "path": path,
                    "cache_hit": True,
                    "timestamp": datetime.now(timezone.utc).isoformat()
                })
                return cached

        try:
            result = await handler.handle(body)
        except GatewayError as e:
            logger.error("Response 500 Server Error", extra={
                "path": path,
                "error": e.message,
                "code": e.code,
                "timestamp": datetime.now(timezone.utc).isoformat()
            })
            raise
        except Exception as e:
            logger.exception("Unhandled error in route handler", extra={
                "path": path,
                "error": str(e),
                "timestamp": datetime.now(timezone.utc).isoformat()
            })
            raise

        if cache_key is not None:
            await self._cache.set(cache_key, result)

        logger.info("Response 200 OK", extra={
            "path": path,
            "cache_hit": False,
            "timestamp": datetime.now(timezone.utc).isoformat()
        })
        return result
