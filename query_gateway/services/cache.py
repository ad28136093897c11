"""
Redis response cache for the Query Gateway.
Short-circuits repeated identical queries and fails open: any store error
turns caching off for the rest of the process.
"""

import json
import asyncio
from typing import Any, Dict, Optional
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from ..core.config import GatewayOptions
from ..core.errors import CacheUnavailable
from ..core.logging_config import create_logger

logger = create_logger(__name__)

CACHE_KEY_PREFIX = "gateway"


class ResponseCache:
    """Process-wide cache of successful handler results."""

    def __init__(self, options: GatewayOptions, client: Optional[redis.Redis] = None):
        self._enabled = options.cache_enabled
        self._url = options.redis_url
        self._ttl = options.cache_ttl
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[redis.Redis] = client
        self._connection_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @staticmethod
    def make_key(route: str, params: Dict[str, Any]) -> str:
        """Key from the normalized route and the serialized parameters."""
        serialized = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
        return f"{CACHE_KEY_PREFIX}:{route}:{serialized}"

    async def start(self) -> None:
        """
        Connect and flush the store.

        Flushing on every start means no request ever sees an entry written
        by a previous process.
        """
        if not self._enabled:
            logger.info("Response cache disabled")
            return

        # TODO: after connecting, walk the most recent ledger closes and record the
        # last consecutive one before trusting cached reads for recent windows
        await self.connect()
        if not self._enabled:
            return

        try:
            await self._redis.flushdb()
            logger.info("Response cache flushed on startup")
        except (RedisError, OSError) as e:
            self._disable(e)

    async def connect(self) -> None:
        """Initialize Redis connection pool."""
        async with self._connection_lock:
            if self._redis is not None:
                return
            try:
                self._pool = ConnectionPool.from_url(
                    self._url,
                    max_connections=20,
                    retry_on_timeout=True,
                    socket_keepalive=True,
                    health_check_interval=30
                )
                self._redis = redis.Redis(connection_pool=self._pool)

                # Test connection
                await self._redis.ping()
                logger.info("Successfully connected to Redis")

            except (RedisError, OSError) as e:
                self._disable(e)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        async with self._connection_lock:
            if self._redis:
                await self._redis.aclose()
                self._redis = None
            if self._pool:
                await self._pool.disconnect()
                self._pool = None
            logger.info("Disconnected from Redis")

    async def health_check(self) -> bool:
        """Check Redis connection health."""
        if not self._enabled or not self._redis:
            return False
        try:
            await self._redis.ping()
            return True
        except (RedisError, OSError) as e:
            logger.warning("Redis health check failed", extra={"error": str(e)})
            return False

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss."""
        if not self._enabled or self._redis is None:
            return None
        try:
            cached = await self._redis.get(key)
        except (RedisError, OSError) as e:
            self._disable(e)
            return None

        if cached is None:
            return None
        try:
            return json.loads(cached)
        except ValueError as e:
            logger.warning("Failed to deserialize cached response", extra={
                "key": key,
                "error": str(e)
            })
            return None

    async def set(self, key: str, value: Any) -> None:
        """Store a successful handler result."""
        if not self._enabled or self._redis is None:
            return
        try:
            payload = json.dumps(value, default=str)
            if self._ttl:
                await self._redis.setex(key, self._ttl, payload)
            else:
                await self._redis.set(key, payload)
        except (RedisError, OSError) as e:
            self._disable(e)

    async def invalidate(self, key: str) -> None:
        if not self._enabled or self._redis is None:
            return
        try:
            await self._redis.delete(key)
        except (RedisError, OSError) as e:
            self._disable(e)

    def _disable(self, error: Exception) -> None:
        failure = CacheUnavailable(f"Redis - {error}")
        logger.error("Response cache disabled", extra={
            "error": failure.message,
            "code": failure.code
        })
        self._enabled = False
