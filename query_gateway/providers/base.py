"""
Abstract base class for outbound data providers used by the gateway.
Owns the HTTP client lifecycle and the retry policy.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import httpx
import asyncio

from ..core.logging_config import create_logger

logger = create_logger(__name__)


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider: str):
        self.message = message
        self.provider = provider
        super().__init__(self.message)


class BaseDataProvider(ABC):
    """Abstract base class for HTTP backed data providers."""

    def __init__(
        self,
        name: str,
        base_url: str,
        timeout: float = 30.0,
        retry_count: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.name = name
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.retry_count = max(1, retry_count)
        self.client: Optional[httpx.AsyncClient] = None
        self._transport = transport

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()

    async def connect(self) -> None:
        """Initialize HTTP client connection."""
        if self.client is None:
            timeout = httpx.Timeout(self.timeout, connect=10.0)
            limits = httpx.Limits(max_keepalive_connections=10, max_connections=50)

            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=timeout,
                limits=limits,
                headers=self._get_default_headers(),
                follow_redirects=True,
                transport=self._transport
            )

            logger.debug("Connected to provider", extra={"provider": self.name})

    async def disconnect(self) -> None:
        """Close HTTP client connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.debug("Disconnected from provider", extra={"provider": self.name})

    def _get_default_headers(self) -> Dict[str, str]:
        return {
            'User-Agent': 'Ledger-Query-Gateway/1.0.0',
            'Accept': 'application/json',
            'Content-Type': 'application/json'
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Make HTTP request with retries and error handling."""

        if not self.client:
            await self.connect()

        for attempt in range(self.retry_count):
            try:
                logger.debug("Making request to provider", extra={
                    "provider": self.name,
                    "method": method,
                    "url": url,
                    "attempt": attempt + 1
                })

                response = await self.client.request(method=method, url=url, json=data)

                # Server side failures are worth another attempt, client errors are not
                if response.status_code >= 500 and attempt < self.retry_count - 1:
                    logger.warning("Provider returned server error", extra={
                        "provider": self.name,
                        "status_code": response.status_code,
                        "attempt": attempt + 1
                    })
                    await asyncio.sleep(2 ** attempt)
                    continue

                response.raise_for_status()

                try:
                    payload = response.json()
                except ValueError as e:
                    raise ProviderError(
                        f"Invalid JSON response from {self.name}: {str(e)}",
                        self.name
                    )

                logger.debug("Received response from provider", extra={
                    "provider": self.name,
                    "status_code": response.status_code,
                    "response_size": len(response.content)
                })
                return payload

            except httpx.TimeoutException:
                logger.warning("Request timeout", extra={
                    "provider": self.name,
                    "attempt": attempt + 1,
                    "url": url
                })

                if attempt < self.retry_count - 1:
                    await asyncio.sleep(2 ** attempt)  # Exponential backoff
                    continue
                raise ProviderError(f"Request timeout for {self.name}", self.name)

            except httpx.HTTPStatusError as e:
                raise ProviderError(
                    f"HTTP error for {self.name}: {e.response.status_code}",
                    self.name
                )

            except httpx.HTTPError as e:
                logger.warning("HTTP error", extra={
                    "provider": self.name,
                    "error": str(e),
                    "attempt": attempt + 1
                })

                if attempt < self.retry_count - 1:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise ProviderError(f"HTTP error for {self.name}: {str(e)}", self.name)

        raise ProviderError(f"Max retries exceeded for {self.name}", self.name)

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the provider is healthy and responding."""
        pass
