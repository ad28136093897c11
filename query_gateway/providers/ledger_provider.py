"""
Client for the ledger query service.
The service computes per-pair exchange statistics; the gateway only calls it.
"""

from datetime import datetime
from typing import Any, List, Optional
import httpx

from ..api.schemas import Instrument
from ..core.logging_config import create_logger
from ..services.formatter import format_timestamp
from .base import BaseDataProvider, ProviderError

logger = create_logger(__name__)

OFFERS_EXERCISED_PATH = "/api/offersExercised"

# Positions inside an offers-exercised row
VOLUME_INDEX = 2
ACCOUNT_INDEX = 4
COUNTERPARTY_INDEX = 5


class LedgerQueryError(ProviderError):
    """Raised when the ledger query service reports or causes a failure."""
    pass


class LedgerQueryProvider(BaseDataProvider):
    """HTTP client for the ledger query service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_count: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(
            name="ledger_query",
            base_url=base_url,
            timeout=timeout,
            retry_count=retry_count,
            transport=transport
        )

    async def offers_exercised(
        self,
        base: Instrument,
        counter: Instrument,
        start_time: datetime,
        end_time: datetime,
        reduce: bool = False
    ) -> List[List[Any]]:
        """
        Fetch exercised offers for one market.

        Returns:
            Rows with a header row first; each following row carries the
            volume at position 2 and the two accounts at positions 4 and 5

        Raises:
            LedgerQueryError: If the service fails or answers with an error
        """
        payload = {
            "base": base.to_params(),
            "counter": counter.to_params(),
            "startTime": format_timestamp(start_time),
            "endTime": format_timestamp(end_time),
            "reduce": reduce
        }

        try:
            data = await self._make_request("POST", OFFERS_EXERCISED_PATH, data=payload)
        except ProviderError as e:
            raise LedgerQueryError(e.message, self.name)

        if isinstance(data, dict) and "error" in data:
            raise LedgerQueryError(str(data["error"]), self.name)
        if not isinstance(data, list):
            raise LedgerQueryError(
                f"Unexpected response from {self.name}: expected a list of rows",
                self.name
            )

        logger.debug("Offers exercised received", extra={
            "base": base.currency,
            "counter": counter.currency,
            "rows": len(data)
        })
        return data

    async def health_check(self) -> bool:
        """Check that the ledger query service answers at all."""
        try:
            if not self.client:
                await self.connect()
            response = await self.client.get("/")
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.warning("Provider health check failed", extra={
                "provider": self.name,
                "error": str(e)
            })
            return False
