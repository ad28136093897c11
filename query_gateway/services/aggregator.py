"""
Aggregation engine for multi-market queries.
Fans out one ledger sub-query per market, merges the trade legs by account
and ranks the accounts by volume.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Sequence

from ..api.schemas import InstrumentPair, ParticipantRecord, TimeWindow
from ..core.errors import SubQueryFailure
from ..core.logging_config import create_logger
from ..providers.base import ProviderError
from ..providers.ledger_provider import (
    ACCOUNT_INDEX, COUNTERPARTY_INDEX, VOLUME_INDEX, LedgerQueryProvider
)

logger = create_logger(__name__)


def merge_rows(accounts: Dict[str, ParticipantRecord], rows: Sequence[Sequence[Any]]) -> None:
    """
    Credit both parties of every trade leg with the leg's volume.

    The first row is a header and is skipped. Records are keyed by account
    so an account seen in several markets ends up with one combined record.
    """
    for row in rows[1:]:
        if not isinstance(row, (list, tuple)) or len(row) <= COUNTERPARTY_INDEX:
            raise SubQueryFailure(f"malformed row from ledger query: {row!r}")

        volume = row[VOLUME_INDEX]
        parties = (row[ACCOUNT_INDEX], row[COUNTERPARTY_INDEX])
        if isinstance(volume, bool) or not isinstance(volume, (int, float)):
            raise SubQueryFailure(f"malformed row from ledger query: {row!r}")
        if not all(isinstance(account, str) and account for account in parties):
            raise SubQueryFailure(f"malformed row from ledger query: {row!r}")

        for account in parties:
            record = accounts.get(account)
            if record is None:
                record = accounts[account] = ParticipantRecord(account=account)
            record.credit(volume)


def rank(records: Iterable[ParticipantRecord]) -> List[ParticipantRecord]:
    """
    Order records by descending volume.

    Equal volumes keep their merge order, which is not deterministic
    across runs; no secondary key is applied.
    """
    return sorted(records, key=lambda record: record.volume, reverse=True)


class MarketAggregator:
    """Runs the fan-out, merge and rank steps over a ledger query provider."""

    def __init__(self, ledger: LedgerQueryProvider):
        self._ledger = ledger

    async def aggregate(self, pairs: Sequence[InstrumentPair], window: TimeWindow) -> List[ParticipantRecord]:
        """
        Aggregate trading activity across ``pairs`` inside ``window``.

        Raises:
            SubQueryFailure: If any sub-query fails; no partial result is kept
        """
        logger.debug("Aggregating markets", extra={
            "pairs": len(pairs),
            "start": window.start.isoformat(),
            "end": window.end.isoformat()
        })

        results = await self._fan_out(pairs, window)

        accounts: Dict[str, ParticipantRecord] = {}
        for rows in results:
            merge_rows(accounts, rows)

        ranked = rank(accounts.values())
        logger.info("Aggregation completed", extra={
            "pairs": len(pairs),
            "accounts": len(ranked)
        })
        return ranked

    async def _fan_out(self, pairs: Sequence[InstrumentPair], window: TimeWindow) -> List[Sequence[Sequence[Any]]]:
        """Run every sub-query concurrently; the first failure cancels the rest."""
        tasks = [asyncio.create_task(self._sub_query(pair, window)) for pair in pairs]
        results = []
        try:
            # results are collected in arrival order
            for next_result in asyncio.as_completed(tasks):
                results.append(await next_result)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # retrieves sibling failures so none is reported as unhandled
            await asyncio.gather(*tasks, return_exceptions=True)
        return results

    async def _sub_query(self, pair: InstrumentPair, window: TimeWindow) -> Sequence[Sequence[Any]]:
        try:
            return await self._ledger.offers_exercised(
                base=pair.base,
                counter=pair.counter,
                start_time=window.start,
                end_time=window.end,
                reduce=False
            )
        except ProviderError as e:
            logger.error("Ledger sub-query failed", extra={
                "base": pair.base.currency,
                "counter": pair.counter.currency,
                "error": e.message
            })
            raise SubQueryFailure(e.message, pair.model_dump())
