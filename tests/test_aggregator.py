"""
Unit tests for the aggregation engine.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from query_gateway.api.schemas import ParticipantRecord
from query_gateway.core.errors import SubQueryFailure
from query_gateway.providers.ledger_provider import LedgerQueryError
from query_gateway.services.aggregator import MarketAggregator, merge_rows, rank

from tests.ledger_rows import HEADER, trade


class TestMergeRows:
    """Test cases for merge_rows."""

    def test_header_row_skipped(self):
        accounts = {}
        merge_rows(accounts, [list(HEADER)])
        assert accounts == {}

    def test_both_parties_credited(self):
        accounts = {}
        merge_rows(accounts, [list(HEADER), trade(10, "rA", "rB")])
        assert accounts["rA"] == ParticipantRecord(account="rA", volume=10, count=1)
        assert accounts["rB"] == ParticipantRecord(account="rB", volume=10, count=1)

    def test_repeated_counterparty_accumulates(self):
        accounts = {}
        merge_rows(accounts, [list(HEADER), trade(10, "rA", "rB"), trade(4, "rC", "rB")])
        assert accounts["rB"].volume == 14
        assert accounts["rB"].count == 2

    def test_malformed_row(self):
        with pytest.raises(SubQueryFailure):
            merge_rows({}, [list(HEADER), [1, 2, 3]])

    @pytest.mark.parametrize("row", [
        trade(10, None, "rB"),
        trade(10, "rA", 42),
        trade(10, "", "rB"),
        ["t", 1.5, "10", 15, "rA", "rB", "HASH"],
        "not a row",
    ])
    def test_row_with_bad_fields_names_the_row(self, row):
        accounts = {}
        with pytest.raises(SubQueryFailure) as exc_info:
            merge_rows(accounts, [list(HEADER), row])
        assert "malformed row from ledger query" in exc_info.value.message
        assert accounts == {}


def test_rank_is_non_increasing():
    records = [
        ParticipantRecord(account="a", volume=1, count=1),
        ParticipantRecord(account="b", volume=30, count=1),
        ParticipantRecord(account="c", volume=7.5, count=1),
        ParticipantRecord(account="d", volume=30, count=2),
    ]
    volumes = [record.volume for record in rank(records)]
    assert volumes == sorted(volumes, reverse=True)


class TestMarketAggregator:
    """Test cases for MarketAggregator."""

    @pytest.mark.asyncio
    async def test_accounts_merged_across_pairs(self, mock_ledger, usd_pair, btc_pair, window):
        by_counter = {
            "USD": [list(HEADER), trade(10, "rX", "rY")],
            "BTC": [list(HEADER), trade(5, "rX", "rZ"), trade(2, "rX", "rY")],
        }

        async def offers_exercised(base, counter, start_time, end_time, reduce):
            return by_counter[counter.currency]

        mock_ledger.offers_exercised = AsyncMock(side_effect=offers_exercised)
        result = await MarketAggregator(mock_ledger).aggregate([usd_pair, btc_pair], window)

        records = {record.account: record for record in result}
        assert records["rX"].volume == 17
        assert records["rX"].count == 3
        assert records["rY"].volume == 12
        assert records["rY"].count == 2
        assert records["rZ"].volume == 5
        assert [record.account for record in result] == ["rX", "rY", "rZ"]

    @pytest.mark.asyncio
    async def test_one_sub_query_per_pair(self, mock_ledger, usd_pair, btc_pair, window):
        await MarketAggregator(mock_ledger).aggregate([usd_pair, btc_pair], window)

        assert mock_ledger.offers_exercised.await_count == 2
        for call in mock_ledger.offers_exercised.await_args_list:
            assert call.kwargs["start_time"] == window.start
            assert call.kwargs["end_time"] == window.end
            assert call.kwargs["reduce"] is False

    @pytest.mark.asyncio
    async def test_sub_queries_run_concurrently(self, mock_ledger, usd_pair, btc_pair, window):
        running = 0
        peak = 0

        async def offers_exercised(**kwargs):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return [list(HEADER)]

        mock_ledger.offers_exercised = AsyncMock(side_effect=offers_exercised)
        await MarketAggregator(mock_ledger).aggregate([usd_pair, btc_pair], window)
        assert peak == 2

    @pytest.mark.asyncio
    async def test_failure_aborts_and_cancels_siblings(self, mock_ledger, usd_pair, btc_pair, window):
        cancelled = asyncio.Event()

        async def offers_exercised(base, counter, start_time, end_time, reduce):
            if counter.currency == "USD":
                raise LedgerQueryError("ledger unavailable", "ledger_query")
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return [list(HEADER), trade(1, "rA", "rB")]

        mock_ledger.offers_exercised = AsyncMock(side_effect=offers_exercised)

        with pytest.raises(SubQueryFailure) as exc_info:
            await MarketAggregator(mock_ledger).aggregate([btc_pair, usd_pair], window)

        assert exc_info.value.message == "ledger unavailable"
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_no_pairs(self, mock_ledger, window):
        assert await MarketAggregator(mock_ledger).aggregate([], window) == []
        mock_ledger.offers_exercised.assert_not_awaited()
