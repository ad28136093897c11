"""
Shared fixtures for Query Gateway tests.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from query_gateway.api.schemas import Instrument, InstrumentPair, TimeWindow
from query_gateway.core.config import GatewayOptions
from query_gateway.services.cache import ResponseCache

from tests.ledger_rows import HEADER


@pytest.fixture
def window():
    return TimeWindow(
        start=datetime(2014, 1, 1, tzinfo=timezone.utc),
        end=datetime(2014, 1, 2, tzinfo=timezone.utc),
    )


@pytest.fixture
def usd():
    return Instrument(currency="USD", issuer="rvYAfWj5gh67oV6fW32ZzP3Aw4Eubs59B")


@pytest.fixture
def btc():
    return Instrument(currency="BTC", issuer="rvYAfWj5gh67oV6fW32ZzP3Aw4Eubs59B")


@pytest.fixture
def xrp():
    return Instrument(currency="XRP")


@pytest.fixture
def usd_pair(xrp, usd):
    return InstrumentPair(base=xrp, counter=usd)


@pytest.fixture
def btc_pair(xrp, btc):
    return InstrumentPair(base=xrp, counter=btc)


@pytest.fixture
def mock_ledger():
    """Ledger query provider stand-in returning an empty result."""
    ledger = AsyncMock()
    ledger.offers_exercised = AsyncMock(return_value=[list(HEADER)])
    ledger.health_check = AsyncMock(return_value=True)
    return ledger


@pytest.fixture
def disabled_cache():
    return ResponseCache(GatewayOptions(cache_enabled=False))


@pytest.fixture
def mock_redis():
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    return client


@pytest.fixture
def enabled_cache(mock_redis):
    return ResponseCache(
        GatewayOptions(cache_enabled=True, redis_url="redis://localhost:6379/0"),
        client=mock_redis,
    )
