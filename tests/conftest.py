"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock

import pytest

from marketsig.credentials import SessionCredentialProvider
from marketsig.market.client import MarketDataClient

FIXED_TIMESTAMP = 1700000000000


@pytest.fixture
def public_secret():
    """Shared public-tier secret."""
    return "s3cr3t"


@pytest.fixture
def user_secret():
    """Per-user secret."""
    return "user_secret_789012"


@pytest.fixture
def fixed_clock():
    """Clock frozen at a known millisecond timestamp."""
    return lambda: FIXED_TIMESTAMP


@pytest.fixture
def credentials(public_secret):
    """Anonymous session that signs with the public secret."""
    return SessionCredentialProvider(public_secret)


@pytest.fixture
def transport():
    """Transport whose request() returns a successful empty list by default."""
    mock = AsyncMock()
    mock.request = AsyncMock(return_value={"code": 200, "data": []})
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def client(transport, credentials, fixed_clock):
    """Market data client wired to the mock transport."""
    return MarketDataClient(transport, credentials, clock=fixed_clock)


@pytest.fixture
def sample_klines():
    """Sample candle rows: open time, open, high, low, close, volume."""
    return [
        [1700000000000, "37000.1", "37100.0", "36950.5", "37050.2", "12.5"],
        [1700003600000, "37050.2", "37200.0", "37000.0", "37180.9", "9.8"],
    ]


@pytest.fixture
def sample_ticker():
    """Sample 24h ticker payload."""
    return {
        "symbol": "BTCUSDT",
        "lastPrice": "37180.90",
        "priceChangePercent": "1.25",
        "volume": "10234.5",
    }


@pytest.fixture
def sample_depth():
    """Sample depth payload."""
    return {
        "asks": [["37181.0", "0.5"], ["37182.5", "1.2"]],
        "bids": [["37180.0", "0.8"], ["37179.5", "2.0"]],
    }


@pytest.fixture
def sample_trades():
    """Sample recent trades payload."""
    return [
        {"id": 1, "price": "37180.9", "qty": "0.01", "side": "buy", "time": 1700000001000},
        {"id": 2, "price": "37181.0", "qty": "0.02", "side": "sell", "time": 1700000002000},
    ]
