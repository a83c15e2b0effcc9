"""Shared test fixtures for the market sync engine."""

from decimal import Decimal

import pytest

from marketsync.config import AppSettings, CoinGeckoSettings, SyncSettings
from marketsync.models import RawMarketRecord


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (fast interval, dummy API key)."""
    return AppSettings(
        log_level="DEBUG",
        coingecko=CoinGeckoSettings(
            base_url="https://api.test.local/api/v3",
            api_key="test-api-key",  # type: ignore[arg-type]
            request_timeout=2.0,
        ),
        sync=SyncSettings(refresh_interval=0.05, limit=10, currency="usd"),
    )


@pytest.fixture
def btc_eth_records() -> list[RawMarketRecord]:
    """Two raw records in upstream (market cap) order."""
    return [
        RawMarketRecord(
            symbol="btc",
            name="Bitcoin",
            current_price=Decimal("50000"),
            change_24h_percent=Decimal("2.5"),
        ),
        RawMarketRecord(
            symbol="eth",
            name="Ethereum",
            current_price=Decimal("3000"),
            change_24h_percent=Decimal("-1.2"),
        ),
    ]
