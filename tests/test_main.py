"""Tests for component wiring and logging setup."""

import logging

import structlog

from marketsync.config import AppSettings
from marketsync.logging import cycle_context, get_logger, setup_logging
from marketsync.main import build_engine
from marketsync.market_data.coingecko import CoinGeckoFetcher
from marketsync.models import EngineState


def test_build_engine_wires_fetcher(mock_settings: AppSettings) -> None:
    engine = build_engine(mock_settings)
    assert engine.state is EngineState.IDLE
    assert isinstance(engine._source, CoinGeckoFetcher)
    assert engine._close_source_on_stop is True
    assert engine.refresh_interval == mock_settings.sync.refresh_interval


def test_setup_logging_sets_root_level() -> None:
    setup_logging("DEBUG")
    try:
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING
        assert get_logger("marketsync.test") is not None
    finally:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        logging.getLogger().setLevel(logging.WARNING)


def test_cycle_context_binds_and_unbinds() -> None:
    assert "cycle" not in structlog.contextvars.get_contextvars()
    with cycle_context(7):
        assert structlog.contextvars.get_contextvars()["cycle"] == 7
    assert "cycle" not in structlog.contextvars.get_contextvars()
