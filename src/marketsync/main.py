"""Entry point for the headless market sync runner.

Wires the components together, starts the sync engine, and logs every
published snapshot until SIGINT/SIGTERM is received. A rendering layer
would subscribe to the engine the same way ``_log_snapshot`` does.

Component wiring order:
1. AppSettings (configuration)
2. Logging setup
3. CoinGeckoFetcher (upstream HTTP client)
4. SyncEngine (schedule + snapshot owner)
"""

import asyncio
import signal

from marketsync.config import AppSettings
from marketsync.logging import get_logger, setup_logging
from marketsync.market_data.coingecko import CoinGeckoFetcher
from marketsync.market_data.sync_engine import SyncEngine
from marketsync.models import Snapshot

logger = get_logger("marketsync.main")


def build_engine(settings: AppSettings) -> SyncEngine:
    """Build the fetcher and engine from settings. The engine owns the fetcher."""
    fetcher = CoinGeckoFetcher(settings.coingecko)
    return SyncEngine(fetcher, settings.sync, close_source_on_stop=True)


def _log_snapshot(snapshot: Snapshot) -> None:
    logger.info(
        "market_snapshot",
        count=len(snapshot),
        top=[
            f"{entry.rank}. {entry.symbol} {entry.price} ({entry.change_percent:+}%)"
            for entry in snapshot.entries
        ],
    )


async def run() -> None:
    """Run the engine until a shutdown signal arrives."""
    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level)

    # 3-4. Build components
    engine = build_engine(settings)
    engine.subscribe(_log_snapshot)

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    logger.info(
        "marketsync_starting",
        base_url=settings.coingecko.base_url,
        currency=settings.sync.currency,
        limit=settings.sync.limit,
    )

    await engine.start()
    try:
        await shutdown.wait()
        logger.info("graceful_shutdown_signal")
    finally:
        await engine.stop()
        logger.info("marketsync_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
