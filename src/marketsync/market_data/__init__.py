"""Market data layer -- upstream fetching, ranking, and snapshot synchronization."""

from marketsync.market_data.coingecko import CoinGeckoFetcher
from marketsync.market_data.ranking import rank_records
from marketsync.market_data.source import MarketDataSource
from marketsync.market_data.sync_engine import SyncEngine

__all__ = ["CoinGeckoFetcher", "MarketDataSource", "SyncEngine", "rank_records"]
