"""Abstract market data source interface.

The sync engine depends only on this contract, keeping provider-specific
details (URLs, query parameters, field names) in the concrete fetcher.
"""

from abc import ABC, abstractmethod

from marketsync.models import RawMarketRecord


class MarketDataSource(ABC):
    """One request/response round trip to a ranked market listing."""

    @abstractmethod
    async def fetch(self, limit: int, currency: str) -> list[RawMarketRecord]:
        """Return up to ``limit`` records quoted in ``currency``, in upstream rank order.

        Raises:
            FetchError: One of NetworkError, HttpStatusError, DecodeError or
                EmptyResultError. Implementations must not retry.
            ValueError: If ``limit`` or ``currency`` is out of range.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources."""
        ...
