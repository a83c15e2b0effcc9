"""Map raw upstream records to ranked display entries.

The upstream order is the ranking signal (market cap descending); records
are never re-sorted here.
"""

from collections.abc import Sequence
from decimal import Decimal

from marketsync.models import RankedEntry, RawMarketRecord


def to_ranked_entry(rank: int, record: RawMarketRecord) -> RankedEntry:
    """Build a RankedEntry for a record at the given 1-based rank."""
    change = record.change_24h_percent
    return RankedEntry(
        rank=rank,
        symbol=record.symbol.upper(),
        name=record.name,
        price=record.current_price,
        change_percent=change if change is not None else Decimal("0"),
    )


def rank_records(records: Sequence[RawMarketRecord]) -> tuple[RankedEntry, ...]:
    """Assign contiguous ranks 1..N in the order the records were received."""
    return tuple(
        to_ranked_entry(rank, record) for rank, record in enumerate(records, start=1)
    )
