"""Shared data models for the market data sync engine.

All monetary values use Decimal. Never use float for prices or percentages.
Published models are frozen: a snapshot is replaced, never edited.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from marketsync.exceptions import FetchError


class SnapshotStatus(str, Enum):
    """Freshness of a published snapshot."""

    OK = "ok"
    STALE_AFTER_ERROR = "stale-after-error"


class EngineState(str, Enum):
    """Lifecycle state of a SyncEngine."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class RawMarketRecord:
    """One market entry as received from the upstream listing."""

    symbol: str
    name: str
    current_price: Decimal
    change_24h_percent: Decimal | None = None


@dataclass(frozen=True)
class RankedEntry:
    """Canonical display record for a single asset."""

    rank: int  # 1-based position in the upstream order
    symbol: str  # uppercased
    name: str
    price: Decimal
    change_percent: Decimal = Decimal("0")

    @property
    def is_gainer(self) -> bool:
        """True when the 24h change is zero or positive."""
        return self.change_percent >= 0


@dataclass(frozen=True)
class Snapshot:
    """Immutable ranked market view published by the engine.

    Entries are ordered by rank. ``produced_at`` is the Unix time at which
    the entries were fetched, so a stale snapshot keeps the timestamp of the
    last successful cycle.
    """

    entries: tuple[RankedEntry, ...] = ()
    produced_at: float = field(default_factory=time.time)
    status: SnapshotStatus = SnapshotStatus.OK
    error: FetchError | None = None

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def is_stale(self) -> bool:
        return self.status is SnapshotStatus.STALE_AFTER_ERROR

    def get(self, symbol: str) -> RankedEntry | None:
        """Return the entry for a symbol (case-insensitive), or None."""
        wanted = symbol.upper()
        for entry in self.entries:
            if entry.symbol == wanted:
                return entry
        return None

    def age(self, now: float | None = None) -> float:
        """Seconds elapsed since the entries were produced."""
        if now is None:
            now = time.time()
        return now - self.produced_at


@dataclass
class EngineStatus:
    """Point-in-time counters describing a running engine."""

    state: EngineState
    cycles_completed: int
    cycles_failed: int
    cycles_skipped: int
    last_success_at: float | None
    last_error: FetchError | None
    entry_count: int
    snapshot_status: SnapshotStatus
