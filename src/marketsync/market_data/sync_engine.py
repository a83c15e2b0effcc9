"""Market data sync engine -- keeps a ranked snapshot current for observers.

Uses REST polling on a fixed interval (30s by default). Each tick starts one
refresh cycle: fetch the listing, rank it, and publish a new immutable
Snapshot by swapping a single reference. Readers never take a lock; they see
either the old or the new snapshot.

Overlap policy: at most one cycle is in flight. A tick that fires while the
previous cycle is still waiting on the network is skipped, not queued.

Failure policy: a FetchError never escapes the engine. The previous entries
stay visible in a snapshot marked stale-after-error, and the next tick
retries on its own.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Callable
from dataclasses import replace

from marketsync.config import SyncSettings
from marketsync.exceptions import EngineStateError, EngineStoppedError, FetchError
from marketsync.logging import cycle_context, get_logger
from marketsync.market_data.ranking import rank_records
from marketsync.market_data.source import MarketDataSource
from marketsync.models import (
    EngineState,
    EngineStatus,
    RankedEntry,
    Snapshot,
    SnapshotStatus,
)

logger = get_logger(__name__)

SnapshotObserver = Callable[[Snapshot], None]


def next_tick_after(tick: float, interval: float, now: float) -> tuple[float, int]:
    """Return the first grid point at or after ``now`` and how many were missed.

    The grid is ``tick + k * interval``. Normally the next point is
    ``tick + interval`` and nothing is skipped; after a stall every point
    already in the past counts as missed.
    """
    next_tick = tick + interval
    if next_tick >= now:
        return next_tick, 0
    missed = math.ceil((now - next_tick) / interval)
    return next_tick + missed * interval, missed


class SyncEngine:
    """Owns the refresh schedule and the published market snapshot.

    Lifecycle is Idle -> Running -> Stopped. Stopped is terminal.

    - ``start()`` on a running engine logs a warning and does nothing, so
      repeated calls never arm a second timer.
    - ``start()`` on a stopped engine raises EngineStoppedError.
    - ``stop()`` on an idle or stopped engine does nothing.

    Args:
        source: Market data fetcher invoked once per refresh cycle.
        settings: Refresh interval, listing size and quote currency.
        close_source_on_stop: Close ``source`` when the engine stops.
    """

    def __init__(
        self,
        source: MarketDataSource,
        settings: SyncSettings | None = None,
        *,
        close_source_on_stop: bool = False,
    ) -> None:
        self._source = source
        self._settings = settings or SyncSettings()
        self._close_source_on_stop = close_source_on_stop
        self._state = EngineState.IDLE
        self._snapshot = Snapshot()
        self._observers: list[SnapshotObserver] = []
        self._timer_task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._cycle_task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._cycles_completed = 0
        self._cycles_failed = 0
        self._cycles_skipped = 0
        self._cycle_seq = 0
        self._last_success_at: float | None = None
        self._last_error: FetchError | None = None

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def refresh_interval(self) -> float:
        return self._settings.refresh_interval

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start refreshing: one cycle right away, then one per interval."""
        if self._state is EngineState.STOPPED:
            raise EngineStoppedError("sync engine was stopped; create a new instance")
        if self._state is EngineState.RUNNING:
            logger.warning("sync_engine_already_running")
            return

        self._state = EngineState.RUNNING
        self._snapshot = Snapshot(produced_at=time.time())
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info(
            "sync_engine_started",
            refresh_interval=self._settings.refresh_interval,
            limit=self._settings.limit,
            currency=self._settings.currency,
        )

    async def stop(self) -> None:
        """Stop the schedule and discard any result still in flight."""
        if self._state is not EngineState.RUNNING:
            return

        # Flip state before the first await: every publish checks it
        self._state = EngineState.STOPPED

        current = asyncio.current_task()
        for task in (self._timer_task, self._cycle_task):
            if task is None or task is current:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._timer_task = None
        self._cycle_task = None

        if self._close_source_on_stop:
            await self._source.close()

        logger.info(
            "sync_engine_stopped",
            cycles_completed=self._cycles_completed,
            cycles_failed=self._cycles_failed,
            cycles_skipped=self._cycles_skipped,
        )

    async def __aenter__(self) -> SyncEngine:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Observer boundary
    # ------------------------------------------------------------------

    def current_snapshot(self) -> Snapshot:
        """Return the latest published snapshot. Never blocks."""
        return self._snapshot

    def subscribe(self, observer: SnapshotObserver) -> Callable[[], None]:
        """Call ``observer`` with each snapshot published by a successful cycle.

        Failed cycles do not notify; poll ``current_snapshot()`` for the
        stale status. Returns a function that removes the observer.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def get_status(self) -> EngineStatus:
        """Return cycle counters and the current snapshot state."""
        snapshot = self._snapshot
        return EngineStatus(
            state=self._state,
            cycles_completed=self._cycles_completed,
            cycles_failed=self._cycles_failed,
            cycles_skipped=self._cycles_skipped,
            last_success_at=self._last_success_at,
            last_error=self._last_error,
            entry_count=len(snapshot),
            snapshot_status=snapshot.status,
        )

    async def refresh_now(self) -> Snapshot:
        """Run a refresh cycle outside the schedule and return the result.

        If a cycle is already in flight, waits for it instead of starting
        another one.
        """
        if self._state is EngineState.STOPPED:
            raise EngineStoppedError("sync engine was stopped")
        if self._state is EngineState.IDLE:
            raise EngineStateError("sync engine has not been started")

        task = self._cycle_task
        if task is None or task.done():
            task = self._spawn_cycle()
        await asyncio.wait({task})
        return self._snapshot

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def _timer_loop(self) -> None:
        """Dispatch a cycle on every tick until stopped.

        Ticks are laid out on a fixed grid from the start time so the
        cadence does not drift with cycle duration. Grid points missed
        during a loop stall are dropped, not replayed.
        """
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while self._state is EngineState.RUNNING:
            self._on_tick()
            next_tick, missed = next_tick_after(
                next_tick, self._settings.refresh_interval, loop.time()
            )
            if missed:
                self._cycles_skipped += missed
                logger.debug("refresh_ticks_dropped", missed=missed)
            await asyncio.sleep(next_tick - loop.time())

    def _on_tick(self) -> None:
        if self._cycle_task is not None and not self._cycle_task.done():
            self._cycles_skipped += 1
            logger.debug("refresh_cycle_skipped", reason="previous_cycle_in_flight")
            return
        self._spawn_cycle()

    def _spawn_cycle(self) -> asyncio.Task:  # type: ignore[type-arg]
        self._cycle_task = asyncio.create_task(self._run_cycle())
        return self._cycle_task

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------

    async def _run_cycle(self) -> None:
        """Fetch, rank and publish once. Never raises FetchError."""
        self._cycle_seq += 1
        with cycle_context(self._cycle_seq):
            try:
                records = await self._source.fetch(
                    self._settings.limit, self._settings.currency
                )
                entries = rank_records(records)
            except FetchError as exc:
                self._publish_failure(exc)
                return
            except Exception:
                self._cycles_failed += 1
                logger.warning("refresh_cycle_error", exc_info=True)
                return

            self._publish_success(entries)

    def _publish_success(self, entries: tuple[RankedEntry, ...]) -> None:
        if self._state is not EngineState.RUNNING:
            logger.debug("refresh_result_discarded", reason="engine_stopped")
            return

        now = time.time()
        snapshot = Snapshot(
            entries=entries,
            produced_at=now,
            status=SnapshotStatus.OK,
        )
        self._snapshot = snapshot
        self._cycles_completed += 1
        self._last_success_at = now
        logger.debug("snapshot_published", count=len(entries))
        self._notify(snapshot)

    def _publish_failure(self, error: FetchError) -> None:
        if self._state is not EngineState.RUNNING:
            logger.debug("refresh_error_discarded", reason="engine_stopped")
            return

        # Same entries and produced_at; only the freshness annotation changes
        self._snapshot = replace(
            self._snapshot,
            status=SnapshotStatus.STALE_AFTER_ERROR,
            error=error,
        )
        self._cycles_failed += 1
        self._last_error = error
        logger.warning(
            "refresh_cycle_failed",
            kind=error.kind.value,
            error=str(error),
            retained_entries=len(self._snapshot),
        )

    def _notify(self, snapshot: Snapshot) -> None:
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.warning("snapshot_observer_error", exc_info=True)
