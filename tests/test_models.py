"""Tests for snapshot helpers and immutability."""

import dataclasses
from decimal import Decimal

import pytest

from marketsync.exceptions import FetchErrorKind, HttpStatusError
from marketsync.models import RankedEntry, Snapshot, SnapshotStatus


@pytest.fixture
def snapshot() -> Snapshot:
    return Snapshot(
        entries=(
            RankedEntry(rank=1, symbol="BTC", name="Bitcoin", price=Decimal("50000")),
            RankedEntry(rank=2, symbol="ETH", name="Ethereum", price=Decimal("3000")),
        ),
        produced_at=1_700_000_000.0,
    )


class TestSnapshot:
    def test_default_is_empty_ok(self) -> None:
        empty = Snapshot()
        assert empty.is_empty
        assert len(empty) == 0
        assert empty.status is SnapshotStatus.OK
        assert not empty.is_stale

    def test_get_is_case_insensitive(self, snapshot: Snapshot) -> None:
        entry = snapshot.get("eth")
        assert entry is not None
        assert entry.rank == 2
        assert snapshot.get("DOGE") is None

    def test_age(self, snapshot: Snapshot) -> None:
        assert snapshot.age(now=1_700_000_012.5) == 12.5

    def test_frozen(self, snapshot: Snapshot) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.status = SnapshotStatus.STALE_AFTER_ERROR  # type: ignore[misc]
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.entries[0].price = Decimal("1")  # type: ignore[misc]

    def test_status_values(self) -> None:
        assert SnapshotStatus.OK.value == "ok"
        assert SnapshotStatus.STALE_AFTER_ERROR.value == "stale-after-error"


class TestFetchErrors:
    def test_http_status_carries_code(self) -> None:
        error = HttpStatusError(500)
        assert error.status_code == 500
        assert error.kind is FetchErrorKind.HTTP_STATUS
        assert repr(error) == "HttpStatusError(500)"
        assert "500" in str(error)
