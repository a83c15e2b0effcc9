"""Tests for mapping raw upstream records to ranked entries."""

from decimal import Decimal

from marketsync.market_data.ranking import rank_records, to_ranked_entry
from marketsync.models import RankedEntry, RawMarketRecord


def _record(symbol: str, change: Decimal | None = Decimal("1")) -> RawMarketRecord:
    return RawMarketRecord(
        symbol=symbol,
        name=symbol.title(),
        current_price=Decimal("1.5"),
        change_24h_percent=change,
    )


class TestRankRecords:
    """Rank assignment and field normalization."""

    def test_btc_eth_scenario(self, btc_eth_records: list[RawMarketRecord]) -> None:
        entries = rank_records(btc_eth_records)
        assert entries == (
            RankedEntry(
                rank=1,
                symbol="BTC",
                name="Bitcoin",
                price=Decimal("50000"),
                change_percent=Decimal("2.5"),
            ),
            RankedEntry(
                rank=2,
                symbol="ETH",
                name="Ethereum",
                price=Decimal("3000"),
                change_percent=Decimal("-1.2"),
            ),
        )

    def test_ranks_are_contiguous_in_upstream_order(self) -> None:
        symbols = ["sol", "btc", "doge", "eth", "xrp", "ada", "dot"]
        entries = rank_records([_record(s) for s in symbols])
        assert [e.rank for e in entries] == list(range(1, len(symbols) + 1))
        # No re-sorting: upstream order is the ranking signal
        assert [e.symbol for e in entries] == [s.upper() for s in symbols]

    def test_missing_change_defaults_to_zero(self) -> None:
        entries = rank_records([_record("usdt", change=None)])
        assert entries[0].change_percent == Decimal("0")
        assert isinstance(entries[0].change_percent, Decimal)

    def test_empty_input_gives_empty_tuple(self) -> None:
        assert rank_records([]) == ()

    def test_returns_tuple(self) -> None:
        assert isinstance(rank_records([_record("btc")]), tuple)


class TestRankedEntry:
    def test_to_ranked_entry_uppercases_symbol(self) -> None:
        entry = to_ranked_entry(3, _record("wBtC"))
        assert entry.symbol == "WBTC"
        assert entry.rank == 3

    def test_is_gainer(self) -> None:
        assert to_ranked_entry(1, _record("a", Decimal("0"))).is_gainer is True
        assert to_ranked_entry(1, _record("b", Decimal("0.01"))).is_gainer is True
        assert to_ranked_entry(1, _record("c", Decimal("-0.01"))).is_gainer is False
