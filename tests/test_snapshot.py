"""관심종목 스냅샷 테스트."""

from datetime import date, timedelta

import pytest

from quant_engine.core.universe import DEFAULT_UNIVERSE, InstrumentDescriptor
from quant_engine.data.price_generator import generate_prices
from quant_engine.strategies.snapshot import (
    LOOKBACK_DAYS,
    Quote,
    build_watchlist,
    snapshot_signals,
    summarize_watchlist,
)


def _quote(code: str, change_pct: float) -> Quote:
    return Quote(code=code, name=f"name-{code}", price=10.0, change_pct=change_pct)


class TestSnapshotSignals:
    """등락률 기반 분류."""

    def test_thresholds_are_strict(self):
        result = snapshot_signals([
            {"code": "A", "change_pct": 3.5},
            {"code": "B", "change_pct": 3.0},
            {"code": "C", "change_pct": -2.0},
            {"code": "D", "change_pct": -2.5},
            {"code": "E", "change_pct": 0.0},
        ])
        assert [q.code for q in result.buy_candidates] == ["A"]
        assert [q.code for q in result.sell_candidates] == ["D"]

    def test_signal_and_reason_attached(self):
        result = snapshot_signals([_quote("600519", 4.2), _quote("000858", -3.1)])
        buy = result.buy_candidates[0]
        sell = result.sell_candidates[0]
        assert buy.signal == "buy"
        assert buy.reason == "daily change > +3%"
        assert sell.signal == "sell"
        assert sell.reason == "daily change < -2%"
        assert buy.name == "name-600519"

    def test_input_not_mutated(self):
        quote = _quote("600519", 4.2)
        snapshot_signals([quote])
        assert quote.signal == ""

    def test_custom_thresholds(self):
        result = snapshot_signals(
            [_quote("A", 1.5), _quote("B", -1.5)],
            buy_change_pct=1.0,
            sell_change_pct=-1.0,
        )
        assert len(result.buy_candidates) == 1
        assert len(result.sell_candidates) == 1

    def test_empty(self):
        result = snapshot_signals([])
        assert result.buy_candidates == []
        assert result.sell_candidates == []


class TestSummarizeWatchlist:
    """상승/하락 분포 요약."""

    def test_counts_and_average(self):
        quotes = [_quote("A", 1.0), _quote("B", -2.0), _quote("C", 0.0), _quote("D", 4.0)]
        summary = summarize_watchlist(quotes)
        assert summary.total == 4
        assert summary.up == 2
        assert summary.down == 1
        assert summary.flat == 1
        assert summary.avg_change_pct == pytest.approx(0.75)

    def test_top_movers_sorted_and_limited(self):
        quotes = [_quote(f"{i:06d}", float(i)) for i in range(10)]
        summary = summarize_watchlist(quotes, top_n=8)
        assert len(summary.top_movers) == 8
        assert summary.top_movers[0].change_pct == 9.0
        assert summary.top_movers[-1].change_pct == 2.0

    def test_empty(self):
        summary = summarize_watchlist([])
        assert summary.total == 0
        assert summary.avg_change_pct == 0.0


class TestBuildWatchlist:
    """유니버스 시세판."""

    def test_quotes_follow_generated_prices(self):
        as_of = date(2026, 2, 27)
        quotes = build_watchlist(DEFAULT_UNIVERSE, as_of)
        assert [q.code for q in quotes] == [i.code for i in DEFAULT_UNIVERSE]

        for quote in quotes:
            points = generate_prices(quote.code, as_of - timedelta(days=LOOKBACK_DAYS), as_of)
            prev, last = points[-2].close, points[-1].close
            assert quote.price == last
            assert quote.change_pct == pytest.approx(round((last / prev - 1) * 100, 2))
            assert 0.0 <= quote.rsi <= 100.0

    def test_deterministic(self):
        as_of = date(2026, 2, 27)
        assert build_watchlist(DEFAULT_UNIVERSE, as_of) == build_watchlist(DEFAULT_UNIVERSE, as_of)

    def test_feeds_snapshot_signals(self):
        quotes = build_watchlist(DEFAULT_UNIVERSE, date(2026, 3, 13))
        result = snapshot_signals(quotes)
        for q in result.buy_candidates:
            assert q.change_pct > 3.0
        for q in result.sell_candidates:
            assert q.change_pct < -2.0

    def test_display_name_used(self):
        universe = [InstrumentDescriptor("600519", "贵州茅台")]
        quotes = build_watchlist(universe, date(2026, 2, 27))
        assert quotes[0].name == "贵州茅台"
        assert quotes[0].to_dict()["code"] == "600519"
