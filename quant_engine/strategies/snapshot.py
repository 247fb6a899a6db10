"""
관심종목 스냅샷 시그널 모듈.

[ 역할 ]
    대시보드용 "당일 시세판". 이동평균 이력과 무관하게
    당일 등락률만으로 매수/매도 후보를 분류하는 무상태 로직.
        등락률 > +3%  → 매수 후보
        등락률 < -2%  → 매도 후보

[ 주요 함수 ]
    build_watchlist()    - 유니버스의 as_of 기준 시세(Quote) 목록 구성
    snapshot_signals()   - Quote 목록 → 매수/매도 후보 분류
    summarize_watchlist() - 상승/하락/보합 종목 수, 평균 등락률, 등락 상위 종목

[ 호출하는 곳 ]
    - run_backtest.py --snapshot
"""

import logging
from dataclasses import asdict, dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Iterable, Mapping

from quant_engine.core.data_provider import DataProvider
from quant_engine.core.universe import InstrumentDescriptor
from quant_engine.data.indicators import RSI_PERIOD, compute_indicators
from quant_engine.data.price_generator import SyntheticPriceProvider

logger = logging.getLogger("quant_engine.strategies")

BUY_CHANGE_PCT = 3.0
SELL_CHANGE_PCT = -2.0
TOP_MOVERS = 8
LOOKBACK_DAYS = 60  # RSI 계산에 필요한 과거 구간 (달력일)


@dataclass(frozen=True)
class Quote:
    """관심종목 한 줄. signal/reason은 snapshot_signals()가 채운다."""
    code: str
    name: str
    price: float
    change_pct: float
    rsi: float | None = None
    signal: str = ""
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SnapshotSignals:
    """snapshot_signals()의 반환값."""
    buy_candidates: list[Quote] = field(default_factory=list)
    sell_candidates: list[Quote] = field(default_factory=list)


@dataclass(frozen=True)
class WatchlistSummary:
    """시세판 요약 (상승/하락/보합 분포)."""
    total: int
    up: int
    down: int
    flat: int
    avg_change_pct: float
    top_movers: list[Quote]


def _as_quote(item: Quote | Mapping[str, Any]) -> Quote:
    if isinstance(item, Quote):
        return item
    code = str(item["code"])
    return Quote(
        code=code,
        name=str(item.get("name", code)),
        price=float(item.get("price", 0.0)),
        change_pct=float(item["change_pct"]),
        rsi=item.get("rsi"),
    )


def snapshot_signals(
    latest_prices: Iterable[Quote | Mapping[str, Any]],
    buy_change_pct: float = BUY_CHANGE_PCT,
    sell_change_pct: float = SELL_CHANGE_PCT,
) -> SnapshotSignals:
    """당일 등락률로 매수/매도 후보 분류 (순수 함수).

    Args:
        latest_prices: Quote 또는 {"code", "change_pct", ...} dict 목록
        buy_change_pct: 이 값을 초과하면 매수 후보
        sell_change_pct: 이 값 미만이면 매도 후보
    """
    buys: list[Quote] = []
    sells: list[Quote] = []
    for item in latest_prices:
        quote = _as_quote(item)
        if quote.change_pct > buy_change_pct:
            buys.append(replace(
                quote, signal="buy", reason=f"daily change > +{buy_change_pct:g}%",
            ))
        elif quote.change_pct < sell_change_pct:
            sells.append(replace(
                quote, signal="sell", reason=f"daily change < {sell_change_pct:g}%",
            ))
    return SnapshotSignals(buy_candidates=buys, sell_candidates=sells)


def build_watchlist(
    universe: Iterable[InstrumentDescriptor],
    as_of: date,
    provider: DataProvider | None = None,
    rsi_period: int = RSI_PERIOD,
) -> list[Quote]:
    """유니버스의 as_of 기준 시세 목록.

    as_of 이전 마지막 두 거래일 종가로 등락률을 구한다.
    거래일이 2일 미만인 종목은 목록에서 빠진다.
    """
    provider = provider or SyntheticPriceProvider()
    start = as_of - timedelta(days=LOOKBACK_DAYS)

    quotes: list[Quote] = []
    for instrument in universe:
        points = provider.get_price_points(instrument.code, start, as_of)
        if len(points) < 2:
            logger.warning(f"{instrument.code}: 시세 데이터 부족 ({len(points)}일), 제외")
            continue

        closes = [p.close for p in points]
        frames = compute_indicators(closes, rsi_period=rsi_period)
        prev_close, last_close = closes[-2], closes[-1]
        change_pct = (last_close / prev_close - 1) * 100 if prev_close > 0 else 0.0

        quotes.append(Quote(
            code=instrument.code,
            name=instrument.display_name,
            price=last_close,
            change_pct=round(change_pct, 2),
            rsi=round(frames[-1].rsi, 2),
        ))
    return quotes


def summarize_watchlist(
    quotes: Iterable[Quote | Mapping[str, Any]],
    top_n: int = TOP_MOVERS,
) -> WatchlistSummary:
    """상승/하락/보합 종목 수와 평균 등락률, 등락률 상위 top_n 종목."""
    quotes = [_as_quote(q) for q in quotes]
    up = sum(1 for q in quotes if q.change_pct > 0)
    down = sum(1 for q in quotes if q.change_pct < 0)
    avg = sum(q.change_pct for q in quotes) / len(quotes) if quotes else 0.0
    movers = sorted(quotes, key=lambda q: (-q.change_pct, q.code))[:top_n]
    return WatchlistSummary(
        total=len(quotes),
        up=up,
        down=down,
        flat=len(quotes) - up - down,
        avg_change_pct=round(avg, 2),
        top_movers=movers,
    )
