"""
기술적 지표 계산 모듈.

[ 역할 ]
    종가 시계열에서 단기/장기 단순이동평균(SMA)과 RSI를 계산하여
    날짜별 IndicatorFrame 리스트로 반환.

[ 계산 규칙 ]
    SMA:  직전 N개 종가 평균. N개가 쌓이기 전에는 None (앞쪽을 채우지 않는다)
    RSI:  Wilder 방식 (기간 14)
          - 0 ~ period-2 인덱스: 50.0 (중립값)
          - period-1 인덱스: 처음 period개 종가 안의 변화량으로 평균 상승/하락 계산
          - 이후: avg = (avg * (period - 1) + 당일값) / period
          - 평균 하락이 0이면 0.001로 대체하여 0 나눗셈 방지
          - 종가가 period+1개 미만이면 전부 50.0

[ 호출하는 곳 ]
    - backtest/engine.py: 종목별 프레임 계산
    - strategies/snapshot.py::build_watchlist(): 관심종목 RSI
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import numpy as np
import pandas as pd

SHORT_WINDOW = 5
LONG_WINDOW = 20
RSI_PERIOD = 14
RSI_NEUTRAL = 50.0
RSI_EPSILON = 0.001


@dataclass(frozen=True)
class IndicatorFrame:
    """하루치 지표. ma_short/ma_long은 데이터가 부족하면 None."""
    date: Optional[date]
    close: float
    ma_short: Optional[float]
    ma_long: Optional[float]
    rsi: float

    @property
    def has_ma(self) -> bool:
        return self.ma_short is not None and self.ma_long is not None


def sma(closes: Sequence[float], window: int) -> list[Optional[float]]:
    """단순이동평균. 앞쪽 window-1개는 None."""
    if window <= 0:
        raise ValueError(f"window must be positive: {window}")
    arr = np.asarray(closes, dtype="float64")
    # rolling().mean()의 누적합 오차를 피하려고 구간마다 직접 평균
    return [
        float(arr[i + 1 - window:i + 1].mean()) if i + 1 >= window else None
        for i in range(len(arr))
    ]


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        avg_loss = RSI_EPSILON
    return float(100 - 100 / (1 + avg_gain / avg_loss))


def rsi(closes: Sequence[float], period: int = RSI_PERIOD) -> list[float]:
    """Wilder RSI. 결과 길이는 입력과 같고 항상 0~100 범위."""
    n = len(closes)
    values = [RSI_NEUTRAL] * n
    if period < 2 or n < period + 1:
        return values

    deltas = np.diff(np.asarray(closes, dtype="float64"))
    gains = np.clip(deltas, 0, None)
    losses = np.clip(-deltas, 0, None)

    # 처음 period개 종가 → period-1개의 변화량
    seed = period - 1
    avg_gain = float(gains[:seed].mean())
    avg_loss = float(losses[:seed].mean())
    values[period - 1] = _rsi_value(avg_gain, avg_loss)

    for i in range(period, n):
        # closes[i]의 변화량은 deltas[i-1]
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        values[i] = _rsi_value(avg_gain, avg_loss)

    return values


def compute_indicators(
    closes: Sequence[float],
    dates: Optional[Sequence[date]] = None,
    short_window: int = SHORT_WINDOW,
    long_window: int = LONG_WINDOW,
    rsi_period: int = RSI_PERIOD,
) -> list[IndicatorFrame]:
    """종가 시계열 → IndicatorFrame 리스트.

    Args:
        closes: 날짜 오름차순 종가
        dates: closes와 같은 길이의 날짜 (없으면 date=None)
        short_window: 단기 이동평균 기간
        long_window: 장기 이동평균 기간
        rsi_period: RSI 기간
    """
    closes = [float(c) for c in closes]
    if dates is not None and len(dates) != len(closes):
        raise ValueError(f"dates/closes 길이 불일치: {len(dates)} != {len(closes)}")

    ma_short = sma(closes, short_window)
    ma_long = sma(closes, long_window)
    rsi_values = rsi(closes, rsi_period)

    return [
        IndicatorFrame(
            date=dates[i] if dates is not None else None,
            close=closes[i],
            ma_short=ma_short[i],
            ma_long=ma_long[i],
            rsi=rsi_values[i],
        )
        for i in range(len(closes))
    ]


def indicators_to_frame(frames: Sequence[IndicatorFrame]) -> pd.DataFrame:
    """IndicatorFrame 리스트 → DataFrame (리포트/디버깅용)."""
    return pd.DataFrame(
        [
            {
                "date": f.date,
                "close": f.close,
                "ma_short": f.ma_short,
                "ma_long": f.ma_long,
                "rsi": f.rsi,
            }
            for f in frames
        ],
        columns=["date", "close", "ma_short", "ma_long", "rsi"],
    )
