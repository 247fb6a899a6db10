"""
결정적(deterministic) 합성 주가 생성 모듈.

[ 역할 ]
    실제 시세 대신 종목코드에서 유도한 시드로 일별 종가 시계열을 생성.
    (종목코드, 날짜)마다 종가가 하나로 정해져 있고, 요청 기간은 그중 어느 구간을
    잘라 볼지만 정한다. 엔진 / 스냅샷 / generate_prices()가 같은 날 같은 종가를 본다.

[ 생성 방식 ]
    랜덤워크는 고정 기준일 PRICE_ORIGIN(2026-01-01)에 묶여 있다.
    k = PRICE_ORIGIN부터 센 거래일 번호 (기준일 = 0, 이전 날짜는 음수)

    u_k  = 시드 기반 균등분포 [0, 1) 난수열의 k번째 값
    p_0  = 15 + 40 * u_0
    p_k  = p_{k-1} * (1 + (u_k - 0.48) * 0.06)     (k > 0)  ← 약한 상승 편향이 있는 곱셈형 랜덤워크
    p_k  = p_{k+1} / (1 + (v_k - 0.48) * 0.06)     (k < 0)  ← 별도 난수열 v로 거꾸로 진행
    출력 종가는 소수점 2자리 반올림, 랜덤워크 자체는 원래 정밀도로 진행.
    토/일요일은 건너뛴다.

[ 주의 ]
    내장 hash()는 프로세스마다 값이 달라지므로(PYTHONHASHSEED) 시드 유도에 쓰지 않는다.

[ 호출하는 곳 ]
    - backtest/engine.py: 기본 DataProvider로 SyntheticPriceProvider 사용
    - strategies/snapshot.py::build_watchlist()
"""

import zlib
from datetime import date
from typing import Iterator

import numpy as np
import pandas as pd

from quant_engine.core.data_provider import DataProvider, PricePoint

PRICE_ORIGIN = date(2026, 1, 1)  # 랜덤워크 기준일 (평일이어야 함)
BASE_PRICE = 15.0       # 기준일 종가 하한
PRICE_SPAN = 40.0       # 기준일 종가 범위 (15 ~ 55)
DRIFT_CENTER = 0.48     # 일별 기대 변화율 = (0.5 - DRIFT_CENTER) * STEP_SCALE = +0.12%
STEP_SCALE = 0.06       # 일별 변동폭 (±3% 내외)


def code_to_seed(code: str) -> int:
    """종목코드 → 32비트 시드. 프로세스와 무관하게 항상 같은 값."""
    return zlib.crc32(code.encode("utf-8"))


def trading_days(start_date: date, end_date: date) -> list[date]:
    """기간 내 평일 목록 (양 끝 포함)."""
    if end_date < start_date:
        return []
    return [d.date() for d in pd.bdate_range(start=start_date, end=end_date)]


def trading_day_offsets(days: list[date]) -> np.ndarray:
    """PRICE_ORIGIN 기준 거래일 번호. 기준일 = 0, 이전 평일은 음수."""
    return np.busday_count(np.datetime64(PRICE_ORIGIN, "D"), np.array(days, dtype="datetime64[D]"))


class PriceSeries:
    """지연 생성되는 종가 시계열.

    iter()를 호출할 때마다 처음부터 다시 생성하므로 몇 번이든 재순회 가능.
    기간을 어떻게 잡든 같은 날짜의 종가는 같다.

    사용 예:
        series = PriceSeries("600519", date(2026, 1, 5), date(2026, 2, 27))
        closes = [p.close for p in series]
    """

    def __init__(
        self,
        code: str,
        start_date: date,
        end_date: date,
        drift_center: float = DRIFT_CENTER,
        step_scale: float = STEP_SCALE,
    ):
        self.code = code
        self.seed = code_to_seed(code)
        self.start_date = start_date
        self.end_date = end_date
        self.drift_center = drift_center
        self.step_scale = step_scale

    def _step(self, u: float) -> float:
        return 1 + (u - self.drift_center) * self.step_scale

    def _forward(self, last: int) -> list[float]:
        """번호 0..last의 가격."""
        rng = np.random.default_rng(self.seed)
        price = BASE_PRICE + PRICE_SPAN * rng.random()
        prices = [price]
        for _ in range(last):
            price *= self._step(rng.random())
            prices.append(price)
        return prices

    def _backward(self, count: int) -> list[float]:
        """번호 -1..-count의 가격 (i번째 원소 = 번호 -(i+1))."""
        origin_price = BASE_PRICE + PRICE_SPAN * np.random.default_rng(self.seed).random()
        rng = np.random.default_rng([self.seed, 1])
        price = origin_price
        prices = []
        for _ in range(count):
            price /= self._step(rng.random())
            prices.append(price)
        return prices

    def __iter__(self) -> Iterator[PricePoint]:
        days = trading_days(self.start_date, self.end_date)
        if not days:
            return
        offsets = trading_day_offsets(days)
        first, last = int(offsets[0]), int(offsets[-1])
        forward = self._forward(last) if last >= 0 else []
        backward = self._backward(-first) if first < 0 else []

        for day, k in zip(days, offsets):
            k = int(k)
            price = forward[k] if k >= 0 else backward[-k - 1]
            yield PricePoint(date=day, close=round(float(price), 2))

    def __len__(self) -> int:
        return len(trading_days(self.start_date, self.end_date))


def generate_prices(code: str, start_date: date, end_date: date) -> list[PricePoint]:
    """종목의 일별 종가 시계열 생성 (순수 함수)."""
    return list(PriceSeries(code, start_date, end_date))


class SyntheticPriceProvider(DataProvider):
    """PriceSeries 기반 DataProvider 구현체."""

    def __init__(
        self,
        drift_center: float = DRIFT_CENTER,
        step_scale: float = STEP_SCALE,
    ):
        self.drift_center = drift_center
        self.step_scale = step_scale

    def get_price_points(
        self,
        code: str,
        start_date: date,
        end_date: date,
    ) -> list[PricePoint]:
        return list(PriceSeries(
            code,
            start_date,
            end_date,
            drift_center=self.drift_center,
            step_scale=self.step_scale,
        ))
