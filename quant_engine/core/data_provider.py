"""
종가 데이터 제공 추상 클래스 정의.

[ 역할 ]
    일별 종가 데이터를 제공하는 인터페이스.
    데이터 소스(합성 시계열, 테스트용 변형 데이터 등)에 독립적으로
    지표 계산/백테스트에 데이터 공급.

[ 구현체 ]
    - data/price_generator.py::SyntheticPriceProvider  (시드 기반 결정적 합성 시계열)
    - 테스트에서 특정 구간을 변형한 Provider (미래 데이터 누출 검증용)

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine이 종목별 종가 조회
    - strategies/snapshot.py::build_watchlist()가 당일/전일 종가 조회
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

import pandas as pd

PRICE_COLUMNS = ["date", "close"]


@dataclass(frozen=True)
class PricePoint:
    """하루치 종가. 주말은 존재하지 않는다."""
    date: date
    close: float


class DataProvider(ABC):
    """종가 데이터 제공 추상 클래스.

    모든 데이터 제공자 구현체는 get_price_points()만 구현하면 된다.
    """

    @abstractmethod
    def get_price_points(
        self,
        code: str,
        start_date: date,
        end_date: date,
    ) -> list[PricePoint]:
        """종가 시계열 조회.

        Args:
            code: 종목 코드
            start_date: 시작일
            end_date: 종료일

        Returns:
            날짜 오름차순 PricePoint 리스트 (end_date < start_date면 빈 리스트)
        """
        ...

    def get_prices(
        self,
        code: str,
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """종가 시계열을 DataFrame으로 조회.

        Returns:
            DataFrame with columns: [date, close]
        """
        points = self.get_price_points(code, start_date, end_date)
        if not points:
            return pd.DataFrame(columns=PRICE_COLUMNS)
        return pd.DataFrame(
            {"date": [p.date for p in points], "close": [p.close for p in points]},
            columns=PRICE_COLUMNS,
        )
