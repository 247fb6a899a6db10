"""
매매 전략 추상 클래스 정의.

[ 역할 ]
    매매 로직의 인터페이스를 정의.
    종목 하나의 연속된 두 지표 프레임(전일, 당일)과 보유 정보를 받아
    매수/매도/홀드 시그널을 생성.

[ 구현체 ]
    - strategies/ma_cross_rsi.py::MACrossRSIStrategy (이동평균 교차 + RSI 필터)

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine._simulate_day()에서
      매일 종목별로 should_sell()/should_buy()를 호출하여 주문 실행

[ 데이터 흐름 ]
    (previous: IndicatorFrame, current: IndicatorFrame) + position_info
        → generate_signal() → Signal 반환
    Signal.signal_type이 BUY/SELL이면 엔진이 주문 실행.
    당일 프레임까지만 전달되므로 전략은 미래 데이터를 볼 수 없다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from quant_engine.data.indicators import IndicatorFrame


class SignalType(Enum):
    """전략이 반환하는 시그널 종류."""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


@dataclass(frozen=True)
class Signal:
    """generate_signal()의 반환값. 엔진에 전달되어 주문으로 변환됨."""
    signal_type: SignalType
    code: str
    price: float = 0.0       # 시그널 발생 시점 종가
    reason: str = ""         # 시그널 발생 사유 (거래기록에 남음)


@dataclass(frozen=True)
class PositionInfo:
    """현재 보유 현황. backtest/engine.py가 Portfolio에서 구성하여 전략에 전달."""
    code: str
    shares: int = 0               # 보유 수량
    cost_basis: float = 0.0       # 매수가

    @property
    def is_open(self) -> bool:
        return self.shares > 0


class TradingStrategy(ABC):
    """매매 전략 추상 클래스.

    새 전략을 만들려면 이 클래스를 상속받아 아래 메서드를 구현하면 된다:
    - should_buy(): 매수 조건 판단
    - should_sell(): 매도 조건 판단
    generate_signal()은 두 판단을 묶어 Signal로 돌려주는 기본 구현을 제공.
    """

    def __init__(self, name: str, params: dict[str, Any] | None = None):
        self.name = name
        self.params = params or {}  # config.yaml에서 로드된 전략 파라미터

    @abstractmethod
    def should_buy(
        self,
        previous: IndicatorFrame,
        current: IndicatorFrame,
    ) -> tuple[bool, str]:
        """매수 조건 판단.

        Returns:
            (매수 여부, 사유)
        """
        ...

    @abstractmethod
    def should_sell(
        self,
        previous: IndicatorFrame,
        current: IndicatorFrame,
        position_info: PositionInfo,
    ) -> tuple[bool, str]:
        """매도 조건 판단.

        Returns:
            (매도 여부, 사유)
        """
        ...

    def generate_signal(
        self,
        previous: IndicatorFrame,
        current: IndicatorFrame,
        position_info: PositionInfo,
    ) -> Signal:
        """매매 시그널 생성. 보유 중이면 매도만, 미보유면 매수만 판단."""
        code = position_info.code

        if position_info.is_open:
            sell, reason = self.should_sell(previous, current, position_info)
            if sell:
                return Signal(SignalType.SELL, code, price=current.close, reason=reason)
            return Signal(SignalType.HOLD, code, price=current.close, reason=reason)

        buy, reason = self.should_buy(previous, current)
        if buy:
            return Signal(SignalType.BUY, code, price=current.close, reason=reason)
        return Signal(SignalType.HOLD, code, price=current.close, reason=reason)
