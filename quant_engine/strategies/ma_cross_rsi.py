"""
이동평균 교차 + RSI 필터 전략 구현.

[ 역할 ]
    core/trading_strategy.py::TradingStrategy의 구현체.
    "단기 이평이 장기 이평을 상향 돌파(골든크로스)하면 매수,
     하향 돌파(데드크로스)하거나 RSI 과매수면 전량 매도"

[ 전략 흐름 ]
    매일 종목별로 (전일 프레임, 당일 프레임) 쌍이 전달됨 (← backtest/engine.py에서)
        ├── 둘 중 하나라도 이평이 없으면 → 시그널 없음
        ├── 보유 중이면 should_sell()
        │     ├── 전일 단기 >= 장기, 당일 단기 < 장기 → SELL "MA death cross"
        │     └── 당일 RSI > rsi_sell_floor           → SELL "RSI overbought"
        └── 미보유면 should_buy()
              └── 전일 단기 <= 장기, 당일 단기 > 장기, RSI < rsi_buy_ceiling
                                                      → BUY "MA golden cross"

[ 파라미터 (config.yaml의 strategy 섹션에서 로드) ]
    short_window:    단기 이동평균 기간 (일)
    long_window:     장기 이동평균 기간 (일)
    rsi_period:      RSI 기간
    rsi_buy_ceiling: 이 값 이상이면 골든크로스여도 매수하지 않음
    rsi_sell_floor:  이 값을 넘으면 과매수로 보고 매도
"""

from typing import Any

from quant_engine.core.trading_strategy import PositionInfo, TradingStrategy
from quant_engine.data.indicators import IndicatorFrame
from quant_engine.strategies import register

REASON_GOLDEN_CROSS = "MA golden cross"
REASON_DEATH_CROSS = "MA death cross"
REASON_RSI_OVERBOUGHT = "RSI overbought"


def is_golden_cross(previous: IndicatorFrame, current: IndicatorFrame) -> bool:
    """단기 이평이 장기 이평을 아래에서 위로 돌파."""
    if not (previous.has_ma and current.has_ma):
        return False
    return previous.ma_short <= previous.ma_long and current.ma_short > current.ma_long


def is_death_cross(previous: IndicatorFrame, current: IndicatorFrame) -> bool:
    """단기 이평이 장기 이평을 위에서 아래로 돌파."""
    if not (previous.has_ma and current.has_ma):
        return False
    return previous.ma_short >= previous.ma_long and current.ma_short < current.ma_long


@register("ma_cross_rsi")
class MACrossRSIStrategy(TradingStrategy):
    """이동평균 교차 + RSI 필터 전략 구현체."""

    DEFAULT_PARAMS = {
        "short_window": 5,
        "long_window": 20,
        "rsi_period": 14,
        "rsi_buy_ceiling": 70.0,
        "rsi_sell_floor": 80.0,
    }

    def __init__(self, params: dict[str, Any] | None = None):
        merged = {**self.DEFAULT_PARAMS, **(params or {})}
        super().__init__(name="ma_cross_rsi", params=merged)

    @property
    def short_window(self) -> int:
        return int(self.params["short_window"])

    @property
    def long_window(self) -> int:
        return int(self.params["long_window"])

    @property
    def rsi_period(self) -> int:
        return int(self.params["rsi_period"])

    @property
    def rsi_buy_ceiling(self) -> float:
        return float(self.params["rsi_buy_ceiling"])

    @property
    def rsi_sell_floor(self) -> float:
        return float(self.params["rsi_sell_floor"])

    def should_buy(
        self,
        previous: IndicatorFrame,
        current: IndicatorFrame,
    ) -> tuple[bool, str]:
        """매수 조건: 골든크로스 + RSI < rsi_buy_ceiling."""
        if not (previous.has_ma and current.has_ma):
            return False, f"데이터 부족 (최소 {self.long_window}일 필요)"

        if not is_golden_cross(previous, current):
            return False, "골든크로스 아님"

        if current.rsi >= self.rsi_buy_ceiling:
            return False, f"RSI 과열 ({current.rsi:.1f} >= {self.rsi_buy_ceiling:.0f})"

        return True, REASON_GOLDEN_CROSS

    def should_sell(
        self,
        previous: IndicatorFrame,
        current: IndicatorFrame,
        position_info: PositionInfo,
    ) -> tuple[bool, str]:
        """매도 조건: 데드크로스 또는 RSI > rsi_sell_floor → 전량 매도."""
        if not position_info.is_open:
            return False, "보유 수량 없음"

        if not (previous.has_ma and current.has_ma):
            return False, "MA 계산 불가"

        if is_death_cross(previous, current):
            return True, REASON_DEATH_CROSS

        if current.rsi > self.rsi_sell_floor:
            return True, REASON_RSI_OVERBOUGHT

        return False, f"홀딩 (RSI: {current.rsi:.1f})"
