"""이동평균 교차 + RSI 전략 테스트."""

import pytest

from quant_engine.core.errors import ConfigError, UnknownStrategyError
from quant_engine.core.trading_strategy import PositionInfo, SignalType
from quant_engine.data.indicators import IndicatorFrame
from quant_engine.strategies import create_strategy, list_strategies, register, strategy_defaults
from quant_engine.strategies.ma_cross_rsi import (
    REASON_DEATH_CROSS,
    REASON_GOLDEN_CROSS,
    REASON_RSI_OVERBOUGHT,
    MACrossRSIStrategy,
    is_death_cross,
    is_golden_cross,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _frame(ma_short, ma_long, rsi=50.0, close=10.0) -> IndicatorFrame:
    return IndicatorFrame(date=None, close=close, ma_short=ma_short, ma_long=ma_long, rsi=rsi)


HOLDING = PositionInfo(code="600519", shares=100, cost_basis=10.0)
FLAT = PositionInfo(code="600519")


@pytest.fixture
def strategy():
    return MACrossRSIStrategy()


class TestCrossDetection:
    """교차 판정."""

    def test_golden_cross(self):
        assert is_golden_cross(_frame(9.9, 10.0), _frame(10.1, 10.0))

    def test_golden_cross_from_equal(self):
        assert is_golden_cross(_frame(10.0, 10.0), _frame(10.1, 10.0))

    def test_no_golden_cross_when_already_above(self):
        assert not is_golden_cross(_frame(10.2, 10.0), _frame(10.3, 10.0))

    def test_death_cross(self):
        assert is_death_cross(_frame(10.1, 10.0), _frame(9.9, 10.0))

    def test_death_cross_from_equal(self):
        assert is_death_cross(_frame(10.0, 10.0), _frame(9.9, 10.0))

    def test_missing_ma_is_no_cross(self):
        assert not is_golden_cross(_frame(None, None), _frame(10.1, 10.0))
        assert not is_death_cross(_frame(10.1, 10.0), _frame(9.9, None))


class TestShouldBuy:
    """매수 조건."""

    def test_golden_cross_with_low_rsi(self, strategy):
        buy, reason = strategy.should_buy(_frame(9.9, 10.0), _frame(10.1, 10.0, rsi=60.0))
        assert buy
        assert reason == REASON_GOLDEN_CROSS

    def test_rsi_ceiling_blocks_buy(self, strategy):
        buy, _ = strategy.should_buy(_frame(9.9, 10.0), _frame(10.1, 10.0, rsi=70.0))
        assert not buy

    def test_no_cross_no_buy(self, strategy):
        buy, _ = strategy.should_buy(_frame(10.2, 10.0), _frame(10.3, 10.0, rsi=40.0))
        assert not buy

    def test_missing_ma_no_buy(self, strategy):
        buy, _ = strategy.should_buy(_frame(None, None), _frame(10.1, None, rsi=40.0))
        assert not buy


class TestShouldSell:
    """매도 조건."""

    def test_death_cross_sell(self, strategy):
        sell, reason = strategy.should_sell(_frame(10.1, 10.0), _frame(9.9, 10.0), HOLDING)
        assert sell
        assert reason == REASON_DEATH_CROSS

    def test_rsi_overbought_sell_without_cross(self, strategy):
        sell, reason = strategy.should_sell(
            _frame(11.0, 10.0), _frame(11.5, 10.0, rsi=85.0), HOLDING,
        )
        assert sell
        assert reason == REASON_RSI_OVERBOUGHT

    def test_rsi_at_floor_holds(self, strategy):
        sell, _ = strategy.should_sell(_frame(11.0, 10.0), _frame(11.5, 10.0, rsi=80.0), HOLDING)
        assert not sell

    def test_death_cross_takes_precedence(self, strategy):
        _, reason = strategy.should_sell(_frame(10.1, 10.0), _frame(9.9, 10.0, rsi=90.0), HOLDING)
        assert reason == REASON_DEATH_CROSS

    def test_missing_ma_no_sell_even_when_overbought(self, strategy):
        sell, _ = strategy.should_sell(_frame(None, None), _frame(None, None, rsi=95.0), HOLDING)
        assert not sell

    def test_no_position_no_sell(self, strategy):
        sell, _ = strategy.should_sell(_frame(10.1, 10.0), _frame(9.9, 10.0), FLAT)
        assert not sell


class TestGenerateSignal:
    """generate_signal()."""

    def test_buy_signal_carries_close(self, strategy):
        signal = strategy.generate_signal(_frame(9.9, 10.0), _frame(10.1, 10.0, close=12.34), FLAT)
        assert signal.signal_type == SignalType.BUY
        assert signal.price == 12.34
        assert signal.reason == REASON_GOLDEN_CROSS

    def test_holding_never_buys(self, strategy):
        signal = strategy.generate_signal(_frame(9.9, 10.0), _frame(10.1, 10.0), HOLDING)
        assert signal.signal_type == SignalType.HOLD

    def test_sell_signal(self, strategy):
        signal = strategy.generate_signal(_frame(10.1, 10.0), _frame(9.9, 10.0), HOLDING)
        assert signal.signal_type == SignalType.SELL

    def test_flat_without_cross_holds(self, strategy):
        signal = strategy.generate_signal(_frame(9.0, 10.0), _frame(9.1, 10.0), FLAT)
        assert signal.signal_type == SignalType.HOLD


class TestRegistry:
    """전략 레지스트리."""

    def test_registered(self):
        assert "ma_cross_rsi" in list_strategies()

    def test_create_with_params(self):
        strategy = create_strategy("ma_cross_rsi", {"rsi_buy_ceiling": 60})
        assert isinstance(strategy, MACrossRSIStrategy)
        assert strategy.rsi_buy_ceiling == 60.0
        assert strategy.long_window == 20

    def test_unknown_strategy(self):
        with pytest.raises(UnknownStrategyError):
            create_strategy("does_not_exist")
        with pytest.raises(ValueError):
            create_strategy("does_not_exist")

    def test_defaults_are_copies(self):
        defaults = strategy_defaults("ma_cross_rsi")
        assert defaults["rsi_sell_floor"] == 80.0
        defaults["rsi_sell_floor"] = 1.0
        assert strategy_defaults("ma_cross_rsi")["rsi_sell_floor"] == 80.0

    def test_unknown_param_rejected(self):
        with pytest.raises(ConfigError):
            create_strategy("ma_cross_rsi", {"rsi_sell_flor": 75})

    def test_duplicate_name_rejected(self):
        with pytest.raises(ConfigError):
            @register("ma_cross_rsi")
            class Impostor(MACrossRSIStrategy):
                pass

    def test_reregistering_same_class_is_noop(self):
        assert register("ma_cross_rsi")(MACrossRSIStrategy) is MACrossRSIStrategy
        assert list_strategies().count("ma_cross_rsi") == 1
