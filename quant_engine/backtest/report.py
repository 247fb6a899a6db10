"""
백테스트 결과 조립 모듈.

[ 역할 ]
    엔진이 넘겨준 거래기록 / 일별 평가 / 잔여 포지션을 모아
    변경 불가능한 BacktestResult로 포장. 부작용 없음.

[ 계산 ]
    final_value      = 마지막 DailyValuation.total_value (없으면 초기자금)
    total_profit     = final_value - initial_capital
    total_return_pct = (final_value / initial_capital - 1) * 100
    buy_count / sell_count = 거래기록의 action별 개수

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.run_backtest() 마지막 단계
    - run_backtest.py에서 summary() / to_dict()로 출력
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Sequence

from quant_engine.backtest.metrics import BacktestMetrics, calculate_metrics
from quant_engine.data.portfolio import Trade, TradeAction


@dataclass(frozen=True)
class DailyValuation:
    """하루치 평가. 당일 매매 전, 당일 종가 기준."""
    date: date
    total_value: float
    profit_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "total_value": self.total_value,
            "profit_pct": self.profit_pct,
        }


@dataclass(frozen=True)
class PositionSnapshot:
    """종료 시점 잔여 포지션. 마지막 종가로 평가 (강제 청산하지 않음)."""
    code: str
    display_name: str
    shares: int
    cost_basis: float
    last_price: float
    market_value: float
    unrealized_profit: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BacktestResult:
    """백테스트 1회의 전체 결과."""
    initial_capital: float
    final_value: float
    total_profit: float
    total_return_pct: float
    trades: tuple[Trade, ...] = ()
    daily_values: tuple[DailyValuation, ...] = ()
    open_positions: tuple[PositionSnapshot, ...] = ()
    trade_count: int = 0
    buy_count: int = 0
    sell_count: int = 0
    metrics: BacktestMetrics = field(default_factory=BacktestMetrics)
    completed: bool = True  # 중간에 중단되면 False (부분 결과)

    @property
    def realized_profit(self) -> float:
        return round(sum(t.profit for t in self.trades if t.action is TradeAction.SELL), 2)

    @property
    def unrealized_profit(self) -> float:
        return round(sum(p.unrealized_profit for p in self.open_positions), 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "initial_capital": self.initial_capital,
            "final_value": self.final_value,
            "total_profit": self.total_profit,
            "total_return_pct": self.total_return_pct,
            "trade_count": self.trade_count,
            "buy_count": self.buy_count,
            "sell_count": self.sell_count,
            "completed": self.completed,
            "trades": [t.to_dict() for t in self.trades],
            "daily_values": [v.to_dict() for v in self.daily_values],
            "open_positions": [p.to_dict() for p in self.open_positions],
            "metrics": self.metrics.to_dict(),
        }

    def summary(self) -> str:
        """성과 요약 문자열."""
        m = self.metrics
        period = "-"
        if self.daily_values:
            period = f"{self.daily_values[0].date} ~ {self.daily_values[-1].date}"
        lines = [
            "=" * 50,
            "백테스트 성과 리포트",
            "=" * 50,
            f"기간:            {period:>24}",
            f"초기 자금:       {self.initial_capital:>14,.2f}",
            f"최종 평가금액:   {self.final_value:>14,.2f}",
            f"총 손익:         {self.total_profit:>14,.2f}",
            f"총 수익률:       {self.total_return_pct:>13.2f}%",
            f"최대 낙폭(MDD):  {m.max_drawdown:>13.2f}%",
            f"샤프 비율:       {m.sharpe_ratio:>14.2f}",
            "-" * 50,
            f"총 거래 횟수:    {self.trade_count:>14d}",
            f"  매수:          {self.buy_count:>14d}",
            f"  매도:          {self.sell_count:>14d}",
            f"승률:            {m.win_rate:>13.2f}%",
            f"실현 손익:       {self.realized_profit:>14,.2f}",
            f"미실현 손익:     {self.unrealized_profit:>14,.2f}",
            f"보유 종목 수:    {len(self.open_positions):>14d}",
            "=" * 50,
        ]
        if not self.completed:
            lines.append("(중단됨: 부분 결과)")
        return "\n".join(lines)


def assemble_report(
    initial_capital: float,
    trades: Sequence[Trade],
    daily_values: Sequence[DailyValuation],
    open_positions: Sequence[PositionSnapshot] = (),
    completed: bool = True,
) -> BacktestResult:
    """BacktestResult 생성 (순수 함수)."""
    final_value = daily_values[-1].total_value if daily_values else initial_capital
    total_profit = final_value - initial_capital
    total_return_pct = (final_value / initial_capital - 1) * 100 if initial_capital else 0.0

    buy_count = sum(1 for t in trades if t.action is TradeAction.BUY)
    sell_count = sum(1 for t in trades if t.action is TradeAction.SELL)

    return BacktestResult(
        initial_capital=initial_capital,
        final_value=round(final_value, 2),
        total_profit=round(total_profit, 2),
        total_return_pct=round(total_return_pct, 2),
        trades=tuple(trades),
        daily_values=tuple(daily_values),
        open_positions=tuple(open_positions),
        trade_count=len(trades),
        buy_count=buy_count,
        sell_count=sell_count,
        metrics=calculate_metrics(
            trades,
            [v.total_value for v in daily_values],
            initial_capital,
        ),
        completed=completed,
    )
