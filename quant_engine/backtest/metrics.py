"""
백테스트 성과 지표 계산 모듈.

[ 역할 ]
    백테스트 결과(거래기록 + 일별 평가금액)를 받아 부가 성과 지표를 계산.
    총 손익/수익률은 report.py가 직접 구하고, 여기서는 곡선의 모양과
    매도 거래의 질을 본다.

[ 계산하는 지표 ]
    - 연환산 수익률, 샤프 비율, MDD (일별 평가금액 기반)
    - 승률, 평균 수익/손실, 수익 팩터, 최대 연속 승/패 (매도 거래 기반)

[ 호출하는 곳 ]
    - backtest/report.py::assemble_report()
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Sequence

import numpy as np

from quant_engine.data.portfolio import Trade, TradeAction

TRADING_DAYS_PER_YEAR = 252
RISK_FREE_RATE = 0.02


@dataclass(frozen=True)
class BacktestMetrics:
    """부가 성과 지표."""
    annual_return: float = 0.0        # 연환산 수익률 (%)
    sharpe_ratio: float = 0.0         # 샤프 비율
    max_drawdown: float = 0.0         # 최대 낙폭 MDD (%)
    win_rate: float = 0.0             # 승률 (%)
    avg_profit: float = 0.0           # 수익 거래 평균 이익
    avg_loss: float = 0.0             # 손실 거래 평균 손실
    profit_factor: float = 0.0        # 총이익 / 총손실 (손실이 없으면 inf)
    winning_trades: int = 0
    losing_trades: int = 0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용. 무한대 수익 팩터는 None (JSON에 Infinity가 없으므로)."""
        data = asdict(self)
        if not math.isfinite(self.profit_factor):
            data["profit_factor"] = None
        return data


def max_drawdown(values: Sequence[float]) -> float:
    """고점 대비 최대 하락률 (%)."""
    if not values:
        return 0.0
    arr = np.asarray(values, dtype="float64")
    peaks = np.maximum.accumulate(arr)
    drawdowns = np.where(peaks > 0, (peaks - arr) / peaks * 100, 0.0)
    return float(drawdowns.max())


def sharpe_ratio(values: Sequence[float], risk_free_rate: float = RISK_FREE_RATE) -> float:
    """일별 수익률 기반 연환산 샤프 비율. 변동이 없으면 0."""
    if len(values) < 2:
        return 0.0
    arr = np.asarray(values, dtype="float64")
    prev = arr[:-1]
    returns = np.divide(arr[1:] - prev, prev, out=np.zeros_like(prev), where=prev > 0)
    excess = returns - risk_free_rate / TRADING_DAYS_PER_YEAR
    std = float(np.std(excess))
    if std == 0:
        return 0.0
    return float(np.mean(excess) / std * np.sqrt(TRADING_DAYS_PER_YEAR))


def _streaks(profits: Sequence[float]) -> tuple[int, int]:
    """(최대 연속 수익, 최대 연속 손실). 0은 손실로 센다."""
    wins = losses = max_wins = max_losses = 0
    for p in profits:
        if p > 0:
            wins, losses = wins + 1, 0
            max_wins = max(max_wins, wins)
        else:
            wins, losses = 0, losses + 1
            max_losses = max(max_losses, losses)
    return max_wins, max_losses


def calculate_metrics(
    trades: Sequence[Trade],
    daily_values: Sequence[float],
    initial_capital: float,
) -> BacktestMetrics:
    """성과 지표 계산.

    Args:
        trades: Portfolio.trades (매수+매도 전체, 매도만 분석)
        daily_values: 일별 총 평가금액
        initial_capital: 초기 자금
    """
    if not daily_values or initial_capital <= 0:
        return BacktestMetrics()

    # ─── 곡선 기반 ───────────────────────────────────────────────────────
    annual_return = 0.0
    years = len(daily_values) / TRADING_DAYS_PER_YEAR
    ratio = daily_values[-1] / initial_capital
    if ratio > 0:
        annual_return = (ratio ** (1 / years) - 1) * 100

    # ─── 거래 기반 (매도만) ───────────────────────────────────────────────
    profits = [t.profit for t in trades if t.action is TradeAction.SELL]
    winners = [p for p in profits if p > 0]
    losers = [p for p in profits if p <= 0]
    gross_win = sum(winners)
    gross_loss = abs(sum(losers))

    if gross_loss > 0:
        profit_factor = gross_win / gross_loss
    else:
        profit_factor = float("inf") if gross_win > 0 else 0.0

    max_wins, max_losses = _streaks(profits)

    return BacktestMetrics(
        annual_return=round(annual_return, 2),
        sharpe_ratio=round(sharpe_ratio(daily_values), 2),
        max_drawdown=round(max_drawdown(daily_values), 2),
        win_rate=round(len(winners) / len(profits) * 100, 2) if profits else 0.0,
        avg_profit=round(gross_win / len(winners), 2) if winners else 0.0,
        avg_loss=round(sum(losers) / len(losers), 2) if losers else 0.0,
        profit_factor=profit_factor if profit_factor == float("inf") else round(profit_factor, 2),
        winning_trades=len(winners),
        losing_trades=len(losers),
        max_consecutive_wins=max_wins,
        max_consecutive_losses=max_losses,
    )
