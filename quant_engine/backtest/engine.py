"""
백테스팅 엔진 모듈.

[ 역할 ]
    합성 시세에 전략을 적용하여 가상 매매를 시뮬레이션하고 결과를 조립.
    시스템에서 유일하게 상태(현금/포지션/거래기록)를 가지는 부분.

[ 실행 흐름 ]
    run_backtest() 호출 시:
        1. 종목별로 [시작일 - warmup_days, 종료일] 종가 생성 → 지표 계산
           (장기 이평 기간보다 데이터가 적은 종목은 경고 후 제외)
        2. 포함된 모든 종목에 공통인 거래일 중 [시작일, 종료일] 구간만 추출
        3. 각 거래일에 대해:
             a. 당일 종가 기준 평가금액 기록 (DailyValuation, 매매 전)
             b. 첫날은 비교할 전일이 없으므로 평가만 하고 넘어감
             c. _simulate_day(): 보유 종목 매도 판단 → 미보유 종목 매수 판단
        4. 남은 포지션은 청산하지 않고 마지막 종가로 평가
        5. report.assemble_report()로 BacktestResult 생성

[ 미래 데이터 누출 방지 ]
    d일의 판단에는 (d-1일 프레임, d일 프레임)만 전달된다.
    지표 자체도 과거 방향 계산뿐이라 d+1일 이후 가격이 바뀌어도 d일까지의 결과는 같다.

[ 동시성 ]
    엔진 인스턴스 하나 = 백테스트 하나. Portfolio는 run_backtest()마다 새로 만든다.
    should_stop 콜백이 True를 돌려주면 다음 거래일로 넘어가기 전에 멈추고
    completed=False인 부분 결과를 반환.

[ 의존성 ]
    - core/trading_strategy.py::TradingStrategy (전략 인터페이스)
    - data/price_generator.py::SyntheticPriceProvider (기본 데이터 소스)
    - data/indicators.py::compute_indicators()
    - data/portfolio.py::Portfolio (포지션/거래기록 관리)
    - backtest/report.py::assemble_report() (결과 조립)
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from quant_engine.backtest.report import (
    BacktestResult,
    DailyValuation,
    PositionSnapshot,
    assemble_report,
)
from quant_engine.core.data_provider import DataProvider
from quant_engine.core.trading_strategy import PositionInfo, SignalType, TradingStrategy
from quant_engine.core.universe import InstrumentDescriptor, build_universe
from quant_engine.data.indicators import (
    LONG_WINDOW,
    RSI_PERIOD,
    SHORT_WINDOW,
    IndicatorFrame,
    compute_indicators,
)
from quant_engine.data.portfolio import Portfolio
from quant_engine.data.price_generator import SyntheticPriceProvider
from quant_engine.strategies import create_strategy
from quant_engine.strategies.ma_cross_rsi import MACrossRSIStrategy
from quant_engine.utils.config import BacktestConfig, StrategyConfig

logger = logging.getLogger("quant_engine.backtest")


@dataclass
class InstrumentSeries:
    """한 종목의 지표 프레임 + 날짜 인덱스."""
    instrument: InstrumentDescriptor
    frames: list[IndicatorFrame]
    index: dict[date, int]

    @property
    def code(self) -> str:
        return self.instrument.code

    def frame_on(self, day: date) -> IndicatorFrame:
        return self.frames[self.index[day]]

    def frame_pair(self, day: date) -> Optional[tuple[IndicatorFrame, IndicatorFrame]]:
        """(전 거래일 프레임, 당일 프레임). 전 거래일이 없으면 None."""
        i = self.index.get(day)
        if i is None or i == 0:
            return None
        return self.frames[i - 1], self.frames[i]


def _to_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class BacktestEngine:
    """백테스팅 엔진. run_backtest()로 시뮬레이션 실행."""

    def __init__(
        self,
        config: BacktestConfig | None = None,
        strategy: TradingStrategy | None = None,
        provider: DataProvider | None = None,
    ):
        self.config = config or BacktestConfig()
        self.strategy = strategy or MACrossRSIStrategy()
        self.provider = provider or SyntheticPriceProvider()

        # 백테스트 실행 후 채워지는 결과
        self.portfolio: Portfolio | None = None       # 최종 포트폴리오 상태
        self.daily_values: list[DailyValuation] = []  # 일별 평가 (매매 전)
        self.cash_history: list[float] = []           # 일별 매매 후 현금
        self.position_history: list[int] = []         # 일별 매매 후 보유 종목 수
        self.result: BacktestResult | None = None

    @property
    def short_window(self) -> int:
        return int(self.strategy.params.get("short_window", SHORT_WINDOW))

    @property
    def long_window(self) -> int:
        return int(self.strategy.params.get("long_window", LONG_WINDOW))

    @property
    def rsi_period(self) -> int:
        return int(self.strategy.params.get("rsi_period", RSI_PERIOD))

    def run_backtest(
        self,
        universe: Iterable[InstrumentDescriptor],
        start_date: date | str,
        end_date: date | str,
        should_stop: Callable[[], bool] | None = None,
    ) -> BacktestResult:
        """백테스트 실행.

        Args:
            universe: 대상 종목 (코드 오름차순으로 정렬되어 처리됨)
            start_date: 시작일 (YYYY-MM-DD 또는 date)
            end_date: 종료일
            should_stop: 거래일마다 호출, True면 중단하고 부분 결과 반환

        Returns:
            BacktestResult
        """
        start = _to_date(start_date)
        end = _to_date(end_date)
        initial = float(self.config.initial_capital)

        self.portfolio = Portfolio(initial, lot_size=self.config.lot_size)
        self.daily_values = []
        self.cash_history = []
        self.position_history = []

        series = self._load_series(build_universe(universe), start, end)
        trading_dates = self._common_trading_dates(series, start, end)

        if not trading_dates:
            logger.warning(f"거래일이 없습니다. ({start} ~ {end})")
            self.result = assemble_report(initial, [], [])
            return self.result

        logger.info(
            f"백테스트 시작: {trading_dates[0]} ~ {trading_dates[-1]} "
            f"({len(trading_dates)}일, {len(series)}종목)"
        )

        completed = True
        last_prices: dict[str, float] = {}
        for i, current_date in enumerate(trading_dates):
            if should_stop is not None and should_stop():
                logger.warning(f"백테스트 중단: {current_date} 이전까지의 부분 결과 반환")
                completed = False
                break

            last_prices = {s.code: s.frame_on(current_date).close for s in series}

            # 일별 자산 가치 기록 (당일 매매 전)
            total_value = self.portfolio.total_value(last_prices)
            self.daily_values.append(DailyValuation(
                date=current_date,
                total_value=round(total_value, 2),
                profit_pct=round((total_value / initial - 1) * 100, 2),
            ))

            # 첫날은 전일 프레임이 없으므로 평가만
            if i > 0:
                self._simulate_day(series, current_date)

            self.cash_history.append(self.portfolio.cash)
            self.position_history.append(self.portfolio.position_count)

        self.result = assemble_report(
            initial_capital=initial,
            trades=self.portfolio.trades,
            daily_values=self.daily_values,
            open_positions=self._snapshot_positions(last_prices),
            completed=completed,
        )

        logger.info(
            f"백테스트 완료. 총 수익률: {self.result.total_return_pct:.2f}% "
            f"(매수 {self.result.buy_count}회, 매도 {self.result.sell_count}회)"
        )
        return self.result

    def _load_series(
        self,
        universe: tuple[InstrumentDescriptor, ...],
        start: date,
        end: date,
    ) -> list[InstrumentSeries]:
        """종목별 종가 → 지표. 데이터가 장기 이평 기간보다 짧은 종목은 제외."""
        if end < start:
            return []

        history_start = start - timedelta(days=self.config.warmup_days)
        loaded: list[InstrumentSeries] = []
        for instrument in universe:
            points = self.provider.get_price_points(instrument.code, history_start, end)
            if len(points) < self.long_window:
                logger.warning(
                    f"{instrument.code} {instrument.display_name}: "
                    f"데이터 부족 ({len(points)}일 < {self.long_window}일), 제외"
                )
                continue

            frames = compute_indicators(
                [p.close for p in points],
                dates=[p.date for p in points],
                short_window=self.short_window,
                long_window=self.long_window,
                rsi_period=self.rsi_period,
            )
            loaded.append(InstrumentSeries(
                instrument=instrument,
                frames=frames,
                index={f.date: i for i, f in enumerate(frames)},
            ))
        return loaded

    @staticmethod
    def _common_trading_dates(
        series: list[InstrumentSeries],
        start: date,
        end: date,
    ) -> list[date]:
        """모든 종목에 공통인 거래일 중 [start, end] 구간."""
        if not series:
            return []
        common = set(series[0].index)
        for s in series[1:]:
            common &= set(s.index)
        return sorted(d for d in common if start <= d <= end)

    def _simulate_day(self, series: list[InstrumentSeries], current_date: date) -> None:
        """하루 시뮬레이션. 매도 먼저, 그 다음 유니버스 순서대로 매수."""
        date_str = current_date.isoformat()
        sold_today: set[str] = set()

        # 1) 보유 종목 매도 판단
        for s in series:
            position = self.portfolio.get_position(s.code)
            if position is None:
                continue
            pair = s.frame_pair(current_date)
            if pair is None:
                continue

            previous, current = pair
            signal = self.strategy.generate_signal(
                previous,
                current,
                PositionInfo(code=s.code, shares=position.shares, cost_basis=position.cost_basis),
            )
            if signal.signal_type == SignalType.SELL:
                if self.portfolio.execute_sell(s.code, current.close, date_str, signal.reason):
                    sold_today.add(s.code)
                    logger.debug(
                        f"[{date_str}] 매도: {s.code} {position.shares}주 @ {current.close:,.2f} "
                        f"({signal.reason})"
                    )

        # 2) 미보유 종목 매수 판단 (보유 한도까지)
        for s in series:
            if self.portfolio.position_count >= self.config.max_positions:
                break
            if self.portfolio.has_position(s.code) or s.code in sold_today:
                continue
            pair = s.frame_pair(current_date)
            if pair is None:
                continue

            previous, current = pair
            signal = self.strategy.generate_signal(previous, current, PositionInfo(code=s.code))
            if signal.signal_type != SignalType.BUY:
                continue

            shares = self.portfolio.size_order(current.close, self.config.position_size_fraction)
            if shares < self.config.lot_size:
                logger.debug(f"[{date_str}] 매수 스킵: {s.code} 1랏 미만 (현금 {self.portfolio.cash:,.2f})")
                continue

            if self.portfolio.execute_buy(
                s.code,
                shares,
                current.close,
                date=date_str,
                reason=signal.reason,
                display_name=s.instrument.display_name,
            ):
                logger.debug(
                    f"[{date_str}] 매수: {s.code} {shares}주 @ {current.close:,.2f} ({signal.reason})"
                )

    def _snapshot_positions(self, last_prices: dict[str, float]) -> list[PositionSnapshot]:
        """잔여 포지션을 마지막 종가로 평가."""
        snapshots = []
        for code in self.portfolio.get_holding_codes():
            position = self.portfolio.get_position(code)
            price = last_prices.get(code, position.cost_basis)
            snapshots.append(PositionSnapshot(
                code=code,
                display_name=position.display_name,
                shares=position.shares,
                cost_basis=round(position.cost_basis, 2),
                last_price=round(price, 2),
                market_value=round(position.market_value(price), 2),
                unrealized_profit=round((price - position.cost_basis) * position.shares, 2),
            ))
        return snapshots


def run_backtest(
    universe: Iterable[InstrumentDescriptor],
    start_date: date | str,
    end_date: date | str,
    config: BacktestConfig | None = None,
    strategy_config: StrategyConfig | None = None,
    provider: DataProvider | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> BacktestResult:
    """백테스트 1회 실행 (매 호출마다 독립된 엔진/포트폴리오).

    사용 예:
        result = run_backtest(DEFAULT_UNIVERSE, "2026-02-02", "2026-02-27")
        print(result.summary())
    """
    strategy_config = strategy_config or StrategyConfig()

    engine = BacktestEngine(
        config=config,
        strategy=create_strategy(strategy_config.name, params=strategy_config.params),
        provider=provider,
    )
    return engine.run_backtest(universe, start_date, end_date, should_stop=should_stop)
