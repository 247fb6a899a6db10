"""
포트폴리오 관리 모듈.

[ 역할 ]
    현금, 보유 종목(Position), 거래 기록(Trade)을 통합 관리.
    백테스트 엔진이 매수/매도 실행 시 이 클래스를 통해 상태를 갱신.

[ 규칙 ]
    - 매수 수량은 100주(1랏) 단위로 내림, 100주 미만이면 주문하지 않음
    - 종목당 포지션은 하나 (추가매수/물타기 없음)
    - 매도는 항상 전량
    - 현금은 음수가 될 수 없음 (매수금액 > 현금이면 주문하지 않음)
    - 거래기록의 금액은 기록 시점에만 소수점 2자리 반올림, 내부 계산은 원래 정밀도

[ 주요 클래스 ]
    Position  - 개별 종목의 수량/매수가
    Trade     - 개별 거래 내역 (매수/매도, 손익 포함), 생성 후 변경 불가
    Portfolio - 전체 포트폴리오 (현금 + 포지션들 + 거래내역)

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine에서 execute_buy/sell() 호출하여 상태 갱신
    - backtest/report.py에서 trades / positions로 결과 구성
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

LOT_SIZE = 100


class TradeAction(Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass
class Position:
    """개별 종목 포지션. shares > 0인 동안만 Portfolio에 존재."""
    code: str
    shares: int
    cost_basis: float
    display_name: str = ""

    def market_value(self, price: float) -> float:
        """주어진 가격 기준 평가금액."""
        return self.shares * price


@dataclass(frozen=True)
class Trade:
    """개별 거래 기록. profit은 매수 시 0, 매도 시 실현 손익."""
    timestamp: str
    action: TradeAction
    code: str
    display_name: str
    price: float
    shares: int
    amount: float
    profit: float = 0.0
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        return data


def round_to_lot(shares: float, lot_size: int = LOT_SIZE) -> int:
    """수량을 lot_size 단위로 내림."""
    if shares <= 0:
        return 0
    return int(shares // lot_size) * lot_size


class Portfolio:
    """포트폴리오 관리 클래스.

    BacktestEngine이 백테스트 1회마다 새로 만들어 소유한다.
    여러 백테스트가 동시에 돌아도 서로 상태를 공유하지 않는다.
    """

    def __init__(self, initial_cash: float, lot_size: int = LOT_SIZE):
        self.initial_cash = initial_cash
        self.cash = initial_cash                    # 가용 현금
        self.lot_size = lot_size
        self.positions: dict[str, Position] = {}    # code → Position
        self.trades: list[Trade] = []               # 전체 거래 내역 (실행 순서)

    @property
    def position_count(self) -> int:
        return len(self.positions)

    def has_position(self, code: str) -> bool:
        return code in self.positions

    def get_position(self, code: str) -> Position | None:
        """종목 포지션 조회. 없으면 None."""
        return self.positions.get(code)

    def get_holding_codes(self) -> list[str]:
        """보유 종목 코드 목록 (코드 오름차순)."""
        return sorted(self.positions)

    def total_value(self, prices: dict[str, float]) -> float:
        """현금 + 보유 종목 평가금액. 가격이 없는 종목은 매수가로 평가."""
        total = self.cash
        for code, position in self.positions.items():
            total += position.market_value(prices.get(code, position.cost_basis))
        return total

    def size_order(self, price: float, fraction: float) -> int:
        """현금의 fraction만큼으로 살 수 있는 수량 (랏 단위 내림)."""
        if price <= 0:
            return 0
        return round_to_lot(self.cash * fraction / price, self.lot_size)

    def execute_buy(
        self,
        code: str,
        shares: int,
        price: float,
        date: str = "",
        reason: str = "",
        display_name: str = "",
    ) -> bool:
        """매수 실행. 조건 미충족 시 아무것도 기록하지 않고 False."""
        if code in self.positions:
            return False
        if shares < self.lot_size or shares % self.lot_size != 0:
            return False

        cost = price * shares
        if cost > self.cash:
            return False

        self.cash -= cost
        self.positions[code] = Position(
            code=code,
            shares=shares,
            cost_basis=price,
            display_name=display_name,
        )
        self.trades.append(Trade(
            timestamp=date,
            action=TradeAction.BUY,
            code=code,
            display_name=display_name,
            price=round(price, 2),
            shares=shares,
            amount=round(cost, 2),
            reason=reason,
        ))
        return True

    def execute_sell(
        self,
        code: str,
        price: float,
        date: str = "",
        reason: str = "",
    ) -> bool:
        """전량 매도 실행. 보유하지 않은 종목이면 False."""
        position = self.positions.pop(code, None)
        if position is None:
            return False

        revenue = price * position.shares
        profit = (price - position.cost_basis) * position.shares
        self.cash += revenue

        self.trades.append(Trade(
            timestamp=date,
            action=TradeAction.SELL,
            code=code,
            display_name=position.display_name,
            price=round(price, 2),
            shares=position.shares,
            amount=round(revenue, 2),
            profit=round(profit, 2),
            reason=reason,
        ))
        return True
