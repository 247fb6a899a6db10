"""
종목 유니버스 정의 모듈.

[ 역할 ]
    백테스트/관심종목 대상이 되는 고정 종목 목록을 정의.
    프로세스 시작 시 한 번 구성되고 이후 변경되지 않는다.

[ 정렬 규칙 ]
    같은 날 여러 종목에서 매수 시그널이 나면 유니버스 순서대로 처리한다.
    순서가 결과에 영향을 주므로 항상 종목코드 오름차순으로 정렬해서 보관.

[ 호출하는 곳 ]
    - utils/config.py: config.yaml의 universe 섹션 → build_universe()
    - backtest/engine.py, strategies/snapshot.py: 종목 순회
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class InstrumentDescriptor:
    """종목 코드 + 표시 이름."""
    code: str
    display_name: str


# 기본 관심종목 (A주 대형주)
DEFAULT_UNIVERSE: tuple[InstrumentDescriptor, ...] = (
    InstrumentDescriptor("000333", "美的集团"),
    InstrumentDescriptor("000858", "五粮液"),
    InstrumentDescriptor("002594", "比亚迪"),
    InstrumentDescriptor("300750", "宁德时代"),
    InstrumentDescriptor("600036", "招商银行"),
    InstrumentDescriptor("600519", "贵州茅台"),
    InstrumentDescriptor("600900", "长江电力"),
    InstrumentDescriptor("601012", "隆基绿能"),
    InstrumentDescriptor("601318", "中国平安"),
    InstrumentDescriptor("601899", "紫金矿业"),
)


def build_universe(
    instruments: Iterable[InstrumentDescriptor | dict],
) -> tuple[InstrumentDescriptor, ...]:
    """종목 목록을 코드 오름차순 튜플로 정규화.

    dict 항목은 {"code": ..., "name": ...} 형태를 허용한다 (config.yaml 호환).
    같은 코드가 중복되면 먼저 나온 항목을 사용.
    """
    seen: dict[str, InstrumentDescriptor] = {}
    for item in instruments:
        if isinstance(item, dict):
            code = str(item["code"])
            item = InstrumentDescriptor(
                code=code,
                display_name=str(item.get("name") or item.get("display_name") or code),
            )
        seen.setdefault(item.code, item)
    return tuple(sorted(seen.values(), key=lambda i: i.code))


def filter_universe(
    universe: Iterable[InstrumentDescriptor],
    codes: Iterable[str],
) -> tuple[InstrumentDescriptor, ...]:
    """지정한 코드만 남긴다. 목록에 없는 코드는 무시."""
    wanted = set(codes)
    return tuple(i for i in build_universe(universe) if i.code in wanted)
