"""
전략 패키지.

[ 구성 ]
    ma_cross_rsi.py - 이동평균 교차 + RSI 필터 (백테스트용, 레지스트리에 등록)
    snapshot.py     - 당일 등락률 기반 관심종목 시그널 (대시보드용, 등록 대상 아님)

[ 레지스트리 ]
    @register("이름")을 붙인 TradingStrategy 하위 클래스가 STRATEGY_REGISTRY에 들어간다.
    엔진은 config.yaml의 strategy.name으로 create_strategy()를 호출해 인스턴스를 얻는다.
    이름 중복 등록과 DEFAULT_PARAMS에 없는 파라미터는 설정 오류로 거부.

[ 호출하는 곳 ]
    - backtest/engine.py::run_backtest() → create_strategy()
    - run_backtest.py --list → list_strategies(), strategy_defaults()
"""

import pkgutil
from importlib import import_module
from typing import Any

from quant_engine.core.errors import ConfigError, UnknownStrategyError
from quant_engine.core.trading_strategy import TradingStrategy

STRATEGY_REGISTRY: dict[str, type[TradingStrategy]] = {}


def register(name: str):
    """전략 클래스를 STRATEGY_REGISTRY에 등록하는 데코레이터."""
    def decorator(cls: type[TradingStrategy]):
        existing = STRATEGY_REGISTRY.get(name)
        if existing is not None and existing is not cls:
            raise ConfigError(f"전략 이름 중복: '{name}' ({existing.__name__}, {cls.__name__})")
        STRATEGY_REGISTRY[name] = cls
        return cls
    return decorator


def _lookup(name: str) -> type[TradingStrategy]:
    try:
        return STRATEGY_REGISTRY[name]
    except KeyError:
        available = ", ".join(list_strategies())
        raise UnknownStrategyError(f"알 수 없는 전략: '{name}'. 사용 가능: {available}") from None


def strategy_defaults(name: str) -> dict[str, Any]:
    """전략의 기본 파라미터 (복사본)."""
    return dict(getattr(_lookup(name), "DEFAULT_PARAMS", {}))


def create_strategy(name: str, params: dict[str, Any] | None = None) -> TradingStrategy:
    """이름으로 전략 인스턴스를 생성.

    Args:
        name: 등록된 전략 이름 (예: "ma_cross_rsi")
        params: DEFAULT_PARAMS를 덮어쓸 값. 모르는 키가 있으면 ConfigError

    Raises:
        UnknownStrategyError: 등록되지 않은 전략 이름
        ConfigError: 전략이 모르는 파라미터
    """
    cls = _lookup(name)
    defaults = strategy_defaults(name)
    unknown = sorted(set(params or {}) - set(defaults))
    if defaults and unknown:
        raise ConfigError(f"{name}: 알 수 없는 파라미터 {unknown}")
    return cls(params=params)


def list_strategies() -> list[str]:
    """등록된 전략 이름 목록 반환."""
    return sorted(STRATEGY_REGISTRY)


def _auto_discover() -> None:
    """패키지 안의 모듈을 모두 임포트해 @register가 실행되게 한다."""
    for module in sorted(pkgutil.iter_modules(__path__), key=lambda m: m.name):
        if not module.name.startswith("_"):
            import_module(f"{__name__}.{module.name}")


_auto_discover()
