"""
예외 정의 모듈.

[ 역할 ]
    엔진 내부에서 호출자에게 알려야 하는 오류만 예외로 정의.
    데이터 부족, 현금 부족 같은 "정상적인 퇴화 상황"은 예외가 아니라
    종목 제외 / 주문 스킵으로 처리한다 (backtest/engine.py 참고).

[ 호출하는 곳 ]
    - utils/config.py: 설정값 검증 실패 시 ConfigError
    - strategies/__init__.py: 등록되지 않은 전략 이름 → UnknownStrategyError
"""


class QuantEngineError(Exception):
    """엔진 예외의 공통 부모."""


class ConfigError(QuantEngineError, ValueError):
    """설정값이 유효하지 않을 때."""


class UnknownStrategyError(QuantEngineError, ValueError):
    """STRATEGY_REGISTRY에 없는 전략 이름."""
