"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    백테스트 파라미터, 전략 파라미터, 종목 유니버스, 로깅 설정을 통합 관리.
    모든 설정 객체는 frozen dataclass: 프로세스 시작 시 한 번 만들고 변경하지 않는다.
    값을 바꾸려면 with_overrides()로 새 객체를 만든다.

[ 설정 파일 구조 (config.yaml) ]
    backtest:   → BacktestConfig (기간, 초기자금, 비중, 최대 보유 종목 수)
    strategy:   → StrategyConfig (이평/RSI 기간, 임계값)
    universe:   → [{code, name}, ...] (없으면 DEFAULT_UNIVERSE)
    log_level:  → "INFO" / "DEBUG"
    log_dir:    → 로그 디렉토리 경로

[ 호출하는 곳 ]
    - run_backtest.py에서 Config.from_yaml()로 로드
    - backtest/engine.py::BacktestEngine 생성 시 backtest/strategy 섹션 사용
"""

import json
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from quant_engine.core.errors import ConfigError
from quant_engine.core.universe import DEFAULT_UNIVERSE, InstrumentDescriptor, build_universe


def _known(cls, data: dict[str, Any]) -> dict[str, Any]:
    """dataclass 필드에 해당하는 키만 남긴다."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass(frozen=True)
class BacktestConfig:
    """백테스트 설정. config.yaml의 backtest 섹션에 대응."""
    start_date: str = "2026-01-05"
    end_date: str = "2026-06-30"
    initial_capital: float = 100_000
    position_size_fraction: float = 0.10  # 1회 매수 = 현금 * 비율
    max_positions: int = 5                # 동시 보유 종목 수 상한
    lot_size: int = 100                   # 매매 단위 (주)
    warmup_days: int = 60                 # 지표 계산용 선행 구간 (달력일)

    def __post_init__(self):
        if self.initial_capital <= 0:
            raise ConfigError(f"initial_capital은 양수여야 합니다: {self.initial_capital}")
        if not 0 < self.position_size_fraction <= 1:
            raise ConfigError(f"position_size_fraction은 (0, 1] 범위: {self.position_size_fraction}")
        if self.max_positions < 1:
            raise ConfigError(f"max_positions는 1 이상: {self.max_positions}")
        if self.lot_size < 1:
            raise ConfigError(f"lot_size는 1 이상: {self.lot_size}")
        if self.warmup_days < 0:
            raise ConfigError(f"warmup_days는 0 이상: {self.warmup_days}")
        for value in (self.start_date, self.end_date):
            date.fromisoformat(str(value))  # 형식이 틀리면 ValueError

    @property
    def start(self) -> date:
        return date.fromisoformat(str(self.start_date))

    @property
    def end(self) -> date:
        return date.fromisoformat(str(self.end_date))

    def with_overrides(self, **overrides: Any) -> "BacktestConfig":
        return replace(self, **_known(BacktestConfig, overrides))


@dataclass(frozen=True)
class StrategyConfig:
    """전략 설정. config.yaml의 strategy 섹션에 대응."""
    name: str = "ma_cross_rsi"
    short_window: int = 5
    long_window: int = 20
    rsi_period: int = 14
    rsi_buy_ceiling: float = 70.0
    rsi_sell_floor: float = 80.0
    snapshot_buy_change_pct: float = 3.0
    snapshot_sell_change_pct: float = -2.0

    def __post_init__(self):
        if self.short_window < 1 or self.long_window < 1:
            raise ConfigError("이동평균 기간은 1 이상이어야 합니다.")
        if self.short_window >= self.long_window:
            raise ConfigError(
                f"short_window({self.short_window}) < long_window({self.long_window}) 이어야 합니다."
            )
        if self.rsi_period < 2:
            raise ConfigError(f"rsi_period는 2 이상: {self.rsi_period}")

    @property
    def params(self) -> dict[str, Any]:
        """create_strategy()에 넘길 전략 파라미터."""
        return {
            "short_window": self.short_window,
            "long_window": self.long_window,
            "rsi_period": self.rsi_period,
            "rsi_buy_ceiling": self.rsi_buy_ceiling,
            "rsi_sell_floor": self.rsi_sell_floor,
        }

    def with_overrides(self, **overrides: Any) -> "StrategyConfig":
        return replace(self, **_known(StrategyConfig, overrides))


@dataclass(frozen=True)
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    universe: tuple[InstrumentDescriptor, ...] = DEFAULT_UNIVERSE
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """YAML 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls._from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        """JSON 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """딕셔너리에서 Config 생성. 모르는 키는 무시."""
        if not isinstance(data, dict):
            raise ConfigError(f"설정 최상위는 매핑이어야 합니다: {type(data).__name__}")

        backtest_data = data.get("backtest") or {}
        strategy_data = data.get("strategy") or {}
        universe_data = data.get("universe")

        # 날짜는 YAML에서 date로 파싱될 수 있으므로 문자열로 통일
        for key in ("start_date", "end_date"):
            if key in backtest_data:
                backtest_data = {**backtest_data, key: str(backtest_data[key])}

        universe = build_universe(universe_data) if universe_data else DEFAULT_UNIVERSE

        return cls(
            backtest=BacktestConfig(**_known(BacktestConfig, backtest_data)),
            strategy=StrategyConfig(**_known(StrategyConfig, strategy_data)),
            universe=universe,
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )

    def with_overrides(self, **overrides: Any) -> "Config":
        """key=value 오버라이드를 해당 섹션에 나눠 적용한 새 Config."""
        return replace(
            self,
            backtest=self.backtest.with_overrides(**overrides),
            strategy=self.strategy.with_overrides(**overrides),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환."""
        return {
            "backtest": asdict(self.backtest),
            "strategy": asdict(self.strategy),
            "universe": [{"code": i.code, "name": i.display_name} for i in self.universe],
            "log_level": self.log_level,
            "log_dir": self.log_dir,
        }

    def save_yaml(self, path: str | Path) -> None:
        """YAML 파일로 저장."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False, sort_keys=False)
