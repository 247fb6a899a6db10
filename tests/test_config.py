"""설정 로드 테스트."""

import json
from dataclasses import FrozenInstanceError
from datetime import date
from pathlib import Path

import pytest

from quant_engine.core.errors import ConfigError
from quant_engine.core.universe import DEFAULT_UNIVERSE, build_universe, filter_universe
from quant_engine.utils.config import BacktestConfig, Config, StrategyConfig

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config.yaml"


class TestDefaults:
    """기본값."""

    def test_backtest_defaults(self):
        config = BacktestConfig()
        assert config.initial_capital == 100_000
        assert config.position_size_fraction == 0.10
        assert config.max_positions == 5
        assert config.lot_size == 100
        assert config.start == date(2026, 1, 5)
        assert config.end == date(2026, 6, 30)

    def test_strategy_defaults(self):
        config = StrategyConfig()
        assert config.params == {
            "short_window": 5,
            "long_window": 20,
            "rsi_period": 14,
            "rsi_buy_ceiling": 70.0,
            "rsi_sell_floor": 80.0,
        }

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            BacktestConfig().max_positions = 3

    def test_repo_config_loads(self):
        config = Config.from_yaml(REPO_CONFIG)
        assert config.backtest == BacktestConfig()
        assert config.strategy == StrategyConfig()
        assert config.universe == DEFAULT_UNIVERSE


class TestValidation:
    """잘못된 값은 생성 시점에 거부."""

    @pytest.mark.parametrize("kwargs", [
        {"initial_capital": 0},
        {"position_size_fraction": 0},
        {"position_size_fraction": 1.5},
        {"max_positions": 0},
        {"lot_size": 0},
        {"warmup_days": -1},
    ])
    def test_backtest_rejects(self, kwargs):
        with pytest.raises(ConfigError):
            BacktestConfig(**kwargs)

    def test_bad_date(self):
        with pytest.raises(ValueError):
            BacktestConfig(start_date="2026/01/05")

    def test_windows_order(self):
        with pytest.raises(ConfigError):
            StrategyConfig(short_window=20, long_window=5)
        with pytest.raises(ConfigError):
            StrategyConfig(rsi_period=1)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            Config.from_yaml(path)


class TestLoading:
    """YAML / JSON 로드."""

    def test_from_yaml_partial(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "backtest:\n"
            "  start_date: 2026-02-02\n"
            "  max_positions: 3\n"
            "  unknown_key: 1\n"
            "strategy:\n"
            "  rsi_buy_ceiling: 65\n"
            "universe:\n"
            "  - {code: '600519', name: '贵州茅台'}\n"
            "  - {code: '000858', name: '五粮液'}\n",
            encoding="utf-8",
        )
        config = Config.from_yaml(path)
        assert config.backtest.start_date == "2026-02-02"
        assert config.backtest.max_positions == 3
        assert config.backtest.end_date == "2026-06-30"
        assert config.strategy.rsi_buy_ceiling == 65
        assert [i.code for i in config.universe] == ["000858", "600519"]

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert Config.from_yaml(path) == Config()

    def test_from_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"backtest": {"initial_capital": 250000}, "log_level": "DEBUG"}))
        config = Config.from_json(path)
        assert config.backtest.initial_capital == 250000
        assert config.log_level == "DEBUG"

    def test_save_and_reload(self, tmp_path):
        config = Config().with_overrides(max_positions=2, rsi_sell_floor=75.0)
        path = tmp_path / "out" / "config.yaml"
        config.save_yaml(path)
        assert Config.from_yaml(path) == config
        assert "贵州茅台" in path.read_text(encoding="utf-8")


class TestOverrides:
    """with_overrides()."""

    def test_routes_to_sections(self):
        base = Config()
        config = base.with_overrides(initial_capital=50_000, short_window=3, long_window=10)
        assert config.backtest.initial_capital == 50_000
        assert config.strategy.short_window == 3
        assert config.strategy.long_window == 10
        assert base.backtest.initial_capital == 100_000

    def test_overrides_are_validated(self):
        with pytest.raises(ConfigError):
            Config().with_overrides(max_positions=0)


class TestUniverse:
    """종목 유니버스."""

    def test_default_sorted(self):
        codes = [i.code for i in DEFAULT_UNIVERSE]
        assert codes == sorted(codes)
        assert len(codes) == 10

    def test_build_dedupes(self):
        universe = build_universe([
            {"code": "600519", "name": "贵州茅台"},
            {"code": "600519", "name": "dup"},
        ])
        assert len(universe) == 1
        assert universe[0].display_name == "贵州茅台"

    def test_filter(self):
        universe = filter_universe(DEFAULT_UNIVERSE, ["600519", "999999"])
        assert [i.code for i in universe] == ["600519"]
