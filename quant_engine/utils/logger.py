"""
로깅 모듈.

[ 역할 ]
    "quant_engine" 로거 트리에 파일 + 콘솔 핸들러를 붙인다.
    백테스트 시작/종료, 제외 종목 경고, (DEBUG) 개별 매매 내역이 여기로 모인다.

[ 로그 파일 위치 ]
    {log_dir}/{name}_{YYYYMMDD}.log (예: logs/quant_engine_20260302.log)

[ 로거 이름 ]
    quant_engine.backtest    ← backtest/engine.py
    quant_engine.strategies  ← strategies/snapshot.py
    모두 "quant_engine"의 하위 로거라 setup_logger() 한 번이면 전부 잡힌다.

[ 콘솔 출력 ]
    기본은 stdout. run_backtest.py --json처럼 stdout을 결과 전용으로 써야 할 때는
    stream=sys.stderr로 넘긴다.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from quant_engine.core.errors import ConfigError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    name = str(level).upper()
    if name not in LEVELS:
        raise ConfigError(f"알 수 없는 로그 레벨: {level} (가능: {', '.join(LEVELS)})")
    return getattr(logging, name)


def _daily_file_handler(log_dir: str | Path, name: str) -> logging.FileHandler:
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y%m%d")
    return logging.FileHandler(log_path / f"{name}_{today}.log", encoding="utf-8")


def setup_logger(
    name: str = "quant_engine",
    level: str | int = "INFO",
    log_dir: str | Path | None = "logs",
    console: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """로거 설정.

    Args:
        name: 로거 이름 (하위 로거까지 적용됨)
        level: "DEBUG" / "INFO" 등 또는 logging 상수
        log_dir: 일별 로그 파일 디렉토리. None이면 파일 핸들러 없음
        console: 콘솔 핸들러 사용 여부
        stream: 콘솔 출력 대상 (기본 sys.stdout)

    같은 이름으로 다시 호출하면 레벨만 갱신하고 핸들러는 중복 등록하지 않는다.

    Raises:
        ConfigError: 알 수 없는 레벨 이름
    """
    logger = logging.getLogger(name)
    logger.setLevel(_parse_level(level))
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = []
    if log_dir is not None:
        handlers.append(_daily_file_handler(log_dir, name))
    if console:
        handlers.append(logging.StreamHandler(stream or sys.stdout))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
