"""로거 설정 테스트."""

import io
import logging
import uuid

import pytest

from quant_engine.core.errors import ConfigError
from quant_engine.utils.logger import setup_logger


@pytest.fixture
def logger_name():
    name = f"quant_engine_test_{uuid.uuid4().hex[:8]}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestSetupLogger:
    """setup_logger()."""

    def test_creates_daily_file(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, level="DEBUG", log_dir=str(tmp_path), console=False)
        logger.info("백테스트 시작")
        for handler in logger.handlers:
            handler.flush()

        files = list(tmp_path.glob(f"{logger_name}_*.log"))
        assert len(files) == 1
        assert "백테스트 시작" in files[0].read_text(encoding="utf-8")
        assert logger.level == logging.DEBUG

    def test_no_duplicate_handlers(self, tmp_path, logger_name):
        first = setup_logger(logger_name, log_dir=str(tmp_path))
        count = len(first.handlers)
        second = setup_logger(logger_name, level="WARNING", log_dir=str(tmp_path))
        assert second is first
        assert len(second.handlers) == count
        assert second.level == logging.WARNING

    def test_console_only(self, tmp_path, logger_name):
        logger = setup_logger(logger_name, log_dir=None)
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert list(tmp_path.iterdir()) == []

    def test_console_stream(self, logger_name):
        buffer = io.StringIO()
        logger = setup_logger(logger_name, log_dir=None, stream=buffer)
        logging.getLogger(f"{logger_name}.backtest").warning("데이터 부족")
        assert "[WARNING]" in buffer.getvalue()
        assert f"{logger_name}.backtest: 데이터 부족" in buffer.getvalue()
        assert logger.handlers[0].stream is buffer

    def test_unknown_level(self, logger_name):
        with pytest.raises(ConfigError):
            setup_logger(logger_name, level="VERBOSE", log_dir=None)
