import pytest
import logging
from pathlib import Path

from modules.logging_config import LoggingConfigurator
from modules.logging_config.logging_config import ColoredFormatter

@pytest.fixture(autouse=True)
def restore_root_logger():
    """Puts the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)
    logging.captureWarnings(False)

def test_logger_creation(tmp_path):
    log_dir = tmp_path / "logs"
    config = {'logging': {'level': 'DEBUG', 'log_to_file': True, 'log_to_console': False, 'log_dir': str(log_dir)}}
    lc = LoggingConfigurator(config)
    lc.setup()

    logger = lc.get_logger('test_mod')
    logger.info("Test message")
    for handler in logging.getLogger().handlers:
        handler.flush()

    log_file = log_dir / "pipeline.log"
    assert log_file.exists()
    assert "Test message" in log_file.read_text(encoding='utf-8')

def test_console_only_creates_no_file(tmp_path):
    config = {'logging': {'log_to_file': False, 'log_dir': str(tmp_path / "logs")}}
    LoggingConfigurator(config).setup()
    assert not (tmp_path / "logs").exists()
    assert len(logging.getLogger().handlers) == 1

def test_level_from_config():
    LoggingConfigurator({'logging': {'level': 'warning', 'log_to_file': False}}).setup()
    assert logging.getLogger().level == logging.WARNING

def test_colored_formatter_leaves_record_untouched():
    """The coloured level name must not leak into other handlers."""
    record = logging.LogRecord('x', logging.WARNING, __file__, 1, "careful", None, None)
    output = ColoredFormatter('%(levelname)s %(message)s').format(record)
    assert "careful" in output
    assert "\x1b[" in output
    assert record.levelname == 'WARNING'
