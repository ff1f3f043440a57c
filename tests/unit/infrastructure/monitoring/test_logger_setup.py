import logging

import pytest

from feastfinder.infrastructure.monitoring.logger_setup import resolve_level, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.mark.parametrize("given, expected", [(logging.DEBUG, logging.DEBUG), ("warning", logging.WARNING), ("nonsense", logging.INFO)])
def test_resolve_level(given, expected):
    assert resolve_level(given) == expected


def test_setup_logging_writes_to_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "feastfinder.log"
    setup_logging("debug", "%(levelname)s %(message)s", str(log_file))

    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 2
    assert logging.getLogger("httpx").level == logging.WARNING

    logging.getLogger("feastfinder.test").debug("cache warmed")
    for handler in restore_root_logger.handlers:
        handler.flush()
    assert "DEBUG cache warmed" in log_file.read_text(encoding="utf-8")
