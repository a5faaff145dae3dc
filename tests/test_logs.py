from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from rentflow.core.logs import LOG_FORMAT, get_logger


def test_logger_owns_a_single_handler(monkeypatch):
    monkeypatch.delenv("LOG_FILE", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "debug")

    logger = get_logger("rentflow.tests.single")
    again = get_logger("rentflow.tests.single")

    assert again is logger
    assert logger.propagate is False
    assert logger.level == logging.DEBUG
    stream_handlers = [h for h in logger.handlers if type(h) is logging.StreamHandler]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].formatter._fmt == LOG_FORMAT


def test_log_file_adds_rotating_handler(tmp_path, monkeypatch):
    log_file = tmp_path / "logs" / "rentflow.log"
    monkeypatch.setenv("LOG_FILE", str(log_file))

    logger = get_logger("rentflow.tests.file")
    logger.info("hello")

    rotating = [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(rotating) == 1
    for handler in rotating:
        handler.close()
        logger.removeHandler(handler)
    assert "hello" in log_file.read_text(encoding="utf-8")
