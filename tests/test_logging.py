from __future__ import annotations

import io
import itertools
import json
import logging
from typing import Any

from namedhttp.observability import (
    LOG_FORMAT_CONSOLE,
    LOG_FORMAT_ENV,
    LogContext,
    get_logger,
)

_LOGGER_COUNTER = itertools.count()


def _unique_logger_name(prefix: str) -> str:
    """Return a unique logger name for isolation."""
    return f"{prefix}.{next(_LOGGER_COUNTER)}"


def _cleanup_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _read_json_payload(stream: io.StringIO) -> dict[str, Any]:
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    assert lines, "expected log output to contain at least one line"
    return json.loads(lines[-1])


def test_json_logger_includes_client_context():
    stream = io.StringIO()
    logger = get_logger(_unique_logger_name("namedhttp.test.json"), stream=stream)
    try:
        with LogContext(client_name="foo-v1", handler_name="status-handler"):
            logger.info("creating handler", extra={"attempt": 1})
        payload = _read_json_payload(stream)
    finally:
        _cleanup_logger(logger)

    assert payload["message"] == "creating handler"
    assert payload["level"] == "INFO"
    assert payload["client_name"] == "foo-v1"
    assert payload["handler_name"] == "status-handler"
    assert payload["attempt"] == 1


def test_log_context_is_restored_on_exit():
    with LogContext(client_name="outer"):
        with LogContext(client_name="inner"):
            assert LogContext.snapshot()["client_name"] == "inner"
        assert LogContext.snapshot()["client_name"] == "outer"
    assert LogContext.snapshot()["client_name"] is None


def test_console_format_from_environment(monkeypatch):
    monkeypatch.setenv(LOG_FORMAT_ENV, LOG_FORMAT_CONSOLE)
    stream = io.StringIO()
    logger = get_logger(_unique_logger_name("namedhttp.test.console"), stream=stream)
    try:
        with LogContext(client_name="bar-v1"):
            logger.warning("no handlers configured")
    finally:
        _cleanup_logger(logger)

    line = stream.getvalue().strip()
    assert "WARNING" in line
    assert "no handlers configured" in line
    assert "client_name=bar-v1" in line
    assert "handler_name=-" in line


def test_get_logger_does_not_duplicate_handlers():
    name = _unique_logger_name("namedhttp.test.dedupe")
    try:
        first = get_logger(name, log_format="json")
        second = get_logger(name, log_format="json")
        assert first is second
        assert len(first.handlers) == 1
    finally:
        _cleanup_logger(logging.getLogger(name))
