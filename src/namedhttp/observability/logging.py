from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Mapping

__all__ = ["LEVEL_NAME_TO_INT", "LOG_FORMAT_CONSOLE", "LOG_FORMAT_ENV", "LOG_FORMAT_JSON", "ContextFilter", "LogContext", "StructuredConsoleFormatter", "StructuredJSONFormatter", "get_logger", "with_log_context"]


LOG_FORMAT_ENV = "NAMEDHTTP_LOG_FORMAT"
LOG_FORMAT_JSON = "json"
LOG_FORMAT_CONSOLE = "console"

LEVEL_NAME_TO_INT: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_DEFAULT_CONTEXT_KEYS = ("client_name", "handler_name")
_LOG_CONTEXT: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar("namedhttp_log_context")

_DEFAULT_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s client_name=%(client_name)s handler_name=%(handler_name)s"

_RESERVED_FIELDS = {"timestamp", "level", "logger", "message", "exception", "stack"}

_LOG_RECORD_ATTRS = {"name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs", "relativeCreated", "thread", "threadName", "processName", "process", "message", "asctime", "taskName"}


def _normalize_log_format(value: str | None) -> str:
    if not value:
        return LOG_FORMAT_JSON
    normalized = value.strip().lower()
    if normalized in {LOG_FORMAT_JSON, LOG_FORMAT_CONSOLE}:
        return normalized
    return LOG_FORMAT_JSON


def _json_default(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return repr(value)


def _extract_extras(record: logging.LogRecord) -> dict[str, Any]:
    extras: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _LOG_RECORD_ATTRS or key.startswith("_"):
            continue
        extras[key] = value
    return extras


def _merge_context(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def _context_snapshot() -> dict[str, Any]:
    current = _LOG_CONTEXT.get({})
    snapshot: dict[str, Any] = {key: current.get(key) for key in _DEFAULT_CONTEXT_KEYS}
    for key, value in current.items():
        if key not in snapshot:
            snapshot[key] = value
    return snapshot


def _filter_reserved(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if key not in _RESERVED_FIELDS}


def _find_handler(logger: logging.Logger, format_kind: str) -> logging.StreamHandler | None:
    for handler in logger.handlers:
        if getattr(handler, "_namedhttp_handler", False) and getattr(
            handler, "_format_kind", None
        ) == format_kind:
            return handler
    return None


def _ensure_handler(
    logger: logging.Logger,
    formatter: logging.Formatter,
    *,
    format_kind: str,
    level: int | None,
    stream: Any,
) -> None:
    existing = _find_handler(logger, format_kind)
    if existing is not None:
        # Re-point rather than duplicate; the caller may have swapped streams.
        if stream is not None:
            existing.setStream(stream)
        if level is not None:
            existing.setLevel(level)
            logger.setLevel(level)
        return
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    handler.setLevel(level or logging.NOTSET)
    handler._namedhttp_handler = True
    handler._format_kind = format_kind
    logger.addHandler(handler)
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)


class LogContext:
    """Async-safe structured logging context.

    Values bound here are attached to every record passing through a handler
    installed by :func:`get_logger`, and to every JSON payload.

    Args:
        client_name: Logical http client name being resolved or used.
        handler_name: Handler currently being created.
        **extra: Additional context values for log enrichment.
    """

    def __init__(
        self,
        client_name: str | None = None,
        handler_name: str | None = None,
        **extra: str | None,
    ) -> None:
        values: dict[str, Any] = {}
        if client_name is not None:
            values["client_name"] = client_name
        if handler_name is not None:
            values["handler_name"] = handler_name
        for key, value in extra.items():
            if value is not None:
                values[key] = value
        self._values = values
        self._token: contextvars.Token[dict[str, Any]] | None = None

    def __enter__(self) -> LogContext:
        current = _LOG_CONTEXT.get({})
        self._token = _LOG_CONTEXT.set(_merge_context(current, self._values))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: Any,
    ) -> None:
        if self._token is not None:
            _LOG_CONTEXT.reset(self._token)
            self._token = None

    @classmethod
    def clear(cls) -> None:
        _LOG_CONTEXT.set({})

    @classmethod
    def snapshot(cls) -> dict[str, Any]:
        return _context_snapshot()


class ContextFilter(logging.Filter):
    """Copies the current :class:`LogContext` values onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context_snapshot().items():
            if hasattr(record, key):
                continue
            record.__dict__[key] = "-" if value is None else value
        return True


class StructuredJSONFormatter(logging.Formatter):
    """Formats log records as JSON strings.

    Args:
        datefmt: Optional date format string.
        json_default: Callable used by json.dumps for unknown types.
        ensure_ascii: Whether to escape non-ASCII characters.
    """

    def __init__(
        self,
        *,
        datefmt: str | None = None,
        json_default: Any | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__(datefmt=datefmt)
        self._json_default = json_default or _json_default
        self._ensure_ascii = ensure_ascii

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_filter_reserved(_context_snapshot()))
        payload.update(_filter_reserved(_extract_extras(record)))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(
            payload,
            default=self._json_default,
            ensure_ascii=self._ensure_ascii,
        )


class StructuredConsoleFormatter(logging.Formatter):

    def __init__(
        self,
        fmt: str | None = None,
        *,
        datefmt: str | None = None,
    ) -> None:
        super().__init__(fmt=fmt or _DEFAULT_CONSOLE_FORMAT, datefmt=datefmt)


def get_logger(
    name: str,
    *,
    log_format: str | None = None,
    level: int | None = None,
    stream: Any | None = None,
) -> logging.Logger:
    """Return a logger with a structured handler attached.

    The format is taken from ``log_format`` or the ``NAMEDHTTP_LOG_FORMAT``
    environment variable and defaults to JSON.
    """
    resolved_format = _normalize_log_format(log_format or os.getenv(LOG_FORMAT_ENV))
    formatter: logging.Formatter
    if resolved_format == LOG_FORMAT_CONSOLE:
        formatter = StructuredConsoleFormatter()
    else:
        formatter = StructuredJSONFormatter()
    logger = logging.getLogger(name)
    _ensure_handler(
        logger,
        formatter,
        format_kind=resolved_format,
        level=level,
        stream=stream,
    )
    return logger


def with_log_context(logger: logging.Logger) -> logging.Logger:
    """Stamp :class:`LogContext` values on every record ``logger`` creates.

    Unlike the handler installed by :func:`get_logger`, this applies whichever
    handler finally receives the record.
    """
    if not any(isinstance(existing, ContextFilter) for existing in logger.filters):
        logger.addFilter(ContextFilter())
    return logger
