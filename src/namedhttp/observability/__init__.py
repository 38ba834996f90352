from __future__ import annotations

from namedhttp.observability.logging import (
    LEVEL_NAME_TO_INT,
    LOG_FORMAT_CONSOLE,
    LOG_FORMAT_ENV,
    LOG_FORMAT_JSON,
    ContextFilter,
    LogContext,
    StructuredConsoleFormatter,
    StructuredJSONFormatter,
    get_logger,
    with_log_context,
)

__all__ = [
    "LEVEL_NAME_TO_INT",
    "LOG_FORMAT_CONSOLE",
    "LOG_FORMAT_ENV",
    "LOG_FORMAT_JSON",
    "ContextFilter",
    "LogContext",
    "StructuredConsoleFormatter",
    "StructuredJSONFormatter",
    "get_logger",
    "with_log_context",
]
