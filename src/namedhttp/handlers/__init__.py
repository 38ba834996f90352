"""Request pipeline handlers and the registry that builds them per client name."""

from __future__ import annotations

from namedhttp.handlers.base import DelegatingHandler, HandlerContext
from namedhttp.handlers.buffer import ResponseBufferLimitHandler
from namedhttp.handlers.headers import (
    HEADERS_SECTION_NAME,
    DefaultHeadersHandler,
    DefaultHeadersOptions,
    default_headers_handler_factory,
)
from namedhttp.handlers.registry import (
    HandlerFactory,
    HandlerRegistration,
    HandlerRegistry,
    HandlerRegistryBuilder,
)
from namedhttp.handlers.status import (
    STATUS_SECTION_NAME,
    StatusCodeHandler,
    StatusCodeOptions,
    status_code_handler_factory,
)

__all__ = [
    "HEADERS_SECTION_NAME",
    "STATUS_SECTION_NAME",
    "DefaultHeadersHandler",
    "DefaultHeadersOptions",
    "DelegatingHandler",
    "HandlerContext",
    "HandlerFactory",
    "HandlerRegistration",
    "HandlerRegistry",
    "HandlerRegistryBuilder",
    "ResponseBufferLimitHandler",
    "StatusCodeHandler",
    "StatusCodeOptions",
    "default_headers_handler_factory",
    "status_code_handler_factory",
]
