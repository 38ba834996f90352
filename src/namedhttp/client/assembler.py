from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from namedhttp.client.options import ClientOptions, PrimaryTransportOptions, TransportSettings
from namedhttp.exceptions import NamedHttpError, PipelineAssemblyError
from namedhttp.handlers.base import DelegatingHandler, HandlerContext
from namedhttp.handlers.registry import HandlerRegistry
from namedhttp.observability.logging import LogContext, with_log_context
from namedhttp.options.resolver import NamedOptionsResolver

logger = with_log_context(logging.getLogger(__name__))

PrimaryTransportFactory = Callable[[], Any]


@dataclass(frozen=True)
class AssembledPipeline:
    """Everything the client factory needs to build the client called ``client_name``."""

    client_name: str
    settings: TransportSettings
    handlers: tuple[DelegatingHandler, ...] = ()


class ClientPipelineAssembler:
    """Turns a client name into transport settings plus an ordered handler chain.

    Options are memoized by the resolver; handlers are built fresh on each
    call. Any failure surfaces as :class:`PipelineAssemblyError` and no
    partial chain is returned.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        resolver: NamedOptionsResolver,
        primary_transports: Mapping[str, PrimaryTransportFactory] | None = None,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._primary_transports = dict(primary_transports or {})

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def resolver(self) -> NamedOptionsResolver:
        return self._resolver

    def assemble(self, client_name: str) -> AssembledPipeline:
        with LogContext(client_name=client_name):
            try:
                options = self._resolver.get(ClientOptions, client_name)
            except NamedHttpError as exc:
                raise PipelineAssemblyError(
                    message=f"Could not resolve options for http client {client_name}: {exc.message}",
                    data={"client_name": client_name, "step": "options"},
                    cause=exc,
                ) from exc

            settings = self._project(client_name, options)
            try:
                handlers = self._create_handlers(client_name, options)
            except PipelineAssemblyError:
                _close_transport(settings.primary)
                raise
            return AssembledPipeline(client_name=client_name, settings=settings, handlers=handlers)

    def _project(self, client_name: str, options: ClientOptions) -> TransportSettings:
        primary_factory = self._primary_transports.get(client_name)
        if primary_factory is None:
            primary = PrimaryTransportOptions()
        else:
            try:
                primary = primary_factory()
            except Exception as exc:
                raise PipelineAssemblyError(
                    message=f"Primary transport factory failed for http client {client_name}: {exc}",
                    data={"client_name": client_name, "step": "primary"},
                    cause=exc,
                ) from exc

        if isinstance(primary, PrimaryTransportOptions):
            primary.use_cookies = options.use_cookies
            if options.enable_bypass_invalid_certificate:
                logger.warning("Http Client %s configured to accept any server certificate.", client_name)
                primary.verify = False
        else:
            logger.warning(
                "Configured primary transport for Http Client %s is %s, not a configurable transport, "
                "so certificate validation bypass and UseCookies cannot be set.",
                client_name,
                type(primary).__name__,
            )

        return TransportSettings(
            base_url=options.base_address,
            timeout=options.timeout,
            max_response_content_buffer_size=options.max_response_content_buffer_size,
            primary=primary,
        )

    def _create_handlers(self, client_name: str, options: ClientOptions) -> tuple[DelegatingHandler, ...]:
        handler_names = list(options.handlers)
        if not handler_names:
            logger.warning("No handlers configured for HttpClient: %s.", client_name)
            return ()

        context = HandlerContext(self._resolver, client_name, logger)
        handlers: list[DelegatingHandler] = []
        for handler_name in handler_names:
            try:
                with LogContext(handler_name=handler_name):
                    logger.debug("Creating handler named: %s for HttpClient: %s.", handler_name, client_name)
                    handlers.append(self._registry.resolve(handler_name, context, client_name))
            except NamedHttpError as exc:
                raise PipelineAssemblyError(
                    message=(
                        f"Handler named: {handler_name} could not be created, "
                        f"for http client named: {client_name}: {exc.message}"
                    ),
                    data={"client_name": client_name, "handler_name": handler_name, "step": "handlers"},
                    cause=exc,
                ) from exc
        return tuple(handlers)


def _close_transport(primary: Any) -> None:
    # Only a caller-built transport holds resources at this point.
    if isinstance(primary, PrimaryTransportOptions):
        return
    close = getattr(primary, "close", None)
    if callable(close):
        close()
    else:
        logger.warning("Primary transport %s has no close(); it was not released.", type(primary).__name__)
