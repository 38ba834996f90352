"""Startup wiring for named http clients.

Example:
    from namedhttp import HttpClientServices, StatusCodeOptions, status_code_handler_factory

    services = HttpClientServices()
    services.add_handler_registry(
        lambda registry: registry.handler("status-handler")(status_code_handler_factory)
    )
    services.configure_clients_from(configuration)
    services.configure_handler_options_per_client(StatusCodeOptions, configuration, "Status")

    with services.build() as environment:
        response = environment.create_client("foo-v1").get("https://example.com/")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx

from namedhttp.client.assembler import ClientPipelineAssembler, PrimaryTransportFactory
from namedhttp.client.factory import HttpClientFactory
from namedhttp.client.options import ClientOptions
from namedhttp.config.binder import ConfigSectionFallbackBinder, client_section_path
from namedhttp.config.binding import bind
from namedhttp.config.configuration import ConfigurationSection
from namedhttp.handlers.registry import HandlerRegistry, HandlerRegistryBuilder
from namedhttp.options.resolver import NamedOptionsResolver

T = TypeVar("T")

logger = logging.getLogger(__name__)


def client_options_from_configuration(configuration: ConfigurationSection) -> Callable[[str, ClientOptions], None]:
    """Return a callback binding ``HttpClient:{name}`` onto each client's options."""

    def _configure(name: str, options: ClientOptions) -> None:
        if not name:
            return
        section = configuration.get_section(client_section_path(name))
        if section.exists():
            bind(section, options)

    return _configure


class HandlerOptionsBuilder:
    """Registers handler options kinds that bind from the per-client config convention."""

    def __init__(self, services: HttpClientServices, configuration: ConfigurationSection) -> None:
        self.services = services
        self.configuration = configuration

    def from_clients_config_section(
        self,
        kind: type[T],
        section_name: str,
        allow_fallback: bool = True,
    ) -> HandlerOptionsBuilder:
        """Bind ``kind`` from ``HttpClient:{client_name}:{section_name}``."""
        self.services.configure_handler_options_per_client(kind, self.configuration, section_name, allow_fallback)
        return self


class HttpClientServices:
    """Collects handler registrations and per-name configuration, then builds
    an :class:`HttpClientEnvironment`.

    Everything is registered up front; nothing is resolved until a client name
    is first requested from the built environment.
    """

    def __init__(self) -> None:
        self._registry_builder = HandlerRegistryBuilder()
        self._resolver = NamedOptionsResolver()
        self._primary_transports: dict[str, PrimaryTransportFactory] = {}
        self._environment: HttpClientEnvironment | None = None

    @property
    def resolver(self) -> NamedOptionsResolver:
        return self._resolver

    def _ensure_not_built(self) -> None:
        if self._environment is not None:
            raise RuntimeError("HttpClientServices has already been built")

    def add_handler_registry(self, register_handlers: Callable[[HandlerRegistryBuilder], Any]) -> HttpClientServices:
        self._ensure_not_built()
        register_handlers(self._registry_builder)
        return self

    def configure_client(self, name: str, configure: Callable[[ClientOptions], Any]) -> HttpClientServices:
        """Configure the options of one client name."""
        self._ensure_not_built()
        self._resolver.configure_named(ClientOptions, name, configure)
        return self

    def configure_clients(self, configure: Callable[[str, ClientOptions], Any]) -> HttpClientServices:
        """Configure options on demand for any client name, when it is first requested."""
        self._ensure_not_built()
        self._resolver.configure(ClientOptions, configure)
        return self

    def configure_clients_from(self, configuration: ConfigurationSection) -> HttpClientServices:
        return self.configure_clients(client_options_from_configuration(configuration))

    def configure_handler_options(self, kind: type[T], configure: Callable[[str, T], Any]) -> HttpClientServices:
        self._ensure_not_built()
        self._resolver.configure(kind, configure)
        return self

    def configure_handler_options_per_client(
        self,
        kind: type[T],
        configuration: ConfigurationSection,
        section_name: str,
        allow_fallback: bool = True,
    ) -> HttpClientServices:
        """Bind ``kind`` per client from ``HttpClient:{name}:{section_name}``,
        falling back to ``HttpClient:Handlers:{section_name}`` when allowed.
        """
        binder = ConfigSectionFallbackBinder(configuration, section_name, allow_fallback)
        return self.configure_handler_options(kind, binder)

    def configure_handler_options_using_configuration(
        self,
        configuration: ConfigurationSection,
        configure: Callable[[HandlerOptionsBuilder], Any],
    ) -> HttpClientServices:
        self._ensure_not_built()
        configure(HandlerOptionsBuilder(self, configuration))
        return self

    def configure_primary_transport(self, name: str, factory: PrimaryTransportFactory) -> HttpClientServices:
        """Use a caller-built innermost transport for the client called ``name``."""
        self._ensure_not_built()
        self._primary_transports[name] = factory
        return self

    def build(self) -> HttpClientEnvironment:
        if self._environment is None:
            registry = self._registry_builder.build()
            assembler = ClientPipelineAssembler(registry, self._resolver, self._primary_transports)
            self._environment = HttpClientEnvironment(
                registry=registry,
                resolver=self._resolver,
                assembler=assembler,
                factory=HttpClientFactory(assembler),
            )
            logger.info("Built http client environment with %d handler(s)", len(registry))
        return self._environment


@dataclass(frozen=True)
class HttpClientEnvironment:
    """The constructed-once context an application threads through to get clients."""

    registry: HandlerRegistry
    resolver: NamedOptionsResolver
    assembler: ClientPipelineAssembler
    factory: HttpClientFactory = field(repr=False)

    def create_client(self, name: str) -> httpx.Client:
        return self.factory.create_client(name)

    def create_async_client(self, name: str) -> httpx.AsyncClient:
        return self.factory.create_async_client(name)

    def client_options(self, name: str) -> ClientOptions:
        return self.resolver.get(ClientOptions, name)

    def close(self) -> None:
        self.factory.close()

    async def aclose(self) -> None:
        await self.factory.aclose()

    def __enter__(self) -> HttpClientEnvironment:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    async def __aenter__(self) -> HttpClientEnvironment:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
