from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any

import httpx

from namedhttp.client.assembler import AssembledPipeline, ClientPipelineAssembler
from namedhttp.client.options import PrimaryTransportOptions
from namedhttp.handlers.buffer import ResponseBufferLimitHandler

logger = logging.getLogger(__name__)


def _rejecting_cookie_jar() -> CookieJar:
    # An empty allow-list refuses cookies from every domain.
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def _link(pipeline: AssembledPipeline, primary: Any) -> Any:
    transport = primary
    for handler in reversed(pipeline.handlers):
        handler.inner = transport
        transport = handler
    limit = pipeline.settings.max_response_content_buffer_size
    if limit is not None:
        transport = ResponseBufferLimitHandler(limit, inner=transport)
    return transport


def _client_kwargs(pipeline: AssembledPipeline) -> dict[str, Any]:
    settings = pipeline.settings
    kwargs: dict[str, Any] = {}
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
    if settings.timeout is not None:
        kwargs["timeout"] = settings.timeout
    if not settings.cookies_enabled:
        kwargs["cookies"] = _rejecting_cookie_jar()
    return kwargs


class HttpClientFactory:
    """Builds and caches httpx clients by name.

    The client for a name is assembled on first request: the first configured
    handler is outermost, the primary transport innermost. Subsequent requests
    for the same name return the same client until the factory is closed.
    """

    def __init__(self, assembler: ClientPipelineAssembler) -> None:
        self._assembler = assembler
        self._clients: dict[str, httpx.Client] = {}
        self._async_clients: dict[str, httpx.AsyncClient] = {}
        self._lock = threading.Lock()

    @property
    def assembler(self) -> ClientPipelineAssembler:
        return self._assembler

    def create_client(self, name: str) -> httpx.Client:
        with self._lock:
            existing = self._clients.get(name)
        if existing is not None:
            return existing
        client = self._build_client(name)
        with self._lock:
            winner = self._clients.setdefault(name, client)
        if winner is not client:
            client.close()
        return winner

    def create_async_client(self, name: str) -> httpx.AsyncClient:
        with self._lock:
            existing = self._async_clients.get(name)
        if existing is not None:
            return existing
        client = self._build_async_client(name)
        with self._lock:
            winner = self._async_clients.setdefault(name, client)
        return winner

    def client_provider(self, name: str) -> Callable[[], httpx.Client]:
        """Return a zero-argument callable producing the client called ``name``."""

        def provide() -> httpx.Client:
            return self.create_client(name)

        return provide

    def async_client_provider(self, name: str) -> Callable[[], httpx.AsyncClient]:
        def provide() -> httpx.AsyncClient:
            return self.create_async_client(name)

        return provide

    def _build_client(self, name: str) -> httpx.Client:
        pipeline = self._assembler.assemble(name)
        primary = pipeline.settings.primary
        if isinstance(primary, PrimaryTransportOptions):
            primary = httpx.HTTPTransport(verify=primary.verify)
        logger.debug("Creating http client %s with %d handler(s)", name, len(pipeline.handlers))
        return httpx.Client(transport=_link(pipeline, primary), **_client_kwargs(pipeline))

    def _build_async_client(self, name: str) -> httpx.AsyncClient:
        pipeline = self._assembler.assemble(name)
        primary = pipeline.settings.primary
        if isinstance(primary, PrimaryTransportOptions):
            primary = httpx.AsyncHTTPTransport(verify=primary.verify)
        logger.debug("Creating async http client %s with %d handler(s)", name, len(pipeline.handlers))
        return httpx.AsyncClient(transport=_link(pipeline, primary), **_client_kwargs(pipeline))

    def close(self) -> None:
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.close()

    async def aclose(self) -> None:
        self.close()
        with self._lock:
            clients = list(self._async_clients.values())
            self._async_clients.clear()
        for client in clients:
            await client.aclose()
