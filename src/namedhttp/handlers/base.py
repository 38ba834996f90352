from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

if TYPE_CHECKING:
    from namedhttp.options.resolver import NamedOptionsResolver

T = TypeVar("T")


class DelegatingHandler(httpx.BaseTransport, httpx.AsyncBaseTransport):
    """A stage in a named client's request pipeline.

    Handlers are httpx transports wrapping an ``inner`` transport. The default
    implementation forwards every request unchanged; subclasses override
    ``handle_request`` / ``handle_async_request`` to inspect or rewrite the
    request, or to short-circuit by returning a response without forwarding.

    The same handler class serves both ``httpx.Client`` and
    ``httpx.AsyncClient``; a given instance is linked into exactly one chain.
    """

    def __init__(self, inner: Any = None) -> None:
        self.inner = inner

    def forward(self, request: httpx.Request) -> httpx.Response:
        if self.inner is None:
            raise RuntimeError(f"{type(self).__name__} has no inner transport")
        return self.inner.handle_request(request)

    async def forward_async(self, request: httpx.Request) -> httpx.Response:
        if self.inner is None:
            raise RuntimeError(f"{type(self).__name__} has no inner transport")
        return await self.inner.handle_async_request(request)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self.forward(request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.forward_async(request)

    def close(self) -> None:
        if self.inner is not None:
            self.inner.close()

    async def aclose(self) -> None:
        if self.inner is not None:
            await self.inner.aclose()


class HandlerContext:
    """What a handler factory may see while building a handler for one client.

    Factories get named options snapshots and a logger through this object
    rather than reaching into a container.
    """

    def __init__(
        self,
        resolver: NamedOptionsResolver,
        client_name: str,
        logger: logging.Logger | None = None,
    ) -> None:
        self._resolver = resolver
        self._client_name = client_name
        self._logger = logger or logging.getLogger("namedhttp.handlers")

    @property
    def client_name(self) -> str:
        return self._client_name

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def options(self, kind: type[T]) -> T:
        """Return the ``kind`` options resolved for the client being built."""
        return self._resolver.get(kind, self._client_name)

    def options_for(self, kind: type[T], name: str) -> T:
        return self._resolver.get(kind, name)
