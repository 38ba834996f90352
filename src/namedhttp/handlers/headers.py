from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from namedhttp.handlers.base import DelegatingHandler, HandlerContext

HEADERS_SECTION_NAME = "Headers"


class DefaultHeadersOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, validate_assignment=True)

    headers: dict[str, str] = Field(default_factory=dict)
    # Replace headers the caller already set on the request.
    override: bool = False


class DefaultHeadersHandler(DelegatingHandler):
    """Adds a client's configured headers to each request before forwarding it."""

    def __init__(self, options: DefaultHeadersOptions, inner=None) -> None:
        super().__init__(inner)
        self.options = options

    def _apply(self, request: httpx.Request) -> None:
        for name, value in self.options.headers.items():
            if self.options.override or name not in request.headers:
                request.headers[name] = value

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self._apply(request)
        return self.forward(request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self._apply(request)
        return await self.forward_async(request)


def default_headers_handler_factory(context: HandlerContext, client_name: str) -> DefaultHeadersHandler:
    return DefaultHeadersHandler(context.options(DefaultHeadersOptions))
