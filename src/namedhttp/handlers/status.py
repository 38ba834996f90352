from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from namedhttp.handlers.base import DelegatingHandler, HandlerContext

STATUS_SECTION_NAME = "Status"


class StatusCodeOptions(BaseModel):
    """Options for :class:`StatusCodeHandler`, bound from ``HttpClient:{name}:Status``."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, validate_assignment=True)

    status_code: int = Field(default=200, ge=100, le=599)
    content: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)


class StatusCodeHandler(DelegatingHandler):
    """Short-circuits every request with a fixed response.

    Useful for stubbing a named client offline, or for pinning a client
    version to a canned answer.
    """

    def __init__(self, options: StatusCodeOptions, inner=None) -> None:
        super().__init__(inner)
        self.options = options

    def _respond(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            self.options.status_code,
            headers=self.options.headers,
            text=self.options.content,
            request=request,
        )

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        return self._respond(request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return self._respond(request)


def status_code_handler_factory(context: HandlerContext, client_name: str) -> StatusCodeHandler:
    return StatusCodeHandler(context.options(StatusCodeOptions))
