from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import httpx

from namedhttp.exceptions import ResponseTooLargeError
from namedhttp.handlers.base import DelegatingHandler


def _too_large(limit: int, request: httpx.Request) -> ResponseTooLargeError:
    return ResponseTooLargeError(
        message=f"Response from {request.url} exceeded the buffer limit of {limit} bytes",
        data={"limit": limit, "url": str(request.url)},
    )


def _declared_length(response: httpx.Response) -> int | None:
    value = response.headers.get("content-length")
    if value is None or not value.isdigit():
        return None
    return int(value)


class _LimitedSyncStream(httpx.SyncByteStream):
    def __init__(self, stream: httpx.SyncByteStream, limit: int, request: httpx.Request) -> None:
        self._stream = stream
        self._limit = limit
        self._request = request

    def __iter__(self) -> Iterator[bytes]:
        total = 0
        for chunk in self._stream:
            total += len(chunk)
            if total > self._limit:
                raise _too_large(self._limit, self._request)
            yield chunk

    def close(self) -> None:
        self._stream.close()


class _LimitedAsyncStream(httpx.AsyncByteStream):
    def __init__(self, stream: httpx.AsyncByteStream, limit: int, request: httpx.Request) -> None:
        self._stream = stream
        self._limit = limit
        self._request = request

    async def __aiter__(self) -> AsyncIterator[bytes]:
        total = 0
        async for chunk in self._stream:
            total += len(chunk)
            if total > self._limit:
                raise _too_large(self._limit, self._request)
            yield chunk

    async def aclose(self) -> None:
        await self._stream.aclose()


class ResponseBufferLimitHandler(DelegatingHandler):
    """Outermost stage enforcing ``max_response_content_buffer_size``.

    Fails fast on a declared ``Content-Length`` above the limit, otherwise
    counts raw body bytes as they are read.
    """

    def __init__(self, limit: int, inner=None) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        super().__init__(inner)
        self.limit = limit

    def _rewrap(self, response: httpx.Response, stream, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            stream=stream,
            extensions=response.extensions,
            request=request,
        )

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        response = self.forward(request)
        declared = _declared_length(response)
        if declared is not None and declared > self.limit:
            response.close()
            raise _too_large(self.limit, request)
        return self._rewrap(response, _LimitedSyncStream(response.stream, self.limit, request), request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        response = await self.forward_async(request)
        declared = _declared_length(response)
        if declared is not None and declared > self.limit:
            await response.aclose()
            raise _too_large(self.limit, request)
        return self._rewrap(response, _LimitedAsyncStream(response.stream, self.limit, request), request)
