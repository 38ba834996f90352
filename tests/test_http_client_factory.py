from __future__ import annotations

import httpx
import pytest

from namedhttp import (
    Configuration,
    DefaultHeadersOptions,
    HttpClientEnvironment,
    HttpClientServices,
    PipelineAssemblyError,
    ResponseTooLargeError,
    StatusCodeOptions,
    default_headers_handler_factory,
    status_code_handler_factory,
)
from namedhttp.handlers import DelegatingHandler


def echo_transport() -> httpx.MockTransport:
    """Mock primary transport echoing the request back as JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"url": str(request.url), "headers": dict(request.headers)},
        )

    return httpx.MockTransport(handler)


class RecordingHandler(DelegatingHandler):
    def __init__(self, tag: str, seen: list[str]) -> None:
        super().__init__()
        self.tag = tag
        self.seen = seen

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.seen.append(self.tag)
        return self.forward(request)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.seen.append(self.tag)
        return await self.forward_async(request)


def test_same_handler_name_is_configured_per_client(status_environment: HttpClientEnvironment):
    foo = status_environment.create_client("foo-v1")
    bar = status_environment.create_client("bar-v1")

    assert foo.get("http://example.com/").status_code == 200
    assert bar.get("http://example.com/").status_code == 404


def test_unconfigured_version_uses_shared_handler_section(status_configuration: Configuration):
    services = HttpClientServices()
    services.add_handler_registry(lambda registry: registry.handler("status-handler")(status_code_handler_factory))
    services.configure_clients(lambda name, options: options.handlers.append("status-handler"))
    services.configure_handler_options_per_client(StatusCodeOptions, status_configuration, "Status")

    with services.build() as environment:
        response = environment.create_client("baz-v1").get("http://example.com/")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_async_clients_share_the_same_configuration(status_environment: HttpClientEnvironment):
    foo = status_environment.create_async_client("foo-v1")
    bar = status_environment.create_async_client("bar-v1")

    assert (await foo.get("http://example.com/")).status_code == 200
    assert (await bar.get("http://example.com/")).status_code == 404
    await status_environment.aclose()


def test_clients_are_cached_by_name(status_environment: HttpClientEnvironment):
    provider = status_environment.factory.client_provider("foo-v1")

    first = status_environment.create_client("foo-v1")

    assert provider() is first
    assert status_environment.create_client("foo-v1") is first
    assert status_environment.create_client("bar-v1") is not first

    status_environment.close()
    assert status_environment.create_client("foo-v1") is not first


def test_unknown_handler_surfaces_when_client_requested():
    services = HttpClientServices()
    services.configure_client("haunted", lambda options: options.handlers.append("ghost"))
    environment = services.build()

    with pytest.raises(PipelineAssemblyError, match="ghost"):
        environment.create_client("haunted")


def test_handlers_run_in_order_around_primary_transport():
    seen: list[str] = []
    services = HttpClientServices()

    def register(registry) -> None:
        for tag in ("first", "second", "third"):
            registry.handler(tag)(lambda ctx, name, tag=tag: RecordingHandler(tag, seen))

    services.add_handler_registry(register)
    services.configure_client("ordered", lambda o: o.handlers.extend(["first", "second", "third"]))
    services.configure_primary_transport("ordered", echo_transport)

    with services.build() as environment:
        response = environment.create_client("ordered").get("http://example.com/ping")

    assert response.status_code == 200
    assert seen == ["first", "second", "third"]


def test_base_address_and_default_headers_apply():
    services = HttpClientServices()
    services.add_handler_registry(lambda registry: registry.handler("headers")(default_headers_handler_factory))
    services.configure_clients_from(
        Configuration.from_mapping(
            {"HttpClient": {"api-v2": {"BaseAddress": "https://api.example.com/v2/", "Handlers": ["headers"]}}}
        )
    )
    services.configure_handler_options(
        DefaultHeadersOptions,
        lambda name, options: options.headers.update({"x-client-name": name}),
    )
    services.configure_primary_transport("api-v2", echo_transport)

    with services.build() as environment:
        body = environment.create_client("api-v2").get("users").json()

    assert body["url"] == "https://api.example.com/v2/users"
    assert body["headers"]["x-client-name"] == "api-v2"


def _cookie_services(use_cookies: bool) -> HttpClientServices:
    services = HttpClientServices()
    services.add_handler_registry(lambda registry: registry.handler("status")(status_code_handler_factory))

    def configure(options) -> None:
        options.use_cookies = use_cookies
        options.handlers.append("status")

    services.configure_client("cookies", configure)
    services.configure_handler_options(
        StatusCodeOptions,
        lambda name, options: options.headers.update({"set-cookie": "session=abc; Path=/"}),
    )
    return services


def test_cookies_are_kept_when_enabled():
    with _cookie_services(use_cookies=True).build() as environment:
        client = environment.create_client("cookies")
        client.get("http://example.com/")
        assert client.cookies.get("session") == "abc"


def test_cookies_are_dropped_when_disabled():
    with _cookie_services(use_cookies=False).build() as environment:
        client = environment.create_client("cookies")
        client.get("http://example.com/")
        assert client.cookies.get("session") is None


def _buffer_services(limit: int) -> HttpClientServices:
    services = HttpClientServices()
    services.add_handler_registry(lambda registry: registry.handler("status")(status_code_handler_factory))

    def configure(options) -> None:
        options.max_response_content_buffer_size = limit
        options.handlers.append("status")

    services.configure_client("limited", configure)
    services.configure_handler_options(StatusCodeOptions, lambda name, options: setattr(options, "content", "x" * 100))
    return services


def test_response_within_buffer_limit_is_returned():
    with _buffer_services(limit=1000).build() as environment:
        response = environment.create_client("limited").get("http://example.com/")

    assert response.text == "x" * 100


def test_response_over_buffer_limit_raises():
    with _buffer_services(limit=10).build() as environment:
        with pytest.raises(ResponseTooLargeError) as exc_info:
            environment.create_client("limited").get("http://example.com/")

    assert exc_info.value.data["limit"] == 10


@pytest.mark.asyncio
async def test_async_buffer_limit_counts_streamed_bytes():
    async def body():
        yield b"a" * 8
        yield b"b" * 8

    def chunked(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body())

    services = HttpClientServices()
    services.configure_client("streamed", lambda o: setattr(o, "max_response_content_buffer_size", 10))
    services.configure_primary_transport(
        "streamed",
        lambda: httpx.MockTransport(chunked),
    )

    async with services.build() as environment:
        client = environment.create_async_client("streamed")
        with pytest.raises(ResponseTooLargeError):
            await client.get("http://example.com/")


def test_builder_is_frozen_after_build():
    services = HttpClientServices()
    services.build()

    with pytest.raises(RuntimeError):
        services.configure_client("late", lambda o: None)


def test_handler_options_builder_binds_from_client_sections(status_configuration: Configuration):
    services = HttpClientServices()
    services.add_handler_registry(lambda registry: registry.handler("status-handler")(status_code_handler_factory))
    services.configure_clients_from(status_configuration)
    services.configure_handler_options_using_configuration(
        status_configuration,
        lambda builder: builder.from_clients_config_section(StatusCodeOptions, "Status"),
    )

    with services.build() as environment:
        assert environment.create_client("foo-v1").get("http://example.com/").status_code == 200
        assert environment.create_client("bar-v1").get("http://example.com/").status_code == 404
        assert environment.resolver.get(StatusCodeOptions, "baz-v1").status_code == 503


def test_handler_options_builder_can_disable_fallback(status_configuration: Configuration):
    services = HttpClientServices()
    services.configure_handler_options_using_configuration(
        status_configuration,
        lambda builder: builder.from_clients_config_section(StatusCodeOptions, "Status", allow_fallback=False),
    )

    environment = services.build()

    assert environment.resolver.get(StatusCodeOptions, "foo-v1").status_code == 200
    assert environment.resolver.get(StatusCodeOptions, "baz-v1").status_code == StatusCodeOptions().status_code


@pytest.mark.asyncio
async def test_async_client_provider_returns_cached_client(status_environment: HttpClientEnvironment):
    provider = status_environment.factory.async_client_provider("bar-v1")

    client = provider()

    assert provider() is client
    assert status_environment.create_async_client("bar-v1") is client
    assert (await client.get("http://example.com/")).status_code == 404
    await status_environment.aclose()
    assert provider() is not client
    await status_environment.aclose()
