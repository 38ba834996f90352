from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from namedhttp import (
    Configuration,
    HttpClientEnvironment,
    HttpClientServices,
    StatusCodeOptions,
    status_code_handler_factory,
)

STATUS_CONFIG: dict[str, Any] = {
    "HttpClient": {
        "foo-v1": {"Handlers": ["status-handler"], "Status": {"StatusCode": 200}},
        "bar-v1": {"Handlers": ["status-handler"], "Status": {"StatusCode": 404}},
        "Handlers": {"Status": {"StatusCode": 503}},
    }
}


@pytest.fixture
def status_configuration() -> Configuration:
    return Configuration.from_mapping(STATUS_CONFIG)


@pytest.fixture
def status_services(status_configuration: Configuration) -> HttpClientServices:
    services = HttpClientServices()
    services.add_handler_registry(
        lambda registry: registry.handler("status-handler")(status_code_handler_factory)
    )
    services.configure_clients_from(status_configuration)
    services.configure_handler_options_per_client(StatusCodeOptions, status_configuration, "Status")
    return services


@pytest.fixture
def status_environment(status_services: HttpClientServices) -> Iterator[HttpClientEnvironment]:
    environment = status_services.build()
    yield environment
    environment.close()
