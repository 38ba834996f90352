"""Named httpx clients configured lazily, once per distinct client name."""

from namedhttp.client import (
    AssembledPipeline,
    ClientOptions,
    ClientPipelineAssembler,
    HttpClientFactory,
    PrimaryTransportOptions,
    TransportSettings,
)
from namedhttp.config import ConfigSectionFallbackBinder, Configuration, ConfigurationSection
from namedhttp.exceptions import (
    ConfigurationError,
    DuplicateRegistrationError,
    FactoryInvocationError,
    InvalidRegistrationError,
    NamedHttpError,
    OptionsConfigurationError,
    PipelineAssemblyError,
    ResponseTooLargeError,
    UnknownHandlerError,
)
from namedhttp.handlers import (
    DefaultHeadersHandler,
    DefaultHeadersOptions,
    DelegatingHandler,
    HandlerContext,
    HandlerRegistration,
    HandlerRegistry,
    HandlerRegistryBuilder,
    StatusCodeHandler,
    StatusCodeOptions,
    default_headers_handler_factory,
    status_code_handler_factory,
)
from namedhttp.options import NamedOptionsResolver
from namedhttp.services import (
    HandlerOptionsBuilder,
    HttpClientEnvironment,
    HttpClientServices,
    client_options_from_configuration,
)

__version__ = "0.1.0"

__all__ = [
    "AssembledPipeline",
    "ClientOptions",
    "ClientPipelineAssembler",
    "ConfigSectionFallbackBinder",
    "Configuration",
    "ConfigurationError",
    "ConfigurationSection",
    "DefaultHeadersHandler",
    "DefaultHeadersOptions",
    "DelegatingHandler",
    "DuplicateRegistrationError",
    "FactoryInvocationError",
    "HandlerContext",
    "HandlerOptionsBuilder",
    "HandlerRegistration",
    "HandlerRegistry",
    "HandlerRegistryBuilder",
    "HttpClientEnvironment",
    "HttpClientFactory",
    "HttpClientServices",
    "InvalidRegistrationError",
    "NamedHttpError",
    "NamedOptionsResolver",
    "OptionsConfigurationError",
    "PipelineAssemblyError",
    "PrimaryTransportOptions",
    "ResponseTooLargeError",
    "StatusCodeHandler",
    "StatusCodeOptions",
    "TransportSettings",
    "UnknownHandlerError",
    "client_options_from_configuration",
    "default_headers_handler_factory",
    "status_code_handler_factory",
]
