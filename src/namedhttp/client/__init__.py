from .assembler import AssembledPipeline, ClientPipelineAssembler, PrimaryTransportFactory
from .factory import HttpClientFactory
from .options import ClientOptions, PrimaryTransportOptions, TransportSettings

__all__ = [
    "AssembledPipeline",
    "ClientOptions",
    "ClientPipelineAssembler",
    "HttpClientFactory",
    "PrimaryTransportFactory",
    "PrimaryTransportOptions",
    "TransportSettings",
]
