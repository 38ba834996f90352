"""Configuration helpers."""

from .binder import (
    FALLBACK_CLIENT_NAME,
    HTTP_CLIENT_SECTION,
    ConfigSectionFallbackBinder,
    client_section_path,
    fallback_section_path,
)
from .binding import bind
from .configuration import Configuration, ConfigurationSection

__all__ = [
    "FALLBACK_CLIENT_NAME",
    "HTTP_CLIENT_SECTION",
    "ConfigSectionFallbackBinder",
    "Configuration",
    "ConfigurationSection",
    "bind",
    "client_section_path",
    "fallback_section_path",
]
