"""Binding of per-client handler options from hierarchical configuration.

Handler options for a named client live under::

    HttpClient:{client_name}:{section_name}

with a shared section used when the client-specific one is absent::

    HttpClient:Handlers:{section_name}
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TypeVar

from namedhttp.config.binding import bind
from namedhttp.config.configuration import SECTION_DELIMITER, ConfigurationSection

T = TypeVar("T")

HTTP_CLIENT_SECTION = "HttpClient"
# Shared bucket for every handler options kind. Kept literally for compatibility
# with existing configuration files.
FALLBACK_CLIENT_NAME = "Handlers"

logger = logging.getLogger(__name__)


def client_section_path(client_name: str, section_name: str | None = None) -> str:
    parts = [HTTP_CLIENT_SECTION, client_name]
    if section_name:
        parts.append(section_name)
    return SECTION_DELIMITER.join(parts)


def fallback_section_path(section_name: str) -> str:
    return client_section_path(FALLBACK_CLIENT_NAME, section_name)


class ConfigSectionFallbackBinder:
    """Named-options callback that binds handler options for a client name.

    Registered against a handler options kind on the options resolver, it is
    invoked as ``binder(client_name, options)`` the first time a client name is
    resolved for that kind. Missing sections leave ``options`` untouched.
    """

    def __init__(
        self,
        configuration: ConfigurationSection,
        section_name: str,
        allow_fallback: bool = True,
    ) -> None:
        if not section_name or not section_name.strip():
            raise ValueError("section_name must be provided")
        self._configuration = configuration
        self._section_name = section_name
        self._allow_fallback = allow_fallback

    @property
    def section_name(self) -> str:
        return self._section_name

    @property
    def allow_fallback(self) -> bool:
        return self._allow_fallback

    def __call__(self, client_name: str | None, options: T) -> None:
        self.bind(client_name, options)

    def bind(self, client_name: str | None, options: T) -> T:
        section = self.locate(client_name)
        if section is None:
            return options
        logger.debug("Binding %s for http client %r from %s", type(options).__name__, client_name, section.path)
        return bind(section, options)

    def locate(self, client_name: str | None) -> ConfigurationSection | None:
        """Return the section ``client_name`` binds from, or None when nothing applies."""
        for path in self._candidate_paths(client_name):
            section = self._configuration.get_section(path)
            if section.exists():
                return section
        return None

    def _candidate_paths(self, client_name: str | None) -> Iterator[str]:
        # A blank name has no client-specific section, only the shared one.
        if client_name and client_name.strip():
            yield client_section_path(client_name, self._section_name)
        if self._allow_fallback:
            yield fallback_section_path(self._section_name)
