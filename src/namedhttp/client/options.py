from __future__ import annotations

import dataclasses
from datetime import timedelta
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal


def _parse_timespan(value: str) -> float:
    """Parse ``[d.]hh:mm:ss[.fff]`` into seconds."""
    days = 0
    text = value.strip()
    head, sep, rest = text.partition(".")
    if sep and ":" in rest and head.isdigit():
        days = int(head)
        text = rest
    parts = text.split(":")
    if len(parts) != 3:
        raise ValueError(f"Invalid timespan {value!r}; expected hh:mm:ss")
    hours, minutes, seconds = int(parts[0]), int(parts[1]), float(parts[2])
    return timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds).total_seconds()


class ClientOptions(BaseModel):
    """How the http client called ``name`` should behave.

    Configured per client name through the options resolver, either with
    callbacks or bound from ``HttpClient:{name}``. Keys bind in snake_case or
    PascalCase (``BaseAddress``, ``UseCookies``, ``Handlers`` ...).
    """

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, validate_assignment=True)

    base_address: str | None = None
    use_cookies: bool = True
    enable_bypass_invalid_certificate: bool = False
    max_response_content_buffer_size: int | None = Field(default=None, gt=0)
    timeout: float | None = Field(default=None, gt=0)
    """Request timeout in seconds. Accepts seconds, a timedelta or ``hh:mm:ss``."""
    handlers: list[str] = Field(default_factory=list)
    """Handler names in request order: the first handler sees the request first."""

    @field_validator("base_address", mode="before")
    @classmethod
    def _validate_base_address(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        try:
            url = httpx.URL(str(value))
        except httpx.InvalidURL as exc:
            raise ValueError(f"base_address is not a valid url: {exc}") from exc
        if not url.is_absolute_url:
            raise ValueError(f"base_address must be an absolute url, got {value!r}")
        return str(url)

    @field_validator("timeout", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> Any:
        if isinstance(value, timedelta):
            return value.total_seconds()
        if isinstance(value, str) and ":" in value:
            return _parse_timespan(value)
        return value

    @field_validator("handlers", mode="before")
    @classmethod
    def _validate_handlers(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@dataclasses.dataclass
class PrimaryTransportOptions:
    """Settings for the innermost transport that the client factory creates itself."""

    verify: bool = True
    use_cookies: bool = True


@dataclasses.dataclass(frozen=True)
class TransportSettings:
    """Transport-level projection of :class:`ClientOptions` for one client name."""

    base_url: str | None = None
    timeout: float | None = None
    max_response_content_buffer_size: int | None = None
    primary: Any = dataclasses.field(default_factory=PrimaryTransportOptions)
    """A :class:`PrimaryTransportOptions`, or a caller-supplied httpx transport."""

    @property
    def primary_is_configurable(self) -> bool:
        return isinstance(self.primary, PrimaryTransportOptions)

    @property
    def cookies_enabled(self) -> bool:
        if isinstance(self.primary, PrimaryTransportOptions):
            return self.primary.use_cookies
        return True
