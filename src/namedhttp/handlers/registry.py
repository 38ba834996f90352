import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from namedhttp.exceptions import (
    DuplicateRegistrationError,
    FactoryInvocationError,
    InvalidRegistrationError,
    UnknownHandlerError,
)
from namedhttp.handlers.base import DelegatingHandler, HandlerContext

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[HandlerContext, str], DelegatingHandler]


@dataclass
class HandlerRegistration:
    """A named handler and the factory that builds it for a client name."""

    name: str
    factory: HandlerFactory | None = None

    def ensure_is_valid(self) -> None:
        if self.factory is None:
            raise InvalidRegistrationError(
                message=f"Handler {self.name} is registered without a factory.",
                data={"handler_name": self.name},
            )
        if not callable(self.factory):
            raise InvalidRegistrationError(
                message=f"Handler {self.name} factory is not callable.",
                data={"handler_name": self.name},
            )


class HandlerRegistry:
    """Read-only catalog of handler registrations keyed by handler name.

    Built by :class:`HandlerRegistryBuilder`. Every ``resolve`` call builds a
    fresh handler; instances are never cached.
    """

    def __init__(self, registrations: Mapping[str, HandlerRegistration]):
        self._registrations: Mapping[str, HandlerRegistration] = MappingProxyType(dict(registrations))

    def __contains__(self, name: object) -> bool:
        return name in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)

    def __iter__(self) -> Iterator[str]:
        return iter(self._registrations)

    def names(self) -> list[str]:
        return list(self._registrations)

    def get_registration(self, name: str) -> HandlerRegistration:
        try:
            return self._registrations[name]
        except KeyError:
            raise UnknownHandlerError(
                message=f"Handler named: {name} was not found. Available: {self.names()}",
                data={"handler_name": name},
            ) from None

    def resolve(self, name: str, context: HandlerContext, client_name: str) -> DelegatingHandler:
        """Build the handler registered as ``name`` for ``client_name``.

        Raises:
            UnknownHandlerError: No registration exists for ``name``.
            FactoryInvocationError: The factory raised, or returned something
                that is not a :class:`DelegatingHandler`.
        """
        registration = self.get_registration(name)
        try:
            handler = registration.factory(context, client_name)
        except Exception as exc:
            raise FactoryInvocationError(
                message=f"Factory for handler {name} failed for http client {client_name}: {exc}",
                data={"handler_name": name, "client_name": client_name},
                cause=exc,
            ) from exc
        if not isinstance(handler, DelegatingHandler):
            raise FactoryInvocationError(
                message=(
                    f"Factory for handler {name} returned {type(handler).__name__} "
                    f"for http client {client_name}; expected a DelegatingHandler"
                ),
                data={"handler_name": name, "client_name": client_name},
            )
        return handler


class HandlerRegistryBuilder:
    """Collects handler registrations during startup and produces a frozen registry."""

    def __init__(self) -> None:
        self._registrations: dict[str, HandlerRegistration] = {}
        self._registry: HandlerRegistry | None = None

    @property
    def is_built(self) -> bool:
        return self._registry is not None

    def register(
        self,
        name: str,
        configure: Callable[[HandlerRegistration], Any],
    ) -> "HandlerRegistryBuilder":
        """Register a handler; ``configure`` must set the registration's factory.

        Use this to control how the handler instance is created, and to create
        differently configured instances per named http client.
        """
        if self._registry is not None:
            raise InvalidRegistrationError(
                message=f"Cannot register handler {name}; the registry has already been built.",
                data={"handler_name": name},
            )
        if not name or not name.strip():
            raise InvalidRegistrationError(message="Handler name must be provided")
        if name in self._registrations:
            raise DuplicateRegistrationError(
                message=f"A handler named {name} is already registered.",
                data={"handler_name": name},
            )
        registration = HandlerRegistration(name=name)
        configure(registration)
        registration.ensure_is_valid()
        self._registrations[name] = registration
        logger.info("Registered http client handler: %s", name)
        return self

    def handler(self, name: str) -> Callable[[HandlerFactory], HandlerFactory]:
        """Decorator form of :meth:`register` for a factory function."""

        def decorator(factory: HandlerFactory) -> HandlerFactory:
            def configure(registration: HandlerRegistration) -> None:
                registration.factory = factory

            self.register(name, configure)
            return factory

        return decorator

    def build(self) -> HandlerRegistry:
        if self._registry is None:
            self._registry = HandlerRegistry(self._registrations)
        return self._registry
