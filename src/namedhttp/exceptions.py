from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass
from typing import Any

# Set by the interpreter, contextlib and add_note while an error propagates.
_EXCEPTION_STATE = frozenset(
    {"args", "__traceback__", "__context__", "__cause__", "__suppress_context__", "__notes__"}
)


@dataclass(eq=False)
class NamedHttpError(Exception):
    """Base class for namedhttp exceptions with a canonical error shape."""

    code: int
    message: str
    data: Any | None = None
    cause: Exception | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", (self.message,))
        if self.cause is not None:
            object.__setattr__(self, "__cause__", self.cause)
            object.__setattr__(self, "__suppress_context__", True)
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in _EXCEPTION_STATE and getattr(self, "_sealed", False):
            raise FrozenInstanceError(f"cannot assign to field {name!r}")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if name not in _EXCEPTION_STATE and getattr(self, "_sealed", False):
            raise FrozenInstanceError(f"cannot delete field {name!r}")
        super().__delattr__(name)

    def to_error_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": self.data}


@dataclass(eq=False)
class DuplicateRegistrationError(NamedHttpError):
    """Raised when two handler registrations share a name."""

    code: int = 1001
    message: str = "Duplicate handler registration"


@dataclass(eq=False)
class InvalidRegistrationError(NamedHttpError):
    """Raised when a handler registration is incomplete or made after the registry is built."""

    code: int = 1002
    message: str = "Invalid handler registration"


@dataclass(eq=False)
class UnknownHandlerError(NamedHttpError):
    """Raised when a client refers to a handler name that has no registration."""

    code: int = 2001
    message: str = "Unknown handler"


@dataclass(eq=False)
class FactoryInvocationError(NamedHttpError):
    """Raised when a handler factory fails to produce a handler."""

    code: int = 2002
    message: str = "Handler factory failed"


@dataclass(eq=False)
class OptionsConfigurationError(NamedHttpError):
    """Raised when a configuration callback fails for a named options entry."""

    code: int = 3001
    message: str = "Options configuration failed"


@dataclass(eq=False)
class ConfigurationError(NamedHttpError):
    """Raised when configuration cannot be loaded or bound."""

    code: int = 3002
    message: str = "Configuration error"


@dataclass(eq=False)
class PipelineAssemblyError(NamedHttpError):
    """Raised when the handler pipeline for a client name cannot be assembled."""

    code: int = 4001
    message: str = "Pipeline assembly failed"


@dataclass(eq=False)
class ResponseTooLargeError(NamedHttpError):
    """Raised when a response body exceeds the client's buffer limit."""

    code: int = 5001
    message: str = "Response content too large"
