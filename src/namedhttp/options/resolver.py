"""Configure-on-demand named options.

Options objects are created and configured the first time a (kind, name)
pair is requested and cached for the life of the resolver::

    resolver = NamedOptionsResolver()
    resolver.configure(ClientOptions, lambda name, o: o.handlers.append("status"))
    options = resolver.get(ClientOptions, "foo-v1")
    assert resolver.get(ClientOptions, "foo-v1") is options
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from namedhttp.exceptions import OptionsConfigurationError

T = TypeVar("T")

DEFAULT_NAME = ""

ConfigureCallback = Callable[[str, Any], Any]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    value: Any = None
    resolved: bool = False


class NamedOptionsResolver:
    """Memoizing resolver for named options of any kind.

    For each (kind, name) the registered callbacks run at most once, in
    registration order, against a fresh ``kind()`` instance. Concurrent first
    requests for the same key wait on a per-key lock; requests for other keys
    proceed independently. A failed attempt is not cached.
    """

    def __init__(self) -> None:
        self._callbacks: dict[type, list[ConfigureCallback]] = {}
        self._factories: dict[type, Callable[[], Any]] = {}
        self._entries: dict[tuple[type, str], _Entry] = {}
        self._guard = threading.Lock()

    def configure(self, kind: type[T], callback: Callable[[str, T], Any]) -> NamedOptionsResolver:
        """Add a callback applied to every name resolved for ``kind``."""
        with self._guard:
            self._callbacks.setdefault(kind, []).append(callback)
        return self

    def configure_named(self, kind: type[T], name: str, callback: Callable[[T], Any]) -> NamedOptionsResolver:
        """Add a callback applied only when ``name`` is resolved for ``kind``."""
        target = _normalize_name(name)

        def _configure(resolved_name: str, options: T) -> None:
            if resolved_name == target:
                callback(options)

        return self.configure(kind, _configure)

    def set_factory(self, kind: type[T], factory: Callable[[], T]) -> NamedOptionsResolver:
        """Override how the default ``kind`` instance is created."""
        with self._guard:
            self._factories[kind] = factory
        return self

    def get(self, kind: type[T], name: str | None = DEFAULT_NAME) -> T:
        key = (kind, _normalize_name(name))
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
        if entry.resolved:
            return entry.value
        with entry.lock:
            if not entry.resolved:
                entry.value = self._create(kind, key[1])
                entry.resolved = True
            return entry.value

    def is_resolved(self, kind: type, name: str | None = DEFAULT_NAME) -> bool:
        with self._guard:
            entry = self._entries.get((kind, _normalize_name(name)))
        return entry is not None and entry.resolved

    def invalidate(self, kind: type, name: str | None = None) -> None:
        """Forget cached options for one name of ``kind``, or for all of its names."""
        with self._guard:
            if name is not None:
                self._entries.pop((kind, _normalize_name(name)), None)
                return
            for key in [key for key in self._entries if key[0] is kind]:
                del self._entries[key]

    def _create(self, kind: type[T], name: str) -> T:
        with self._guard:
            callbacks = list(self._callbacks.get(kind, ()))
            factory = self._factories.get(kind, kind)
        try:
            options = factory()
            for callback in callbacks:
                callback(name, options)
        except Exception as exc:
            logger.warning("Configuring %s for name %r failed: %s", kind.__name__, name, exc)
            raise OptionsConfigurationError(
                message=f"Failed to configure {kind.__name__} for name {name!r}: {exc}",
                data={"kind": kind.__name__, "name": name},
                cause=exc,
            ) from exc
        logger.debug("Configured %s for name %r with %d callback(s)", kind.__name__, name, len(callbacks))
        return options


def _normalize_name(name: str | None) -> str:
    return DEFAULT_NAME if name is None else name
