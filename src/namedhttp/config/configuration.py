from __future__ import annotations

import os
import re
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from namedhttp.exceptions import ConfigurationError

SECTION_DELIMITER = ":"

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*?))?\}")
_MISSING = object()


def _split_path(path: str) -> list[str]:
    return [part for part in path.split(SECTION_DELIMITER) if part != ""]


def _lookup(node: Any, key: str) -> Any:
    if isinstance(node, Mapping):
        if key in node:
            return node[key]
        folded = key.casefold()
        for candidate, value in node.items():
            if str(candidate).casefold() == folded:
                return value
        return _MISSING
    if isinstance(node, (list, tuple)) and key.isdigit():
        index = int(key)
        if index < len(node):
            return node[index]
    return _MISSING


class ConfigurationSection:
    """A view onto one node of a hierarchical configuration tree.

    Keys are matched case-insensitively. A section exists when its node is
    present and is either a scalar or a non-empty container.
    """

    def __init__(self, path: str, node: Any = _MISSING) -> None:
        self._path = path
        self._node = node

    @property
    def path(self) -> str:
        return self._path

    @property
    def key(self) -> str:
        parts = _split_path(self._path)
        return parts[-1] if parts else ""

    @property
    def value(self) -> Any:
        """The scalar value at this node, or None for containers and missing nodes."""
        if self._node is _MISSING or isinstance(self._node, (Mapping, list, tuple)):
            return None
        return self._node

    def exists(self) -> bool:
        if self._node is _MISSING or self._node is None:
            return False
        if isinstance(self._node, (Mapping, list, tuple)):
            return len(self._node) > 0
        return True

    def get_section(self, path: str) -> ConfigurationSection:
        node = self._node
        for part in _split_path(path):
            if node is _MISSING:
                break
            node = _lookup(node, part)
        full_path = SECTION_DELIMITER.join(p for p in (self._path, path) if p)
        return ConfigurationSection(full_path, node)

    def get(self, path: str, default: Any = None) -> Any:
        section = self.get_section(path)
        if not section.exists():
            return default
        if section.value is not None:
            return section.value
        return section.to_dict()

    def children(self) -> Iterator[ConfigurationSection]:
        if isinstance(self._node, Mapping):
            for key in self._node:
                yield self.get_section(str(key))
        elif isinstance(self._node, (list, tuple)):
            for index in range(len(self._node)):
                yield self.get_section(str(index))

    def to_dict(self) -> Any:
        """Return a plain copy of the subtree rooted at this section."""
        if self._node is _MISSING:
            return {}
        return _plain(self._node)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self._path!r}, exists={self.exists()})"


class Configuration(ConfigurationSection):
    """Read-only hierarchical configuration addressed with ``:`` separated paths."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        super().__init__("", dict(data or {}))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *overlays: Mapping[str, Any]) -> Configuration:
        merged = _normalize(data)
        for overlay in overlays:
            merged = _merge_mapping(merged, _normalize(overlay))
        return cls(merged)

    @classmethod
    def from_yaml(cls, path: str | Path, *overlay_paths: str | Path) -> Configuration:
        """Load a YAML file and apply any overlay files on top of it."""
        merged = _load_yaml_mapping(path)
        for overlay in overlay_paths:
            merged = _merge_mapping(merged, _load_yaml_mapping(overlay))
        return cls(merged)

    @classmethod
    def from_env(
        cls,
        prefix: str = "",
        environ: Mapping[str, str] | None = None,
    ) -> Configuration:
        """Build configuration from environment variables.

        ``HttpClient__foo__Timeout=30`` maps to ``HttpClient:foo:Timeout``.
        When ``prefix`` is given only variables starting with it are read and
        the prefix is stripped.
        """
        source = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for name, value in source.items():
            if prefix:
                if not name.startswith(prefix):
                    continue
                name = name[len(prefix):]
            parts = [part for part in name.split("__") if part]
            if not parts:
                continue
            node = data
            for part in parts[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            node[parts[-1]] = value
        return cls(_normalize(data))

    def merged_with(self, *others: Configuration) -> Configuration:
        merged = self.to_dict()
        for other in others:
            merged = _merge_mapping(merged, other.to_dict())
        return Configuration(merged)


def _plain(node: Any) -> Any:
    if isinstance(node, Mapping):
        return {str(key): _plain(value) for key, value in node.items()}
    if isinstance(node, (list, tuple)):
        return [_plain(item) for item in node]
    return node


def _normalize(value: Any) -> Any:
    # Mappings keyed 0..n-1 become lists, matching env-style array entries.
    if isinstance(value, Mapping):
        normalized = {str(key): _normalize(val) for key, val in value.items()}
        keys = list(normalized)
        if keys and all(key.isdigit() for key in keys):
            indices = sorted(int(key) for key in keys)
            if indices == list(range(len(indices))):
                return [normalized[str(index)] for index in indices]
        return normalized
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


def _merge_mapping(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        existing_key = next((k for k in merged if k.casefold() == key.casefold()), key)
        if (
            existing_key in merged
            and isinstance(merged[existing_key], Mapping)
            and isinstance(value, Mapping)
        ):
            merged[existing_key] = _merge_mapping(merged[existing_key], value)
        else:
            merged[existing_key] = value
    return merged


def _load_yaml_mapping(path: str | Path) -> dict[str, Any]:
    config_path = Path(path).expanduser()
    if config_path.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigurationError(message=f"Unsupported config file type: {config_path.suffix}")
    if not config_path.is_file():
        raise ConfigurationError(message=f"Config file not found: {config_path}")
    try:
        content = config_path.read_text(encoding="utf-8")
        data = _parse_yaml_with_env(content)
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(message=f"Failed to load config file: {config_path}", cause=exc) from exc
    return _normalize(data)


def _parse_yaml_with_env(content: str) -> Mapping[str, Any]:
    yaml = _get_yaml_module()
    parsed = yaml.safe_load(content) or {}
    if not isinstance(parsed, Mapping):
        raise ConfigurationError(message="Config file must parse to a mapping")
    return _expand_env_in_data(parsed)


def _expand_env_in_data(value: Any) -> Any:
    if isinstance(value, str):
        return _expand_env_value(value)
    if isinstance(value, Mapping):
        return {key: _expand_env_in_data(val) for key, val in value.items()}
    if isinstance(value, list):
        return [_expand_env_in_data(item) for item in value]
    return value


def _expand_env_value(value: str) -> str:
    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        default = match.group(2)
        env_value = os.getenv(name)
        if env_value is None or env_value == "":
            if default is None:
                raise ConfigurationError(
                    message=f"Environment variable '{name}' is not set and no default provided"
                )
            return default
        return env_value

    return _ENV_PATTERN.sub(replace, value)


def _get_yaml_module() -> Any:
    try:
        import yaml
    except ImportError as exc:  # pragma: no cover - dependency error
        raise ConfigurationError(message="PyYAML is required to parse YAML config files.", cause=exc) from exc
    return yaml
