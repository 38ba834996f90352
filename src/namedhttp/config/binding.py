from __future__ import annotations

import dataclasses
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from namedhttp.config.configuration import ConfigurationSection
from namedhttp.exceptions import ConfigurationError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _fold(key: str) -> str:
    return key.replace("_", "").replace("-", "").casefold()


def _bindable_fields(options: Any) -> dict[str, tuple[str, str]]:
    """Map folded config keys to (attribute name, validation key) pairs."""
    fields: dict[str, tuple[str, str]] = {}
    if isinstance(options, BaseModel):
        for name, info in type(options).model_fields.items():
            key = info.alias or name
            fields[_fold(name)] = (name, key)
            fields[_fold(key)] = (name, key)
        return fields
    if dataclasses.is_dataclass(options) and not isinstance(options, type):
        for field in dataclasses.fields(options):
            fields[_fold(field.name)] = (field.name, field.name)
        return fields
    raise ConfigurationError(
        message=f"Cannot bind configuration onto {type(options).__name__}; expected a pydantic model or dataclass",
    )


def bind(section: ConfigurationSection, options: T) -> T:
    """Bind the values of ``section`` onto ``options`` in place.

    Keys are matched to fields case-insensitively, ignoring ``_`` and ``-``,
    so ``BaseAddress``, ``base_address`` and ``base-address`` all bind the same
    field. Unknown keys are ignored. Values are coerced by pydantic; the whole
    section is validated before any field is assigned.
    """
    data = section.to_dict()
    if not isinstance(data, dict) or not data:
        return options

    fields = _bindable_fields(options)
    updates: dict[str, tuple[str, Any]] = {}
    for raw_key, raw_value in data.items():
        target = fields.get(_fold(raw_key))
        if target is None:
            logger.debug("Ignoring unknown key %s in section %s", raw_key, section.path)
            continue
        name, key = target
        updates[name] = (key, raw_value)
    if not updates:
        return options

    current = {key: getattr(options, name) for name, key in set(fields.values())}
    for name, (key, raw_value) in updates.items():
        current[key] = raw_value
    try:
        if isinstance(options, BaseModel):
            validated = type(options).model_validate(current)
        else:
            validated = TypeAdapter(type(options)).validate_python(current)
    except ValidationError as exc:
        raise ConfigurationError(
            message=f"Invalid configuration in section {section.path}: {exc.error_count()} error(s)",
            data={"section": section.path, "errors": exc.errors(include_url=False)},
            cause=exc,
        ) from exc

    for name in updates:
        setattr(options, name, getattr(validated, name))
    return options
