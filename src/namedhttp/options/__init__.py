from .resolver import DEFAULT_NAME, ConfigureCallback, NamedOptionsResolver

__all__ = [
    "DEFAULT_NAME",
    "ConfigureCallback",
    "NamedOptionsResolver",
]
