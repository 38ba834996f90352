from __future__ import annotations

import argparse
import importlib
import logging
import sys
from collections.abc import Callable, Sequence

from namedhttp.observability.logging import (
    LEVEL_NAME_TO_INT,
    LOG_FORMAT_CONSOLE,
    LOG_FORMAT_JSON,
    get_logger,
)

SubparsersAction = argparse._SubParsersAction
CommandRegistrar = Callable[[SubparsersAction], None]

_COMMAND_MODULES: dict[str, str] = {
    "describe": "namedhttp.cli.commands.describe",
    "version": "namedhttp.cli.commands.version",
}


def _load_registrar(module_path: str) -> CommandRegistrar:
    module = importlib.import_module(module_path)
    registrar = getattr(module, "register_parser", None)
    if not callable(registrar):
        raise ValueError(
            f"Command module '{module_path}' must expose a callable 'register_parser'"
        )
    return registrar


def _resolve_level(args: argparse.Namespace) -> int:
    if getattr(args, "verbose", False):
        return logging.DEBUG
    if getattr(args, "quiet", False):
        return logging.WARNING
    return LEVEL_NAME_TO_INT[getattr(args, "log_level", None) or "INFO"]


def _configure_logging(args: argparse.Namespace) -> logging.Logger:
    """Send package logs to stderr so command output on stdout stays parseable."""
    level = _resolve_level(args)
    logger = get_logger(
        "namedhttp",
        log_format=getattr(args, "log_format", None),
        level=level,
        stream=sys.stderr,
    )
    logger.setLevel(level)
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="namedhttp", description="Inspect named http client configuration"
    )

    log_group = parser.add_mutually_exclusive_group()
    log_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Shorthand for --log-level DEBUG.",
    )
    log_group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Shorthand for --log-level WARNING.",
    )
    log_group.add_argument(
        "--log-level",
        choices=sorted(LEVEL_NAME_TO_INT, key=LEVEL_NAME_TO_INT.__getitem__),
        type=str.upper,
        help="Minimum level of package log records (default: INFO).",
    )
    parser.add_argument(
        "--log-format",
        choices=[LOG_FORMAT_JSON, LOG_FORMAT_CONSOLE],
        help="Log record format; defaults to $NAMEDHTTP_LOG_FORMAT, then json.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module_path in _COMMAND_MODULES.values():
        _load_registrar(module_path)(subparsers)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)
    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


__all__ = ["build_parser", "main"]
