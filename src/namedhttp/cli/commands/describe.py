"""Describe how a client name resolves against a configuration file."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Final

from namedhttp.client.options import ClientOptions
from namedhttp.config.binder import ConfigSectionFallbackBinder
from namedhttp.config.configuration import Configuration
from namedhttp.exceptions import NamedHttpError
from namedhttp.options.resolver import NamedOptionsResolver
from namedhttp.services import client_options_from_configuration

__all__ = ["register_parser", "run"]

EXIT_SUCCESS: Final = 0
EXIT_ERROR: Final = 1


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "describe",
        help="Show the resolved options for a client name.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  namedhttp describe config.yaml foo-v1
  namedhttp describe config.yaml foo-v1 --section Status --no-fallback
        """,
    )
    parser.add_argument("config_file", type=Path, help="YAML configuration file.")
    parser.add_argument("client_name", help="Client name to resolve.")
    parser.add_argument(
        "--section",
        action="append",
        default=[],
        help="Handler options section to locate (repeatable).",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Do not consider the shared HttpClient:Handlers section.",
    )
    parser.set_defaults(handler=run)


def _locate(configuration: Configuration, client_name: str, section_name: str, allow_fallback: bool) -> dict[str, Any]:
    section = ConfigSectionFallbackBinder(configuration, section_name, allow_fallback).locate(client_name)
    if section is None:
        return {"section": section_name, "path": None, "values": None}
    return {"section": section_name, "path": section.path, "values": section.to_dict()}


def run(args: argparse.Namespace) -> int:
    try:
        configuration = Configuration.from_yaml(args.config_file)
        resolver = NamedOptionsResolver()
        resolver.configure(ClientOptions, client_options_from_configuration(configuration))
        options = resolver.get(ClientOptions, args.client_name)
    except NamedHttpError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return EXIT_ERROR

    report = {
        "client_name": args.client_name,
        "options": options.model_dump(by_alias=True),
        "handler_sections": [
            _locate(configuration, args.client_name, section, not args.no_fallback)
            for section in args.section
        ],
    }
    print(json.dumps(report, indent=2, default=str))
    return EXIT_SUCCESS
