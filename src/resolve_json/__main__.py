"""Command-line harness for resolve-json.

Usage:
    python -m resolve_json DOCUMENT [--var NAME=VALUE ...] [--at PATH] [--fetch]

Loads a JSON or YAML document, resolves it and prints the plain projection
as JSON on stdout. Pending values print as null. Logs go to stderr, with the
level taken from RESOLVE_JSON_LOG_LEVEL.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from .api import resolve, resolve_async, resolve_at, resolve_at_async
from .engine.exceptions import ResolverError
from .engine.fetch import HttpResourceFetcher
from .engine.loader import load_document_from_file, parse_variables
from .engine.projection import to_plain_object
from .engine.sentinel import UNRESOLVED
from .settings import VALID_LOG_LEVELS, ResolverSettings

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure stderr logging from RESOLVE_JSON_LOG_LEVEL."""
    log_level_str = os.getenv("RESOLVE_JSON_LOG_LEVEL", "INFO").upper()

    if log_level_str not in VALID_LOG_LEVELS:
        print(
            f"Warning: Invalid RESOLVE_JSON_LOG_LEVEL '{log_level_str}'. "
            f"Valid levels: {', '.join(sorted(VALID_LOG_LEVELS))}. "
            "Using INFO.",
            file=sys.stderr,
        )
        log_level_str = "INFO"

    logging.basicConfig(
        level=getattr(logging, log_level_str),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resolve-json",
        description="Resolve references, variables and transforms in a JSON or YAML document.",
    )
    parser.add_argument("document", help="Path to a .json, .yaml or .yml document")
    parser.add_argument(
        "--var",
        dest="variables",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Bind a variable; VALUE is parsed as JSON, else kept as a string (repeatable)",
    )
    parser.add_argument(
        "--at",
        dest="path",
        default=None,
        metavar="PATH",
        help="Only resolve and print the location at PATH (e.g. users/0/name)",
    )
    parser.add_argument(
        "--fetch",
        action="store_true",
        help="Resolve asynchronously, fetching resources over HTTP",
    )
    parser.add_argument(
        "--debug-scope",
        default=None,
        metavar="PATH",
        help="Log resolution of locations under PATH at DEBUG level",
    )
    return parser


def _to_json_value(value: Any) -> Any:
    value = to_plain_object(value)
    if value is UNRESOLVED:
        return None
    if isinstance(value, dict):
        return {key: _to_json_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_json_value(item) for item in value]
    return value


def _split_path(path: str | None) -> list[str] | None:
    if path is None:
        return None
    return [segment for segment in path.split("/") if segment]


async def _resolve_with_fetch(
    document: Any,
    variables: dict[str, Any],
    path: list[str] | None,
    debug_scope: list[str] | None,
    settings: ResolverSettings,
) -> Any:
    fetcher = HttpResourceFetcher(settings=settings)
    if path is not None:
        return await resolve_at_async(
            document,
            path,
            variables=variables,
            fetch_resource=fetcher,
            debug_scope=debug_scope,
            settings=settings,
        )
    return await resolve_async(
        document,
        variables=variables,
        fetch_resource=fetcher,
        debug_scope=debug_scope,
        settings=settings,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the harness and return the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging()
    settings = ResolverSettings.from_env()

    load_result = load_document_from_file(args.document)
    if load_result.is_failure:
        logger.error(load_result.error)
        return 1

    variables_result = parse_variables(args.variables)
    if variables_result.is_failure:
        logger.error(variables_result.error)
        return 1

    document = load_result.value
    variables = variables_result.unwrap()
    path = _split_path(args.path)
    debug_scope = _split_path(args.debug_scope)

    try:
        if args.fetch:
            result = asyncio.run(_resolve_with_fetch(document, variables, path, debug_scope, settings))
        elif path is not None:
            result = resolve_at(document, path, variables, debug_scope=debug_scope, settings=settings)
        else:
            result = resolve(document, variables, debug_scope=debug_scope, settings=settings)
    except ResolverError as e:
        logger.error(f"Resolution failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error during resolution: {e}", exc_info=True)
        return 1

    print(json.dumps(_to_json_value(result), indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
