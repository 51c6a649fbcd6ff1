"""Command line entry point: run one search and print the template variables."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
from typing import Any

import orjson
from pydantic import ValidationError

from search_results.config import Settings
from search_results.observability.logging import configure_logging
from search_results.search.index import IndexUnavailable
from search_results.service_layer.search_service import InvalidDocumentPath, SearchService


logger = logging.getLogger(__name__)


def _parse_param(value: str) -> tuple[str, str]:
    name, sep, param_value = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {value!r}")
    return name.strip(), param_value


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search an index and print the results page variables as JSON",
    )
    parser.add_argument("keywords", nargs="?", help="Keyword query; omit to print the empty search form")
    parser.add_argument(
        "--index",
        type=Path,
        help="Index file (defaults to SEARCH_INDEX)",
    )
    parser.add_argument("--page", type=int, default=1, help="Results page to show (1-based)")
    parser.add_argument("--per-page", type=int, help="Hits per page; 0 shows every hit")
    parser.add_argument(
        "--param",
        action="append",
        type=_parse_param,
        default=[],
        metavar="NAME=VALUE",
        help="Request parameter for extra properties and ranges (repeatable)",
    )
    parser.add_argument(
        "--highlight",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Highlight query terms in descriptions",
    )
    parser.add_argument(
        "--context",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show the part of each description around the matched terms",
    )
    parser.add_argument(
        "--local-page",
        metavar="PATH",
        help="Print the document at PATH under DOCUMENT_ROOT with the keywords highlighted",
    )
    parser.add_argument("--log-level", help="Logging level (defaults to LOG_LEVEL)")
    return parser


def _settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.index is not None:
        overrides["search_index"] = args.index
    if args.per_page is not None:
        overrides["per_page"] = args.per_page
    if args.highlight is not None:
        overrides["highlight"] = args.highlight
    if args.context is not None:
        overrides["description_context"] = args.context
    if args.log_level:
        overrides["log_level"] = args.log_level
    return overrides


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    if args.page < 1:
        parser.error("--page must be >= 1")

    try:
        settings = Settings(**_settings_overrides(args))
    except ValidationError as exc:
        parser.error(str(exc))

    configure_logging(settings.log_level, settings.log_json)

    service = SearchService(settings)
    try:
        if args.local_page:
            sys.stdout.write(service.highlight_local_page(args.keywords, args.local_page))
            return 0
        page = service.perform_search(args.keywords, page=args.page, params=dict(args.param))
    except IndexUnavailable as exc:
        logger.error("%s", exc)
        return 1
    except (InvalidDocumentPath, FileNotFoundError) as exc:
        logger.error("Cannot highlight local page: %s", exc)
        return 1
    finally:
        service.close()

    sys.stdout.write(orjson.dumps(page.to_template_vars(), option=orjson.OPT_INDENT_2).decode("utf-8"))
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
