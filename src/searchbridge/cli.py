"""CLI entry point for searchbridge."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from searchbridge.config.settings import Settings
from searchbridge.core.exceptions import SearchBridgeError
from searchbridge.core.registry import raw_descriptor
from searchbridge.core.template import SearchTemplate
from searchbridge.models.query import GetQuery, NativeQuery, Pageable
from searchbridge.observability.logging import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="searchbridge",
        description="searchbridge — Query and manage an Elasticsearch index",
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument("--url", type=str, default=None, help="Search engine URL (overrides config)")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument("--version", action="version", version=f"searchbridge {_get_version()}")

    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Run a search and print one page of hits")
    search.add_argument("index", help="Index name")
    search.add_argument("--type", dest="type_name", default=None, help="Document type")
    search.add_argument("--query", "-q", default=None, help="Query DSL as JSON, match_all when omitted")
    search.add_argument("--page", type=int, default=0, help="Zero-based page number")
    search.add_argument("--size", type=int, default=10, help="Page size")

    count = sub.add_parser("count", help="Count matching documents")
    count.add_argument("index", help="Index name")
    count.add_argument("--type", dest="type_name", default=None, help="Document type")
    count.add_argument("--query", "-q", default=None, help="Query DSL as JSON, match_all when omitted")

    get = sub.add_parser("get", help="Fetch one document by id")
    get.add_argument("index", help="Index name")
    get.add_argument("id", help="Document id")
    get.add_argument("--type", dest="type_name", default=None, help="Document type")

    scroll = sub.add_parser("scroll", help="Print every matching document, one JSON line each")
    scroll.add_argument("index", help="Index name")
    scroll.add_argument("--type", dest="type_name", default=None, help="Document type")
    scroll.add_argument("--query", "-q", default=None, help="Query DSL as JSON, match_all when omitted")
    scroll.add_argument("--size", type=int, default=100, help="Scroll page size")

    create = sub.add_parser("create-index", help="Create an index")
    create.add_argument("index", help="Index name")
    create.add_argument("--settings", default=None, help="Index settings as JSON")

    delete = sub.add_parser("delete-index", help="Delete an index if it exists")
    delete.add_argument("index", help="Index name")

    return parser


def _native_query(args: argparse.Namespace, pageable: Pageable) -> NativeQuery:
    query = json.loads(args.query) if args.query else None
    return NativeQuery(
        query=query,
        indices=[args.index],
        types=[args.type_name] if args.type_name else [],
        pageable=pageable,
    )


def _print(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, default=str))


def run(args: argparse.Namespace, template: SearchTemplate) -> int:
    """Execute one parsed command and return the exit code."""
    if args.command == "search":
        page = template.query_for_page(_native_query(args, Pageable.of(args.page, args.size)), args.index)
        _print({"total": page.total, "page": page.number, "has_next": page.has_next(), "hits": page.content})
    elif args.command == "count":
        _print({"count": template.count(_native_query(args, Pageable()), args.index)})
    elif args.command == "get":
        doc = template.get(GetQuery(id=args.id), raw_descriptor(args.index, args.type_name))
        if doc is None:
            print(f"Document not found: {args.index}/{args.id}", file=sys.stderr)
            return 1
        _print(doc)
    elif args.command == "scroll":
        with template.stream(_native_query(args, Pageable.of(0, args.size)), args.index) as docs:
            for doc in docs:
                _print(doc)
    elif args.command == "create-index":
        _print({"acknowledged": template.create_index(args.index, args.settings)})
    elif args.command == "delete-index":
        _print({"acknowledged": template.delete_index(args.index)})
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = _build_parser().parse_args(argv)

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    if args.url:
        settings.client.base_url = args.url.rstrip("/")
    if args.log_level:
        settings.observability.log_level = args.log_level

    setup_logging(settings.observability)

    try:
        with SearchTemplate.from_settings(settings) as template:
            code = run(args, template)
    except (SearchBridgeError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(code)


def _get_version() -> str:
    """Get the package version."""
    from searchbridge import __version__

    return __version__


if __name__ == "__main__":
    main()
