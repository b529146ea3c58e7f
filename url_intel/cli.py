#!/usr/bin/env python3
"""
url-intel - CLI entry point
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from .aggregator import Aggregator
from .config import Settings
from .errors import MalformedInput, StoreUnavailable
from .store import MongoRecordStore, RecordStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MALFORMED = 2
EXIT_STORE_UNAVAILABLE = 3


def _open_store(settings: Settings) -> RecordStore:
    return MongoRecordStore(
        settings.mongo_uri,
        settings.db_name,
        server_selection_timeout_ms=settings.store_timeout_ms,
    )


def _print_pretty(result: dict) -> None:
    print(f"{result['protocol']}//{result['host']}{result['pathname']}")
    errors = result.get("errors") or {}
    for key, value in result.items():
        if key in ("protocol", "host", "pathname", "errors"):
            continue
        if key in errors:
            status = f"ERROR ({errors[key]})"
        elif value is None:
            status = "-"
        else:
            status = json.dumps(value, default=str)
            if len(status) > 100:
                status = status[:97] + "..."
        print(f"  {key:<20} {status}")


def cmd_lookup(args: argparse.Namespace, settings: Settings) -> int:
    store = _open_store(settings)
    try:
        result = Aggregator.from_settings(store, settings).lookup(args.url)
    except MalformedInput as e:
        print(f"error: malformed URL {e.value!r} ({e.reason})", file=sys.stderr)
        return EXIT_MALFORMED
    except StoreUnavailable as e:
        print(f"error: record store unavailable ({e})", file=sys.stderr)
        return EXIT_STORE_UNAVAILABLE
    finally:
        store.close()

    out = result.to_dict()
    if args.json:
        print(json.dumps(out, indent=2, default=str))
    else:
        _print_pretty(out)
    return EXIT_OK


def cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    store = _open_store(settings)
    try:
        records = store.find_many(args.collection, {"$text": {"$search": args.text}}, limit=args.limit)
    except StoreUnavailable as e:
        print(f"error: record store unavailable ({e})", file=sys.stderr)
        return EXIT_STORE_UNAVAILABLE
    finally:
        store.close()

    if not records:
        print("No records found for the given query.")
        return EXIT_OK
    for record in records:
        print(json.dumps(record, default=str))
    return EXIT_OK


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from .api import create_app

    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="url-intel",
        description="Look up URLs in threat-intelligence collections and enrich their host",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_lookup = sub.add_parser("lookup", help="Look up a single URL")
    p_lookup.add_argument("url", help="URL, hostname or IP to look up")
    p_lookup.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    p_lookup.set_defaults(func=cmd_lookup)

    p_search = sub.add_parser("search", help="Full-text search in one collection")
    p_search.add_argument("collection", help="Collection name, e.g. phishtank")
    p_search.add_argument("text", help="Text to search for")
    p_search.add_argument("--limit", type=int, default=100, help="Maximum results (default: 100)")
    p_search.set_defaults(func=cmd_search)

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default="0.0.0.0")
    p_serve.add_argument("--port", type=int, default=8080)
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
