"""CLI entry point for ZenTube."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from app import create_app
from config import ConfigError
from history import HistoryError
from validators import InvalidQueryError, validate_limit, validate_search_query
from youtube import SearchError


async def _search(query: str, max_results: int) -> int:
    app = create_app()
    try:
        query, max_results = validate_search_query(query, max_results or app.settings.max_results)
        videos = await app.search.execute(query, max_results)
    finally:
        await app.aclose()
    print(json.dumps([v.to_dict() for v in videos], ensure_ascii=False, indent=2))
    return 0


async def _history(limit: int) -> int:
    app = create_app()
    try:
        records = await app.store.get_last(validate_limit(limit, default=10, maximum=100))
    finally:
        await app.aclose()
    for record in records:
        print(f"{record.created_at:%Y-%m-%d %H:%M:%S}  {record.results:>3}  {record.query}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="zentube", description="Cached YouTube search")
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="search YouTube")
    p_search.add_argument("query", help="search terms")
    p_search.add_argument("-n", "--max-results", type=int, default=0, help="results to return (1-50)")

    p_history = sub.add_parser("history", help="show recent searches")
    p_history.add_argument("-n", "--limit", type=int, default=10, help="entries to show (1-100)")

    sub.add_parser("serve", help="run the MCP server on stdio")

    args = parser.parse_args(argv)

    try:
        if args.command == "search":
            return asyncio.run(_search(args.query, args.max_results))
        if args.command == "history":
            return asyncio.run(_history(args.limit))
        from zentube_mcp_server import run

        run()
        return 0
    except (ConfigError, InvalidQueryError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (SearchError, HistoryError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
