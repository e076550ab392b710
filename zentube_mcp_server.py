"""ZenTube MCP Server — cached YouTube search with search history."""

from __future__ import annotations

import dataclasses
import json
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP

from app import App, create_app
from health import check_health
from history import HistoryError
from validators import InvalidQueryError, validate_limit, validate_search_query
from youtube import SearchError

MAX_HISTORY_LIMIT = 100

_app: Optional[App] = None


def _get_app() -> App:
    global _app
    if _app is None:
        _app = create_app()
    return _app


async def _shutdown() -> None:
    """Close the app if one was built: drain history writes, stop the sweeper, close the database."""
    global _app
    app, _app = _app, None
    if app is not None:
        await app.aclose()


@asynccontextmanager
async def _lifespan(server: FastMCP) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await _shutdown()


mcp = FastMCP("zentube", lifespan=_lifespan)


@mcp.tool()
async def search_videos(query: str, max_results: int = 0) -> str:
    """Search YouTube videos by keyword. Repeated searches are served from cache.

    Args:
        query: Search query string (max 200 characters).
        max_results: Number of results to return (1-50). 0 uses the configured default.

    Returns:
        JSON string with a list of search results or error details.
        Each result includes video_id, title, url, channel, published_at, etc.
    """
    try:
        app = _get_app()
        if max_results == 0:
            max_results = app.settings.max_results
        query, max_results = validate_search_query(query, max_results)
        results = await app.search.execute(query, max_results)
        data = [v.to_dict() for v in results]
        return json.dumps(data, ensure_ascii=False, indent=2)
    except InvalidQueryError as exc:
        return json.dumps({"error": "InvalidQuery", "message": str(exc)})
    except SearchError as exc:
        return json.dumps({"error": "SearchError", "message": str(exc)})
    except Exception as exc:
        return json.dumps({"error": "UnexpectedError", "message": str(exc)})


@mcp.tool()
async def recent_searches(limit: int = 10) -> str:
    """List the most recent searches, newest first.

    Args:
        limit: Number of entries to return (1-100, default 10).

    Returns:
        JSON string with query, result count and timestamp per search.
    """
    try:
        limit = validate_limit(limit, default=10, maximum=MAX_HISTORY_LIMIT)
        records = await _get_app().store.get_last(limit)
        return json.dumps([r.to_dict() for r in records], ensure_ascii=False, indent=2)
    except InvalidQueryError as exc:
        return json.dumps({"error": "InvalidQuery", "message": str(exc)})
    except HistoryError as exc:
        return json.dumps({"error": "HistoryError", "message": str(exc)})
    except Exception as exc:
        return json.dumps({"error": "UnexpectedError", "message": str(exc)})


@mcp.tool()
async def cache_stats() -> str:
    """Report search cache size, limits, and entry ages in seconds.

    Returns:
        JSON string with cache statistics.
    """
    try:
        stats = _get_app().search.cache.get_stats()
        return json.dumps(stats.to_dict(), indent=2)
    except Exception as exc:
        return json.dumps({"error": "UnexpectedError", "message": str(exc)})


@mcp.tool()
async def health_check() -> str:
    """Check ZenTube health (yt-dlp availability, history database).

    Returns:
        JSON string with health status details.
    """
    try:
        status = check_health(_get_app().store)
    except Exception as exc:
        status = check_health(database_error=str(exc))
    return json.dumps(dataclasses.asdict(status), ensure_ascii=False, indent=2)


def run() -> None:
    mcp.run()


if __name__ == "__main__":
    run()
