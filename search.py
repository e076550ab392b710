"""Cached video search with fire-and-forget history logging."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Protocol

from cache import TTLCache, make_key
from logs import get_logger
from models import SearchHistory, Video

HISTORY_SAVE_TIMEOUT_SECONDS = 3.0
_KEY_NAMESPACE = "search"

logger = get_logger(__name__)


class SearchClient(Protocol):
    def search(self, query: str, max_results: int) -> list[Video]: ...


class HistoryStore(Protocol):
    async def save(self, record: SearchHistory) -> object: ...


class VideoSearch:
    """Look up videos through the cache, falling back to the upstream client.

    Concurrent misses for the same query are not coalesced: each calls the
    client and the last one to store wins.
    """

    def __init__(
        self,
        client: SearchClient,
        history: HistoryStore,
        cache: TTLCache,
        history_timeout: float = HISTORY_SAVE_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._history = history
        self._cache = cache
        self._history_timeout = history_timeout
        self._pending: set[asyncio.Task] = set()

    @property
    def cache(self) -> TTLCache:
        return self._cache

    async def execute(self, query: str, max_results: int) -> list[Video]:
        """Return search results for *query*, serving repeats from the cache.

        Errors from the upstream client propagate unchanged and leave the
        cache untouched. The history write runs in a detached task and never
        delays or fails the result.

        Args:
            query: Search query string.
            max_results: Number of results to request upstream.

        Returns:
            List of Video objects.
        """
        cache_key = make_key(_KEY_NAMESPACE, query, max_results)
        cached, found = self._cache.get(cache_key)
        if found:
            logger.debug("cache hit for %r (max_results=%d)", query, max_results)
            return list(cached)

        logger.debug("cache miss for %r (max_results=%d)", query, max_results)
        videos = await asyncio.to_thread(self._client.search, query, max_results)
        self._cache.set(cache_key, tuple(videos))

        record = SearchHistory(
            query=query,
            results=len(videos),
            created_at=datetime.now(timezone.utc),
        )
        task = asyncio.create_task(self._save_history(record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        return list(videos)

    async def _save_history(self, record: SearchHistory) -> None:
        try:
            await asyncio.wait_for(self._history.save(record), self._history_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "search history save timed out after %.1fs for %r",
                self._history_timeout,
                record.query,
            )
        except Exception:
            logger.warning("search history save failed for %r", record.query, exc_info=True)

    async def drain(self) -> None:
        """Wait for every in-flight history write to finish."""
        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending, return_exceptions=True)
            self._pending.difference_update(pending)

    async def aclose(self) -> None:
        """Finish pending history writes and stop the cache sweeper."""
        await self.drain()
        self._cache.close()
