"""Wires settings, cache, history store and search client together."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cache import TTLCache
from config import Settings, load_settings
from history import SQLiteHistoryStore
from logs import set_level
from search import VideoSearch
from youtube import YouTubeSearchClient


@dataclass
class App:
    settings: Settings
    store: SQLiteHistoryStore
    search: VideoSearch

    async def aclose(self) -> None:
        await self.search.aclose()
        self.store.close()


def create_app(settings: Optional[Settings] = None) -> App:
    """Build the application graph. Raises ConfigError / HistoryError on bad setup."""
    settings = settings or load_settings()
    set_level(settings.log_level)
    store = SQLiteHistoryStore(settings.db_path)
    cache = TTLCache(max_entries=settings.cache_max_entries, default_ttl=settings.cache_ttl)
    search = VideoSearch(
        client=YouTubeSearchClient(),
        history=store,
        cache=cache,
        history_timeout=settings.history_timeout,
    )
    return App(settings=settings, store=store, search=search)
