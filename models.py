"""Immutable data structures for search results and search history."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Video:
    """Single video search result."""

    video_id: str
    title: str
    url: str
    channel: Optional[str] = None
    published_at: Optional[datetime] = None
    thumbnail_url: Optional[str] = None
    duration_seconds: Optional[int] = None
    view_count: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to plain dictionary with an ISO-8601 ``published_at``."""
        data = dataclasses.asdict(self)
        if self.published_at is not None:
            data["published_at"] = self.published_at.isoformat()
        return data


@dataclass(frozen=True)
class SearchHistory:
    """One logged search: the query, how many results it returned, and when."""

    query: str
    results: int
    created_at: datetime
    id: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to plain dictionary."""
        data = dataclasses.asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data
