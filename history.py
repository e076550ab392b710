"""SQLite-backed search history store."""

from __future__ import annotations

import asyncio
import dataclasses
import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from models import SearchHistory

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA temp_store=MEMORY",
    "PRAGMA busy_timeout=5000",
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS search_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    query TEXT NOT NULL CHECK(length(query) > 0),
    results INTEGER NOT NULL CHECK(results >= 0),
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_created_at ON search_history(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_query ON search_history(query);
"""


class HistoryError(Exception):
    """Search history could not be read or written."""


class SQLiteHistoryStore:
    """Write-mostly log of searches.

    One connection is shared between threads and serialized with a lock;
    the async methods push the blocking work to a worker thread.
    """

    def __init__(self, path: str) -> None:
        try:
            if path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(path, timeout=5.0, check_same_thread=False)
            for pragma in _PRAGMAS:
                self._conn.execute(pragma)
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except (sqlite3.Error, OSError) as exc:
            raise HistoryError(f"failed to open history database {path}: {exc}") from exc
        self._lock = threading.Lock()
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def _save_sync(self, record: SearchHistory) -> SearchHistory:
        try:
            with self._lock:
                cur = self._conn.execute(
                    "INSERT INTO search_history (query, results, created_at) VALUES (?, ?, ?)",
                    (record.query, record.results, record.created_at.isoformat()),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise HistoryError(f"failed to save search history: {exc}") from exc
        return dataclasses.replace(record, id=cur.lastrowid)

    def _get_last_sync(self, limit: int) -> list[SearchHistory]:
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT id, query, results, created_at FROM search_history "
                    "ORDER BY created_at DESC, id DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise HistoryError(f"failed to query search history: {exc}") from exc
        return [
            SearchHistory(
                id=row[0],
                query=row[1],
                results=row[2],
                created_at=datetime.fromisoformat(row[3]),
            )
            for row in rows
        ]

    async def save(self, record: SearchHistory) -> SearchHistory:
        """Insert *record*; returns a copy carrying the assigned id."""
        return await asyncio.to_thread(self._save_sync, record)

    async def get_last(self, limit: int) -> list[SearchHistory]:
        """Return up to *limit* records, newest first."""
        return await asyncio.to_thread(self._get_last_sync, limit)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self._lock:
                self._conn.execute("SELECT 1").fetchone()
        except sqlite3.Error:
            return False
        return True

    def close(self) -> None:
        with self._lock:
            self._conn.close()
