"""Environment health checks for yt-dlp and the history database."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from history import SQLiteHistoryStore


@dataclass(frozen=True)
class HealthStatus:
    status: str
    timestamp: str
    ytdlp_available: bool
    ytdlp_version: Optional[str]
    database: str


def _ytdlp_version() -> tuple[bool, Optional[str]]:
    try:
        import yt_dlp
    except ImportError:
        return False, None
    version = getattr(yt_dlp, "version", None)
    if version is not None and hasattr(version, "__version__"):
        return True, version.__version__
    return True, str(version) if version else None


def check_health(
    store: Optional[SQLiteHistoryStore] = None,
    database_error: Optional[str] = None,
) -> HealthStatus:
    """Check environment health. Never raises.

    *database_error* reports a store that could not be opened at all.
    """
    ytdlp_available, ytdlp_version = _ytdlp_version()

    if database_error is not None:
        database = f"unhealthy: {database_error}"
    elif store is None:
        database = "not configured"
    elif store.ping():
        database = "healthy"
    else:
        database = "unhealthy"

    healthy = ytdlp_available and not database.startswith("unhealthy")
    return HealthStatus(
        status="ok" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        ytdlp_available=ytdlp_available,
        ytdlp_version=ytdlp_version,
        database=database,
    )
