"""YouTube search via the yt-dlp ytsearch extractor."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from config import load_ydl_options
from models import Video


class SearchError(Exception):
    """Upstream search failed."""


def _parse_published(entry: dict) -> Optional[datetime]:
    """Publication time from ``timestamp`` (epoch) or ``upload_date`` (YYYYMMDD)."""
    timestamp = entry.get("timestamp")
    if timestamp:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    upload_date = entry.get("upload_date")
    if upload_date:
        try:
            return datetime.strptime(upload_date, "%Y%m%d").replace(tzinfo=timezone.utc)
        except ValueError:
            return None
    return None


def _pick_thumbnail(entry: dict) -> Optional[str]:
    if entry.get("thumbnail"):
        return entry["thumbnail"]
    # flat search entries list thumbnails smallest first
    for thumb in reversed(entry.get("thumbnails") or []):
        if thumb.get("url"):
            return thumb["url"]
    return None


def _build_video(entry: dict) -> Optional[Video]:
    """Convert a yt-dlp search entry to a Video."""
    video_id = entry.get("id")
    title = entry.get("title")
    if not video_id or not title:
        return None
    duration = entry.get("duration")
    return Video(
        video_id=video_id,
        title=title,
        url=entry.get("url") or f"https://www.youtube.com/watch?v={video_id}",
        channel=entry.get("channel") or entry.get("uploader"),
        published_at=_parse_published(entry),
        thumbnail_url=_pick_thumbnail(entry),
        duration_seconds=int(duration) if duration else None,
        view_count=entry.get("view_count"),
    )


class YouTubeSearchClient:
    """Blocking search client; callers run it off the event loop."""

    def __init__(self, ydl_opts: Optional[dict] = None) -> None:
        self._ydl_opts = ydl_opts if ydl_opts is not None else load_ydl_options()

    def _extract_entries(self, query: str, max_results: int) -> list[dict]:
        import yt_dlp

        opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "extract_flat": True,
            "socket_timeout": 30,
            **self._ydl_opts,
        }
        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info = ydl.extract_info(f"ytsearch{max_results}:{query}", download=False)
        except yt_dlp.utils.DownloadError as exc:
            raise SearchError(str(exc)) from exc
        if info is None:
            return []
        return info.get("entries") or []

    def search(self, query: str, max_results: int) -> list[Video]:
        """Search YouTube and return at most *max_results* videos.

        Raises:
            SearchError: If yt-dlp reports a download/extraction error.
        """
        videos = []
        for entry in self._extract_entries(query, max_results):
            video = _build_video(entry)
            if video is not None:
                videos.append(video)
        return videos[:max_results]
