"""Configuration loader — reads cache, database and yt-dlp settings from environment variables.

Every variable is named ZENTUBE_{SUFFIX}; blank values count as unset.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from logs import is_valid_level

DEFAULT_CACHE_MAX_ENTRIES = 1000
DEFAULT_CACHE_TTL_SECONDS = 300.0
DEFAULT_DB_PATH = "data/zentube.db"
DEFAULT_MAX_RESULTS = 10
DEFAULT_HISTORY_TIMEOUT_SECONDS = 3.0
DEFAULT_LOG_LEVEL = "INFO"


class ConfigError(Exception):
    """One or more settings are invalid."""


@dataclass(frozen=True)
class Settings:
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    db_path: str = DEFAULT_DB_PATH
    max_results: int = DEFAULT_MAX_RESULTS
    history_timeout: float = DEFAULT_HISTORY_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL


def _env(key: str) -> str:
    """Resolve ZENTUBE_{key}, stripped; empty string when unset."""
    return os.environ.get(f"ZENTUBE_{key}", "").strip()


def _int_setting(key: str, default: int, errors: list[str]) -> int:
    raw = _env(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        errors.append(f"ZENTUBE_{key} must be an integer, got {raw!r}")
        return default


def _float_setting(key: str, default: float, errors: list[str]) -> float:
    raw = _env(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        errors.append(f"ZENTUBE_{key} must be a number, got {raw!r}")
        return default


def load_settings() -> Settings:
    """Build Settings from the environment.

    Environment variables:
        ZENTUBE_CACHE_MAX_ENTRIES — cache capacity (default 1000)
        ZENTUBE_CACHE_TTL         — cache entry lifetime in seconds (default 300)
        ZENTUBE_DB_PATH           — SQLite file for search history (default data/zentube.db)
        ZENTUBE_MAX_RESULTS       — default results per search, 1-50 (default 10)
        ZENTUBE_HISTORY_TIMEOUT   — seconds allowed for a history write (default 3)
        ZENTUBE_LOG_LEVEL         — logging level name (default INFO)

    Raises:
        ConfigError: Listing every invalid value found.
    """
    errors: list[str] = []

    max_entries = _int_setting("CACHE_MAX_ENTRIES", DEFAULT_CACHE_MAX_ENTRIES, errors)
    ttl = _float_setting("CACHE_TTL", DEFAULT_CACHE_TTL_SECONDS, errors)
    max_results = _int_setting("MAX_RESULTS", DEFAULT_MAX_RESULTS, errors)
    history_timeout = _float_setting("HISTORY_TIMEOUT", DEFAULT_HISTORY_TIMEOUT_SECONDS, errors)

    if max_entries <= 0:
        errors.append(f"ZENTUBE_CACHE_MAX_ENTRIES must be positive, got {max_entries}")
    if ttl <= 0:
        errors.append(f"ZENTUBE_CACHE_TTL must be positive, got {ttl}")
    if not 1 <= max_results <= 50:
        errors.append(f"ZENTUBE_MAX_RESULTS must be between 1 and 50, got {max_results}")
    if history_timeout <= 0:
        errors.append(f"ZENTUBE_HISTORY_TIMEOUT must be positive, got {history_timeout}")
    log_level = _env("LOG_LEVEL").upper() or DEFAULT_LOG_LEVEL
    if not is_valid_level(log_level):
        errors.append(f"ZENTUBE_LOG_LEVEL must be a logging level name, got {log_level!r}")

    if errors:
        raise ConfigError("invalid configuration: " + "; ".join(errors))

    return Settings(
        cache_max_entries=max_entries,
        cache_ttl=ttl,
        db_path=_env("DB_PATH") or DEFAULT_DB_PATH,
        max_results=max_results,
        history_timeout=history_timeout,
        log_level=log_level,
    )


def load_ydl_options() -> dict:
    """Build a yt-dlp options dict from environment variables.

    Environment variables:
        ZENTUBE_PROXY         — proxy URL (e.g. http://127.0.0.1:7897)
        ZENTUBE_COOKIE_SOURCE — browser name (e.g. edge, chrome, firefox)
        ZENTUBE_COOKIE_FILE   — path to a Netscape cookies.txt file

    cookie_file takes priority over cookie_source.
    Only non-empty values are included in the returned dict.
    """
    opts: dict = {}

    proxy = _env("PROXY")
    if proxy:
        opts["proxy"] = proxy

    cookie_file = _env("COOKIE_FILE")
    cookie_source = _env("COOKIE_SOURCE")

    if cookie_file:
        opts["cookiefile"] = cookie_file
    elif cookie_source:
        opts["cookiesfrombrowser"] = (cookie_source,)

    return opts
