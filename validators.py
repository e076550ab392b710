"""Search input validation and sanitizing."""

from __future__ import annotations

MAX_QUERY_LENGTH = 200
MAX_RESULTS_LIMIT = 50


class InvalidQueryError(Exception):
    """Raised when search input is empty, too long, or out of range."""


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def sanitize_query(query: str) -> str:
    """Drop non-printable characters and collapse runs of whitespace."""
    printable = "".join(ch for ch in query if ch.isprintable() or ch in " \t\n")
    return " ".join(printable.split())


def validate_search_query(query: str, max_results: int) -> tuple[str, int]:
    """Validate and sanitize search input.

    Returns:
        The cleaned query and the unchanged result count.

    Raises:
        InvalidQueryError: If the query is empty or over 200 characters, or
            max_results is not an integer between 1 and 50.
    """
    if not isinstance(query, str) or not query.strip():
        raise InvalidQueryError("Search query must be a non-empty string")
    query = sanitize_query(query)
    if not query:
        raise InvalidQueryError("Search query must be a non-empty string")
    if len(query) > MAX_QUERY_LENGTH:
        raise InvalidQueryError(f"Search query too long (maximum {MAX_QUERY_LENGTH} characters)")
    if not _is_positive_int(max_results) or max_results > MAX_RESULTS_LIMIT:
        raise InvalidQueryError(f"max_results must be an integer between 1 and {MAX_RESULTS_LIMIT}")
    return query, max_results


def validate_limit(limit: int, default: int, maximum: int) -> int:
    """Validate a page size; 0 selects *default*."""
    if limit == 0:
        return default
    if not _is_positive_int(limit):
        raise InvalidQueryError("limit must be at least 1")
    if limit > maximum:
        raise InvalidQueryError(f"limit cannot exceed {maximum}")
    return limit
