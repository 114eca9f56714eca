"""Shared utility functions."""

from __future__ import annotations

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(UTC)


def utc_today() -> date:
    """Return current calendar date in UTC."""
    return utc_now().date()


def contains_casefold(haystack: object, needle: str) -> bool:
    """Case-insensitive substring check tolerant of missing values."""
    if haystack is None:
        return False
    return needle.casefold() in str(haystack).casefold()
