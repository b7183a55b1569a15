"""Utility functions for InboxRank."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime, tz=timezone.utc) -> datetime:
    """Attach ``tz`` to a naive datetime; aware datetimes are returned unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def parse_datetime(value: object) -> datetime | None:
    """Best-effort conversion of a metadata value into a datetime.

    Accepts datetimes and ISO-8601 strings (a trailing ``Z`` is allowed).
    Anything else, including malformed strings, yields None.
    """

    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s:
        return None
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def truncate(text: str | None, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters."""
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit]
