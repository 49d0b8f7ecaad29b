"""Small helpers shared across the core and the shell."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC timestamp."""

    return datetime.now(tz=UTC)


def from_iso(value: str) -> datetime:
    """Parse ISO datetime and ensure timezone-aware UTC fallback."""

    return ensure_utc(datetime.fromisoformat(value))


def ensure_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC; aware values pass through unchanged."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def clamp_priority(value: int | None, *, default: int = 3) -> int:
    """Clamp a task priority into 1..4; absent values take ``default``."""

    if value is None:
        return default
    return max(1, min(4, int(value)))
