"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system are timezone-aware UTC. Providers speak
different formats: Gmail uses epoch seconds and milliseconds, Graph uses
ISO 8601 with a trailing Z. Conversions live here.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at persistence and provider boundaries.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def from_timestamp_ms_utc(timestamp_ms: int) -> datetime:
    """UTC-aware datetime from a millisecond Unix timestamp (Gmail internalDate)."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)


def to_unix_seconds(dt: datetime) -> int:
    """Whole Unix seconds; naive values are taken as UTC."""
    aware = ensure_utc(dt)
    assert aware is not None
    return int(aware.timestamp())


def to_iso_z(dt: datetime) -> str:
    """Second-precision ISO 8601 in UTC with a Z suffix, e.g. 2025-03-01T12:00:00Z."""
    aware = ensure_utc(dt)
    assert aware is not None
    return aware.strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_iso_utc(value: str | None) -> datetime | None:
    """Parse ISO 8601 (Z or offset suffix). Returns None for empty input."""
    if not value:
        return None
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
