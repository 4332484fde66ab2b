"""Shared utilities: datetime, generators."""

from app.shared.utils.datetime import (
    ensure_utc,
    from_timestamp_ms_utc,
    parse_iso_utc,
    to_iso_z,
    to_unix_seconds,
    utc_now,
)
from app.shared.utils.generators import generate_cuid, generate_worker_id

__all__ = [
    "generate_cuid",
    "generate_worker_id",
    "utc_now",
    "ensure_utc",
    "from_timestamp_ms_utc",
    "parse_iso_utc",
    "to_iso_z",
    "to_unix_seconds",
]
