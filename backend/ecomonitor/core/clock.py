"""UTC time helpers.

SQLite hands timestamps back without tzinfo, so everything written to the store
is normalised to UTC first and naive values read back are taken as UTC.
"""
from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
