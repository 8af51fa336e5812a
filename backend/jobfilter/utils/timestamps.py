"""Timezone-aware timestamp helpers.

Functions:
    utcnow(): Current time in UTC with tzinfo attached.
    as_utc(value): Attach UTC to a naive value read back from SQLite.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
