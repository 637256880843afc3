"""Conversions between GitHub timestamps and OpenTelemetry span times."""

from __future__ import annotations
from datetime import UTC, datetime, timedelta


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MICROSECOND = timedelta(microseconds=1)


def to_nanoseconds(value: datetime) -> int:
    """Return ``value`` as integer nanoseconds since the Unix epoch."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // _ONE_MICROSECOND * 1_000


def clamped_end_time(started_at: datetime, completed_at: datetime) -> int:
    """Return the span end time, never earlier than its start time.

    GitHub reports ``completed_at`` before ``started_at`` for some skipped and
    post-run entries; those spans are recorded with zero duration.
    """
    return max(to_nanoseconds(started_at), to_nanoseconds(completed_at))


__all__ = ["clamped_end_time", "to_nanoseconds"]
