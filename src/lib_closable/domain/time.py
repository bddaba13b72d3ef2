"""Deadline value helpers.

Purpose
-------
Normalise the values accepted by :meth:`Closable.close` into an absolute,
timezone-aware deadline.

Contents
--------
* ``TIME_BOTTOM`` / ``TIME_TOP`` - saturation bounds.
* :func:`deadline_after` - saturating ``now + duration``.
* :func:`to_deadline` - accept a deadline, a duration, or nothing.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Union

TIME_BOTTOM = datetime.min.replace(tzinfo=timezone.utc)
"""Earliest representable deadline; means "close right away"."""

TIME_TOP = datetime.max.replace(tzinfo=timezone.utc)
"""Latest representable deadline; means "no deadline"."""

DeadlineLike = Union[datetime, timedelta, None]


def deadline_after(now: datetime, duration: timedelta) -> datetime:
    """Return ``now + duration`` clamped to ``[TIME_BOTTOM, TIME_TOP]``.

    Examples
    --------
    >>> start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> deadline_after(start, timedelta(minutes=1)).isoformat()
    '2025-01-01T00:01:00+00:00'
    >>> deadline_after(start, timedelta.max) == TIME_TOP
    True
    """
    try:
        return now + duration
    except OverflowError:
        return TIME_TOP if duration > timedelta(0) else TIME_BOTTOM


def to_deadline(value: DeadlineLike, now: Callable[[], datetime]) -> datetime:
    """Translate ``value`` into an absolute deadline.

    ``now`` is only consulted for durations so callers freezing the clock see
    exactly ``frozen + duration``.
    """
    if value is None:
        return TIME_BOTTOM
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError("deadline must be timezone-aware")
        return value
    if isinstance(value, timedelta):
        return deadline_after(now(), value)
    raise TypeError(f"expected datetime, timedelta or None, got {type(value).__name__}")


__all__ = ["DeadlineLike", "TIME_BOTTOM", "TIME_TOP", "deadline_after", "to_deadline"]
