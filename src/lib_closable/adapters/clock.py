"""Clock adapters backing deadline computations.

Contents
--------
* :class:`SystemClock` - wall clock in UTC.
* :class:`FrozenClock` - manually driven clock for deterministic tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from threading import Lock

from lib_closable.application.ports.time import ClockPort


class SystemClock(ClockPort):
    """Concrete clock port returning timezone-aware UTC timestamps."""

    def now(self) -> datetime:
        """Return the current UTC timestamp with timezone info."""
        return datetime.now(timezone.utc)


class FrozenClock(ClockPort):
    """Clock that only moves when told to.

    Examples
    --------
    >>> from datetime import datetime, timedelta, timezone
    >>> clock = FrozenClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
    >>> clock.advance(timedelta(seconds=5)).isoformat()
    '2025-01-01T00:00:05+00:00'
    >>> clock.now() == clock.now()
    True
    """

    def __init__(self, start: datetime | None = None) -> None:
        if start is None:
            start = datetime.now(timezone.utc)
        elif start.tzinfo is None:
            raise ValueError("FrozenClock requires a timezone-aware start time")
        self._current = start
        self._lock = Lock()

    def now(self) -> datetime:
        """Return the pinned instant."""
        with self._lock:
            return self._current

    def advance(self, delta: timedelta) -> datetime:
        """Move the clock forward by ``delta`` and return the new instant."""
        with self._lock:
            self._current = self._current + delta
            return self._current

    def set(self, instant: datetime) -> None:
        """Pin the clock to ``instant``."""
        if instant.tzinfo is None:
            raise ValueError("FrozenClock requires a timezone-aware instant")
        with self._lock:
            self._current = instant


__all__ = ["FrozenClock", "SystemClock"]
