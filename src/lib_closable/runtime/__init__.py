"""Runtime façade over the process-wide clock.

Purpose
-------
Every duration passed to :meth:`Closable.close` is turned into a deadline by
reading :func:`now`. Tests swap the clock here to make that arithmetic exact.

Contents
--------
* :func:`now` - current instant from the active clock.
* :func:`use_clock` - install a clock for the duration of a ``with`` block.
* :func:`with_current_time_frozen` / :func:`with_current_time_at` - freeze time.
* Re-exported state helpers: :func:`current_clock`, :func:`set_clock`,
  :func:`reset_clock`.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from lib_closable.adapters.clock import FrozenClock
from lib_closable.application.ports.time import ClockPort

from ._state import current_clock, reset_clock, set_clock


def now() -> datetime:
    """Return the current instant according to the active clock."""

    return current_clock().now()


@contextmanager
def use_clock(clock: ClockPort) -> Iterator[ClockPort]:
    """Install ``clock`` for the body of the ``with`` block.

    The previously active clock is restored on exit, including when the body
    raises.
    """

    previous = set_clock(clock)
    try:
        yield clock
    finally:
        set_clock(previous)


@contextmanager
def with_current_time_frozen() -> Iterator[FrozenClock]:
    """Freeze the clock at the current instant.

    Examples
    --------
    >>> from datetime import timedelta
    >>> with with_current_time_frozen() as clock:
    ...     before = now()
    ...     after = clock.advance(timedelta(seconds=1))
    ...     (after - before).total_seconds(), now() == after
    (1.0, True)
    """

    clock = FrozenClock(now())
    with use_clock(clock):
        yield clock


@contextmanager
def with_current_time_at(instant: datetime) -> Iterator[FrozenClock]:
    """Freeze the clock at ``instant``."""

    clock = FrozenClock(instant)
    with use_clock(clock):
        yield clock


__all__ = [
    "current_clock",
    "now",
    "reset_clock",
    "set_clock",
    "use_clock",
    "with_current_time_at",
    "with_current_time_frozen",
]
