"""Deadline-driven close combinators for grouped resources.

``Closable`` values are closed with ``close(deadline)`` and report completion
through a :class:`concurrent.futures.Future`. ``close_all`` closes members
concurrently, ``sequence`` closes them in order, and both keep going past
member failures.
"""

from __future__ import annotations

from .adapters.clock import FrozenClock, SystemClock
from .adapters.signal import await_closed, done, failed, pending
from .adapters.worker import CloseWorker
from .domain.closable import NOP, Closable, ClosableOnce, ClosableRef, close_all, make, ref, sequence
from .domain.errors import CloseTimeoutError
from .domain.time import TIME_BOTTOM, TIME_TOP
from .lib_closable import close_and_wait, close_async, closing, summary_info
from .runtime import now, use_clock, with_current_time_at, with_current_time_frozen

nop = NOP

__all__ = [
    "Closable",
    "ClosableOnce",
    "ClosableRef",
    "CloseTimeoutError",
    "CloseWorker",
    "FrozenClock",
    "NOP",
    "SystemClock",
    "TIME_BOTTOM",
    "TIME_TOP",
    "await_closed",
    "close_all",
    "close_and_wait",
    "close_async",
    "closing",
    "done",
    "failed",
    "make",
    "nop",
    "now",
    "pending",
    "ref",
    "sequence",
    "summary_info",
    "use_clock",
    "with_current_time_at",
    "with_current_time_frozen",
]
