"""Adapters backing the closable core.

:mod:`lib_closable.adapters.worker` depends on the core itself and is imported
directly rather than re-exported here.
"""

from __future__ import annotations

from .clock import FrozenClock, SystemClock
from .signal import await_closed, done, failed, outcome, pending

__all__ = [
    "FrozenClock",
    "SystemClock",
    "await_closed",
    "done",
    "failed",
    "outcome",
    "pending",
]
