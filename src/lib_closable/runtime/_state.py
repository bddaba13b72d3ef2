"""Clock state container and access helpers."""

from __future__ import annotations

from threading import RLock

from lib_closable.adapters.clock import SystemClock
from lib_closable.application.ports.time import ClockPort

_DEFAULT_CLOCK: ClockPort = SystemClock()
_STATE: ClockPort = _DEFAULT_CLOCK
_STATE_LOCK = RLock()


def set_clock(clock: ClockPort) -> ClockPort:
    """Install ``clock`` as the active clock and return the previous one."""

    with _STATE_LOCK:
        global _STATE
        previous = _STATE
        _STATE = clock
        return previous


def reset_clock() -> None:
    """Restore the system clock."""

    with _STATE_LOCK:
        global _STATE
        _STATE = _DEFAULT_CLOCK


def current_clock() -> ClockPort:
    """Return the active clock."""

    with _STATE_LOCK:
        return _STATE


__all__ = ["current_clock", "reset_clock", "set_clock"]
