"""Domain values and errors shared by the closable core."""

from __future__ import annotations

from .errors import CloseTimeoutError, is_fatal
from .time import TIME_BOTTOM, TIME_TOP, DeadlineLike, deadline_after, to_deadline

__all__ = [
    "CloseTimeoutError",
    "DeadlineLike",
    "TIME_BOTTOM",
    "TIME_TOP",
    "deadline_after",
    "is_fatal",
    "to_deadline",
]
