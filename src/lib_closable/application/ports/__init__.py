"""Protocols the closable core depends on."""

from __future__ import annotations

from .signal import CompletionSignal
from .time import ClockPort

__all__ = ["ClockPort", "CompletionSignal"]
