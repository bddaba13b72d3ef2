"""Errors raised by the closable layer itself."""

from __future__ import annotations


class CloseTimeoutError(TimeoutError):
    """Raised when a caller-side wait on a close signal runs out of time."""

    def __init__(self, timeout: float | None) -> None:
        super().__init__(f"close did not complete within {timeout} seconds")
        self.timeout = timeout


def is_fatal(exc: BaseException) -> bool:
    """Return ``True`` for errors that must never be turned into a failed signal.

    Only :class:`Exception` subclasses are captured; ``MemoryError`` is treated
    as process-level and propagates as well.

    Examples
    --------
    >>> is_fatal(ValueError("x"))
    False
    >>> is_fatal(KeyboardInterrupt())
    True
    """
    return not isinstance(exc, Exception) or isinstance(exc, MemoryError)


__all__ = ["CloseTimeoutError", "is_fatal"]
