"""Port describing the completion signal returned by every close.

Purpose
-------
Pin down the subset of :class:`concurrent.futures.Future` the combinators rely
on, so alternative single-assignment cells can be checked against it.

Contents
--------
* :class:`CompletionSignal` - structural protocol for settle/observe/wait.

System Role
-----------
The signal primitive is owned outside this package. Combinators only settle
signals they created themselves and observe member signals through
``add_done_callback``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class CompletionSignal(Protocol[T]):
    """Single-assignment asynchronous result cell.

    A signal is pending until exactly one of :meth:`set_result` or
    :meth:`set_exception` is called. Callbacks attached with
    :meth:`add_done_callback` run once after settlement, immediately on the
    calling thread when the signal has already settled.
    """

    def done(self) -> bool: ...

    def cancelled(self) -> bool: ...

    def result(self, timeout: float | None = None) -> T: ...

    def exception(self, timeout: float | None = None) -> BaseException | None: ...

    def add_done_callback(self, fn: Callable[[Any], object]) -> None: ...

    def set_result(self, result: T) -> None: ...

    def set_exception(self, exception: BaseException | None) -> None: ...


__all__ = ["CompletionSignal"]
