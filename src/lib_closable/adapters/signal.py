"""Completion signal factories over :class:`concurrent.futures.Future`.

Purpose
-------
Give the combinators one place to create settled and pending signals and to
read a settled signal's outcome without raising.

Contents
--------
* :func:`done` / :func:`failed` / :func:`pending` - signal constructors.
* :func:`outcome` - failure carried by a settled signal, or ``None``.
* :func:`await_closed` - bounded synchronous wait with a distinguished timeout.
"""

from __future__ import annotations

from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta

from lib_closable.domain.errors import CloseTimeoutError


def pending() -> Future[None]:
    """Return an unsettled signal that consumers cannot cancel.

    The signal is moved to the running state straight away, so ``cancel`` on
    it returns ``False`` and only its producer can settle it.

    Examples
    --------
    >>> signal = pending()
    >>> signal.cancel(), signal.done()
    (False, False)
    """
    signal: Future[None] = Future()
    signal.set_running_or_notify_cancel()
    return signal


def done() -> Future[None]:
    """Return a signal that already succeeded.

    Examples
    --------
    >>> done().done()
    True
    """
    signal: Future[None] = Future()
    signal.set_result(None)
    return signal


def failed(exc: BaseException) -> Future[None]:
    """Return a signal that already failed with ``exc``.

    Examples
    --------
    >>> failed(ValueError("boom")).exception()
    ValueError('boom')
    """
    signal: Future[None] = Future()
    signal.set_exception(exc)
    return signal


def outcome(signal: Future[None]) -> BaseException | None:
    """Return the failure carried by a settled ``signal`` or ``None`` on success.

    Cancelled signals report a :class:`~concurrent.futures.CancelledError`.
    """
    if signal.cancelled():
        return CancelledError()
    return signal.exception(timeout=0)


def await_closed(signal: Future[None], timeout: timedelta | float | None = None) -> None:
    """Block until ``signal`` settles, re-raising its failure.

    Parameters
    ----------
    signal:
        Signal returned by :meth:`Closable.close`.
    timeout:
        Maximum wait as :class:`~datetime.timedelta` or seconds. ``None`` waits
        indefinitely.

    Raises
    ------
    CloseTimeoutError
        When the signal is still pending after ``timeout``.
    """
    seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else timeout
    try:
        signal.result(timeout=seconds)
    except FutureTimeoutError as exc:
        if not signal.done():
            raise CloseTimeoutError(seconds) from exc
        error = outcome(signal)
        if error is exc:
            # The close itself failed with a TimeoutError.
            raise
        if error is not None:
            raise error from None
        # Settled successfully right after the wait gave up.


__all__ = ["await_closed", "done", "failed", "outcome", "pending"]
