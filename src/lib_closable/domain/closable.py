"""Closable capability and its combinators.

Purpose
-------
Group independent, possibly asynchronous resources so they can be released
together under one deadline with predictable ordering and error reporting.

Contents
--------
* :class:`Closable` - abstract capability with ``close(deadline)``.
* Constructors: :func:`make`, :data:`NOP`, :func:`close_all`, :func:`sequence`,
  :func:`ref`.
* :class:`ClosableRef` - swappable holder closed through :func:`ref`.
* :class:`ClosableOnce` - base class whose close logic runs at most once.

System Role
-----------
Every combinator triggers member closes directly inside its own ``close`` call
and returns a :class:`concurrent.futures.Future` that settles according to its
join policy. No thread or event loop is assumed; settlement callbacks run on
whichever thread settles the member signal.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future
from datetime import datetime
from threading import Lock
from typing import Callable, Sequence

from lib_closable.adapters.signal import done, failed, outcome, pending
from lib_closable.domain.errors import is_fatal
from lib_closable.domain.time import DeadlineLike, to_deadline
from lib_closable.runtime import now

LOGGER = logging.getLogger(__name__)

CloseFn = Callable[[datetime], "Future[None]"]


def _lift(member: "Closable", deadline: datetime) -> Future[None]:
    """Invoke ``member.close`` turning a synchronous raise into a failed signal."""
    try:
        return member.close(deadline)
    except BaseException as exc:
        if is_fatal(exc):
            raise
        return failed(exc)


class Closable(ABC):
    """A resource that can be released by a deadline.

    ``close`` accepts an absolute deadline (aware :class:`~datetime.datetime`),
    a :class:`~datetime.timedelta` measured from the current clock, or nothing
    to request an immediate close. Implementations provide :meth:`_close`.
    """

    def close(self, deadline: DeadlineLike = None) -> Future[None]:
        """Release the resource, best-effort, by ``deadline``.

        Examples
        --------
        >>> NOP.close().done()
        True
        """
        return self._close(to_deadline(deadline, now))

    @abstractmethod
    def _close(self, deadline: datetime) -> Future[None]:
        """Start releasing the resource and return its completion signal."""

    # Constructors are also reachable as ``Closable.make`` and friends.

    @staticmethod
    def make(fn: CloseFn) -> "Closable":
        return make(fn)

    @staticmethod
    def all(*closables: "Closable") -> "Closable":
        return close_all(*closables)

    @staticmethod
    def sequence(*closables: "Closable") -> "Closable":
        return sequence(*closables)

    @staticmethod
    def ref(holder: "ClosableRef") -> "Closable":
        return ref(holder)


class _FunctionClosable(Closable):
    def __init__(self, fn: CloseFn) -> None:
        self._fn = fn

    def _close(self, deadline: datetime) -> Future[None]:
        try:
            return self._fn(deadline)
        except BaseException as exc:
            if is_fatal(exc):
                raise
            return failed(exc)

    def __repr__(self) -> str:
        return f"Closable.make({self._fn!r})"


def make(fn: CloseFn) -> Closable:
    """Wrap ``fn(deadline) -> Future`` as a :class:`Closable`.

    A signal returned by ``fn`` is passed through unchanged. When ``fn`` raises,
    the error is returned as an already-failed signal instead, so ``close``
    never raises for ordinary exceptions. ``MemoryError`` and non-``Exception``
    errors (``KeyboardInterrupt``, ``SystemExit``) still propagate.

    Examples
    --------
    >>> def broken(deadline):
    ...     raise RuntimeError("lolz")
    >>> make(broken).close().exception()
    RuntimeError('lolz')
    """
    return _FunctionClosable(fn)


class _Nop(Closable):
    def _close(self, deadline: datetime) -> Future[None]:
        return done()

    def __repr__(self) -> str:
        return "Closable.nop"


NOP: Closable = _Nop()
"""Closable whose ``close`` always returns an already-succeeded signal."""

Closable.nop = NOP  # type: ignore[attr-defined]


class _Join:
    """Settles ``signal`` once every member signal has settled."""

    def __init__(self, members: Sequence[Future[None]]) -> None:
        self._members = members
        self._remaining = len(members)
        self._lock = Lock()
        self.signal = pending()

    def start(self) -> Future[None]:
        if not self._members:
            self.signal.set_result(None)
            return self.signal
        for member in self._members:
            member.add_done_callback(self._settled)
        return self.signal

    def _settled(self, _: Future[None]) -> None:
        with self._lock:
            self._remaining -= 1
            finished = self._remaining == 0
        if finished:
            self._finish()

    def _finish(self) -> None:
        for index, member in enumerate(self._members):
            error = outcome(member)
            if error is not None:
                LOGGER.debug("close_all member %d of %d failed: %r", index + 1, len(self._members), error)
                self.signal.set_exception(error)
                return
        self.signal.set_result(None)


class _All(Closable):
    def __init__(self, closables: tuple[Closable, ...]) -> None:
        self._closables = closables

    def _close(self, deadline: datetime) -> Future[None]:
        signals = [_lift(closable, deadline) for closable in self._closables]
        return _Join(signals).start()

    def __repr__(self) -> str:
        return f"Closable.all{self._closables!r}"


def close_all(*closables: Closable) -> Closable:
    """Close every member concurrently and join on their signals.

    All member closes are triggered before ``close`` returns. The returned
    signal settles after the last member signal settles; it fails when any
    member failed, carrying the failure of the earliest failing member in
    argument order.

    Examples
    --------
    >>> close_all(NOP, NOP).close().done()
    True
    """
    return _All(tuple(closables))


class _SequenceRun:
    """Drives one ``close`` of a sequence, one member at a time."""

    def __init__(self, closables: tuple[Closable, ...], deadline: datetime) -> None:
        self._closables = closables
        self._deadline = deadline
        self._next = 0
        self._first_error: BaseException | None = None
        self.signal = pending()

    def advance(self) -> Future[None]:
        while self._next < len(self._closables):
            index = self._next
            self._next += 1
            member = _lift(self._closables[index], self._deadline)
            if not member.done():
                member.add_done_callback(self._settled)
                return self.signal
            self._record(member)
        self._finish()
        return self.signal

    def _settled(self, member: Future[None]) -> None:
        self._record(member)
        self.advance()

    def _record(self, member: Future[None]) -> None:
        error = outcome(member)
        if error is None:
            return
        LOGGER.debug("sequence member %d of %d failed: %r", self._next, len(self._closables), error)
        if self._first_error is None:
            self._first_error = error

    def _finish(self) -> None:
        if self._first_error is not None:
            self.signal.set_exception(self._first_error)
        else:
            self.signal.set_result(None)


class _Sequence(Closable):
    def __init__(self, closables: tuple[Closable, ...]) -> None:
        self._closables = closables

    def _close(self, deadline: datetime) -> Future[None]:
        return _SequenceRun(self._closables, deadline).advance()

    def __repr__(self) -> str:
        return f"Closable.sequence{self._closables!r}"


def sequence(*closables: Closable) -> Closable:
    """Close members one after another, continuing past failures.

    The first member is closed before ``close`` returns; each following member
    is closed only once its predecessor's signal has settled. The returned
    signal settles after the last member and fails with the first failure in
    order, if any.

    Examples
    --------
    >>> boom = make(lambda deadline: failed(ValueError("first")))
    >>> sequence(boom, NOP).close().exception()
    ValueError('first')
    """
    return _Sequence(tuple(closables))


class ClosableRef:
    """Thread-safe mutable slot holding a :class:`Closable`."""

    def __init__(self, closable: Closable = NOP) -> None:
        self._value = closable
        self._lock = Lock()

    def get(self) -> Closable:
        with self._lock:
            return self._value

    def set(self, closable: Closable) -> None:
        with self._lock:
            self._value = closable

    def get_and_set(self, closable: Closable) -> Closable:
        """Replace the held value and return the previous one atomically."""
        with self._lock:
            previous = self._value
            self._value = closable
            return previous


class _Ref(Closable):
    def __init__(self, holder: ClosableRef) -> None:
        self._holder = holder

    def _close(self, deadline: datetime) -> Future[None]:
        return _lift(self._holder.get_and_set(NOP), deadline)


def ref(holder: ClosableRef) -> Closable:
    """Return a Closable that closes whatever ``holder`` contains at close time.

    The held value is swapped for :data:`NOP`, so closing the ref twice closes
    the referenced resource only once.
    """
    return _Ref(holder)


class ClosableOnce(Closable):
    """Closable whose :meth:`_close_once` runs at most once.

    Every ``close`` call returns :attr:`closed`, which settles with the outcome
    of the first close.
    """

    def __init__(self) -> None:
        self._once_lock = Lock()
        self._close_requested = False
        self._closed: Future[None] = pending()

    @property
    def is_closed(self) -> bool:
        """Return ``True`` once a close has been requested."""
        with self._once_lock:
            return self._close_requested

    @property
    def closed(self) -> Future[None]:
        """Signal shared by every close call."""
        return self._closed

    def _close(self, deadline: datetime) -> Future[None]:
        with self._once_lock:
            first = not self._close_requested
            self._close_requested = True
        if first:
            try:
                signal = self._close_once(deadline)
            except BaseException as exc:
                if is_fatal(exc):
                    raise
                signal = failed(exc)
            signal.add_done_callback(self._copy_outcome)
        return self._closed

    def _copy_outcome(self, signal: Future[None]) -> None:
        error = outcome(signal)
        if error is None:
            self._closed.set_result(None)
        else:
            self._closed.set_exception(error)

    @abstractmethod
    def _close_once(self, deadline: datetime) -> Future[None]:
        """Release the resource; called at most once."""


__all__ = [
    "NOP",
    "Closable",
    "ClosableOnce",
    "ClosableRef",
    "CloseFn",
    "close_all",
    "make",
    "ref",
    "sequence",
]
