"""Caller-facing helpers layered over the closable core.

Purpose
-------
Collect the conveniences host applications reach for at shutdown: waiting on
a close with a bound, closing from ``asyncio`` code, and tying a close to a
``with`` block.

Contents
--------
* :func:`close_and_wait` - close and block until settled or timed out.
* :func:`close_async` - awaitable close for event-loop code.
* :func:`closing` - scope guard closing on block exit.
* :func:`summary_info` - metadata banner printed by the CLI.

System Role
-----------
Sits outside the combinators: timeouts exist only here, on the caller side,
never inside ``close_all`` or ``sequence``.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator, TypeVar

from . import __init__conf__
from .adapters.signal import await_closed
from .domain.closable import Closable
from .domain.time import DeadlineLike

LOGGER = logging.getLogger(__name__)

C = TypeVar("C", bound=Closable)


def close_and_wait(closable: Closable, timeout: timedelta | float | None = None) -> None:
    """Close ``closable`` with ``timeout`` as its deadline and wait for it.

    Parameters
    ----------
    closable:
        Resource to close.
    timeout:
        Used both as the close deadline (``now + timeout``) and as the bound on
        the wait. ``None`` closes immediately and waits indefinitely.

    Raises
    ------
    CloseTimeoutError
        When the close has not settled within ``timeout``.
    Exception
        The representative failure of the close, unchanged.
    """

    if isinstance(timeout, (int, float)):
        timeout = timedelta(seconds=timeout)
    signal = closable.close(timeout)
    await_closed(signal, timeout)


async def close_async(closable: Closable, deadline: DeadlineLike = None) -> None:
    """Close ``closable`` and await its signal on the running event loop.

    Cancelling the awaiting task (for example through :func:`asyncio.wait_for`)
    stops the wait only; the close that was already triggered keeps running.

    Examples
    --------
    >>> from lib_closable import NOP
    >>> asyncio.run(close_async(NOP))
    """

    await asyncio.shield(asyncio.wrap_future(closable.close(deadline)))


@contextmanager
def closing(closable: C, timeout: timedelta | float | None = None) -> Iterator[C]:
    """Yield ``closable`` and close it when the block exits.

    The close runs even when the body raises; a body exception takes precedence
    over a close failure, which is then only logged.

    Examples
    --------
    >>> from lib_closable import NOP
    >>> with closing(NOP, timeout=1) as resource:
    ...     resource is NOP
    True
    """

    try:
        yield closable
    except BaseException:
        try:
            close_and_wait(closable, timeout)
        except Exception as close_exc:  # noqa: BLE001
            LOGGER.warning("Close after failed block raised; keeping the original error", exc_info=close_exc)
        raise
    close_and_wait(closable, timeout)


def summary_info() -> str:
    """Return the metadata banner printed by ``lib_closable info``.

    Examples
    --------
    >>> summary_info().startswith("Info for lib_closable:")
    True
    """

    lines = [f"Info for {__init__conf__.name}:", "", *__init__conf__.info_lines()]
    return "\n".join(lines) + "\n"


__all__ = ["close_and_wait", "close_async", "closing", "summary_info"]
