"""Thread-based worker running blocking close callables.

Purpose
-------
Let resources whose release is a blocking call (flush a file, join a thread,
disconnect a socket) take part in the non-blocking combinators. Each job runs
on a dedicated background thread and settles its own signal there.

Contents
--------
* :class:`CloseWorker` - background worker that is itself a :class:`Closable`.

System Role
-----------
Demonstrates the combinators layered over a real scheduler: member signals
settle on the worker thread, so ``close_all`` and ``sequence`` continuations
run there too.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from lib_closable.adapters.signal import done, failed, pending
from lib_closable.domain.closable import Closable, make
from lib_closable.domain.errors import is_fatal


LOGGER = logging.getLogger(__name__)

BlockingCloseFn = Callable[[datetime], None]


@dataclass(slots=True)
class _Job:
    fn: BlockingCloseFn
    deadline: datetime
    signal: Future[None]


class CloseWorker(Closable):
    """Run blocking close functions on a background thread.

    Jobs are processed in submission order. Closing the worker drains jobs
    already submitted, stops the thread, and settles once the thread exited.

    Examples
    --------
    >>> calls = []
    >>> worker = CloseWorker()
    >>> worker.start()
    >>> resource = worker.closable(lambda deadline: calls.append("flushed"))
    >>> resource.close().result(timeout=5)
    >>> worker.close().result(timeout=5)
    >>> calls
    ['flushed']
    """

    def __init__(
        self,
        *,
        name: str = "lib-closable-worker",
        maxsize: int = 256,
        diagnostic: Callable[[str, dict[str, Any]], None] | None = None,
    ) -> None:
        """Create an idle worker.

        Parameters
        ----------
        name:
            Thread name, handy when reading thread dumps.
        maxsize:
            Maximum number of queued jobs; ``submit`` fails the job's signal
            while the queue is full.
        diagnostic:
            Optional hook receiving ``(event_name, payload)`` for job failures
            and lifecycle transitions. Errors raised by the hook are logged.
        """
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self._name = name
        self._maxsize = maxsize
        self._queue: queue.Queue[_Job | None] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._stopping = False
        self._stopped: Future[None] | None = None
        self._diagnostic = diagnostic

    @property
    def running(self) -> bool:
        """Return ``True`` while the worker thread accepts jobs."""
        with self._lock:
            return self._thread is not None and not self._stopping

    def start(self) -> None:
        """Start the background thread if it is not already running."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stopping = False
            self._stopped = pending()
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()
        self._emit_diagnostic("worker_started", {"name": self._name})

    def submit(self, fn: BlockingCloseFn, deadline: datetime) -> Future[None]:
        """Queue ``fn(deadline)`` and return the signal settled by the worker.

        Never blocks: a stopped worker or a full queue yields a failed signal.
        """
        signal = pending()
        with self._lock:
            if self._thread is None or self._stopping:
                return failed(RuntimeError(f"{self._name} is not running"))
            if self._queue.qsize() >= self._maxsize:
                return failed(RuntimeError(f"{self._name} queue is full"))
            self._queue.put_nowait(_Job(fn, deadline, signal))
        return signal

    def closable(self, fn: BlockingCloseFn) -> Closable:
        """Wrap blocking ``fn(deadline)`` as a Closable executed on this worker."""
        return make(lambda deadline: self.submit(fn, deadline))

    def _close(self, deadline: datetime) -> Future[None]:
        with self._lock:
            stopped = self._stopped
            if stopped is None:
                return done()
            first = not self._stopping and self._thread is not None
            self._stopping = True
        if first:
            self._emit_diagnostic("worker_stopping", {"name": self._name, "deadline": deadline.isoformat()})
            with self._lock:
                # Sentinel queues behind pending jobs so they drain first.
                if self._thread is not None and self._stopped is stopped:
                    self._queue.put_nowait(None)
        return stopped

    def _run(self) -> None:
        """Internal worker loop processing jobs until the stop sentinel."""
        fatal: BaseException | None = None
        try:
            while True:
                job = self._queue.get()
                try:
                    if job is None:
                        break
                    self._execute(job)
                finally:
                    self._queue.task_done()
        except BaseException as exc:
            fatal = exc
            raise
        finally:
            self._shutdown(fatal)

    def _shutdown(self, fatal: BaseException | None) -> None:
        """Stop accepting jobs, fail leftovers and settle the stop signal."""
        with self._lock:
            stopped = self._stopped
            self._thread = None
            leftovers = self._drain()
        for job in leftovers:
            job.signal.set_exception(RuntimeError(f"{self._name} stopped before running the job"))
        if fatal is None:
            self._emit_diagnostic("worker_stopped", {"name": self._name})
        else:
            self._emit_diagnostic("worker_died", {"name": self._name, "exception": repr(fatal)})
        if stopped is None:
            return
        if fatal is None:
            stopped.set_result(None)
        else:
            stopped.set_exception(fatal)

    def _drain(self) -> list[_Job]:
        jobs: list[_Job] = []
        while True:
            try:
                job = self._queue.get_nowait()
            except queue.Empty:
                return jobs
            self._queue.task_done()
            if job is not None:
                jobs.append(job)

    def _execute(self, job: _Job) -> None:
        try:
            job.fn(job.deadline)
        except BaseException as exc:
            if is_fatal(exc):
                job.signal.set_exception(exc)
                raise
            LOGGER.debug("Close job %r failed", job.fn, exc_info=exc)
            self._emit_diagnostic("close_job_failed", {"name": self._name, "exception": repr(exc)})
            job.signal.set_exception(exc)
        else:
            job.signal.set_result(None)

    def _emit_diagnostic(self, name: str, payload: dict[str, Any]) -> None:
        """Invoke the diagnostic hook while guarding against callback failures."""

        if self._diagnostic is None:
            return
        try:
            self._diagnostic(name, payload)
        except Exception as diagnostic_exc:  # noqa: BLE001
            LOGGER.error("Worker diagnostic hook raised while reporting %s", name, exc_info=diagnostic_exc)


__all__ = ["BlockingCloseFn", "CloseWorker"]
