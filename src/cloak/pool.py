"""Bounded worker pool shared by traversal and dispatch."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT = 3.0


class WorkerPool:
    """Thread pool with a cap on queued work.

    ``submit`` never fails because the pool is busy: when the pending
    cap is reached it waits ``busy_timeout`` seconds, logs, and tries
    again. Tasks submitted here must not submit further tasks.

    Args:
        max_workers: Thread count. Defaults to the logical core count.
        busy_timeout: Seconds to wait for a free slot before retrying.
        max_pending: Cap on submitted-but-unfinished tasks. Defaults to
            four times ``max_workers``.
    """

    def __init__(
        self,
        max_workers: int | None = None,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
        max_pending: int | None = None,
    ) -> None:
        workers = max_workers or os.cpu_count() or 1
        if workers < 1:
            raise ValueError("max_workers must be a positive integer")
        self.max_workers = workers
        self.busy_timeout = busy_timeout
        self._slots = threading.BoundedSemaphore(max_pending or workers * 4)
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="cloak-worker"
        )
        self._pending = 0
        self._idle = threading.Condition()

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Schedule ``fn(*args)``, retrying while the pool is saturated."""
        while not self._slots.acquire(timeout=self.busy_timeout):
            logger.warning("Worker pool busy, retrying submission of %r", fn)
        with self._idle:
            self._pending += 1
        try:
            future = self._executor.submit(fn, *args)
        except BaseException:
            self._task_finished()
            raise
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: Future) -> None:
        if not future.cancelled() and future.exception() is not None:
            exc = future.exception()
            logger.error("Worker task failed: %s", exc, exc_info=exc)
        self._task_finished()

    def _task_finished(self) -> None:
        self._slots.release()
        with self._idle:
            self._pending -= 1
            if self._pending == 0:
                self._idle.notify_all()

    def join(self, timeout: float | None = None) -> bool:
        """Wait until every submitted task has finished.

        Returns:
            bool: ``False`` if *timeout* expired first.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=exc_info[0] is None)
