"""Watch roots with watchdog and feed new candidates to the dispatcher."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from cloak import EventError, ListenerError
from cloak.dispatch import Dispatcher
from cloak.events import from_watchdog, normalize
from cloak.pool import WorkerPool
from cloak.report import Reporter

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


class HideEventHandler(FileSystemEventHandler):
    """Normalize each watchdog event and submit the candidate for dispatch.

    Runs on the observer's thread; matching and hiding run on the pool.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        pool: WorkerPool,
        reporter: Reporter | None = None,
    ) -> None:
        super().__init__()
        self.dispatcher = dispatcher
        self.pool = pool
        self.reporter = reporter

    def on_any_event(self, event: FileSystemEvent) -> None:
        raw = from_watchdog(event)
        try:
            candidate = normalize(raw)
        except EventError as exc:
            if self.reporter is not None:
                self.reporter.error(str(exc))
            else:
                logger.error("%s", exc)
            return
        if candidate is None:
            logger.debug("Ignoring event %s", raw)
            return
        self.pool.submit(self.dispatcher.handle, candidate)


def watch(
    roots: Sequence[str | os.PathLike],
    recursive: bool,
    dispatcher: Dispatcher,
    pool: WorkerPool,
    reporter: Reporter | None = None,
    stop: threading.Event | None = None,
    observer_factory: Callable[[], BaseObserver] = Observer,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> None:
    """Watch *roots* until *stop* is set or the observer fails.

    Without *stop* this only returns by raising.

    Args:
        roots: Directories to watch.
        recursive: Whether to watch subdirectories too.
        dispatcher: Receives every candidate path.
        pool: Runs the dispatch of each candidate.
        reporter: Receives malformed-event errors.
        stop: Optional event ending the watch.
        observer_factory: Builds the watchdog observer.
        poll_interval: Seconds between observer liveness checks.

    Raises:
        ListenerError: If a root cannot be watched or the observer dies.
    """
    handler = HideEventHandler(dispatcher, pool, reporter)
    observer = observer_factory()
    for root in roots:
        path = os.fsdecode(root)
        try:
            observer.schedule(handler, path, recursive=recursive)
        except OSError as exc:
            raise ListenerError(
                f"Failed to watch path {path}. Make sure you have the required "
                f"permissions: {exc}"
            ) from exc
    try:
        observer.start()
    except OSError as exc:
        raise ListenerError(f"Failed to start watcher: {exc}") from exc
    logger.info("Watching %d root(s)", len(roots))

    try:
        while observer.is_alive():
            if stop is None:
                observer.join(poll_interval)
            elif stop.wait(poll_interval):
                break
        else:
            raise ListenerError("Filesystem observer stopped unexpectedly")
    finally:
        observer.stop()
        if observer.is_alive():
            observer.join()
