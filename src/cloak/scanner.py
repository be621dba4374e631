"""Parallel directory walker using os.scandir on a shared worker pool."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, wait
from dataclasses import dataclass, field

from cloak.pool import WorkerPool

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, OSError], None]


@dataclass(frozen=True, slots=True)
class Entry:
    """A single filesystem entry discovered during a walk.

    Metadata is not captured here; call :meth:`lstat` when it is needed
    so that the answer reflects the filesystem at that moment.

    Attributes:
        path: Path of the entry (root joined with the relative path).
        depth: Distance from the root; direct children have depth 1.
        root: Root the entry was discovered under.
    """

    path: str
    depth: int
    root: str

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def lstat(self) -> os.stat_result:
        return os.lstat(self.path)


@dataclass(slots=True)
class _Listing:
    """Result of scanning one directory on a worker."""

    entries: list[Entry] = field(default_factory=list)
    # (path, (st_dev, st_ino)) of children that resolve to directories
    subdirs: list[tuple[str, tuple[int, int]]] = field(default_factory=list)
    errors: list[tuple[str, OSError]] = field(default_factory=list)


def _log_error(path: str, exc: OSError) -> None:
    logger.warning("Cannot read %s: %s", path, exc)


def _dir_key(path: str) -> tuple[int, int]:
    st = os.stat(path)
    return st.st_dev, st.st_ino


def _scan_dir(directory: str, depth: int, root: str) -> _Listing:
    """List one directory. Never raises ``OSError``; errors are collected."""
    listing = _Listing()
    try:
        with os.scandir(directory) as it:
            for dir_entry in it:
                listing.entries.append(
                    Entry(path=dir_entry.path, depth=depth + 1, root=root)
                )
                try:
                    # follows symlinks so linked directories are descended
                    if not dir_entry.is_dir():
                        continue
                    listing.subdirs.append((dir_entry.path, _dir_key(dir_entry.path)))
                except OSError as exc:
                    listing.errors.append((dir_entry.path, exc))
    except OSError as exc:
        listing.errors.append((directory, exc))
    return listing


def walk(
    roots: Iterable[str | os.PathLike],
    recursive: bool,
    pool: WorkerPool,
    on_error: ErrorCallback | None = None,
) -> Iterator[Entry]:
    """Walk *roots* in parallel and yield their entries lazily.

    Roots themselves are not yielded. Without *recursive* only direct
    children are visited. Symlinked directories are followed, but each
    real directory is scanned at most once per call, so link cycles
    terminate. Output order is unspecified.

    Args:
        roots: Directories to walk.
        recursive: Whether to descend below the direct children.
        pool: Worker pool running the directory scans.
        on_error: Called with ``(path, exc)`` for every unreadable entry.
            Defaults to logging a warning.

    Yields:
        Entry: Every discovered entry.
    """
    report = on_error or _log_error
    visited: set[tuple[int, int]] = set()
    running: dict[Future, tuple[str, int]] = {}

    def schedule(directory: str, depth: int, root: str) -> None:
        running[pool.submit(_scan_dir, directory, depth, root)] = (root, depth)

    for raw_root in roots:
        root = os.fsdecode(raw_root)
        try:
            key = _dir_key(root)
        except OSError as exc:
            report(root, exc)
            continue
        if key in visited:
            logger.debug("Skipping duplicate root: %s", root)
            continue
        visited.add(key)
        schedule(root, 0, root)

    try:
        while running:
            done, _ = wait(running, return_when=FIRST_COMPLETED)
            for future in done:
                root, depth = running.pop(future)
                listing = future.result()
                for path, exc in listing.errors:
                    report(path, exc)
                yield from listing.entries

                if not recursive:
                    continue
                for path, key in listing.subdirs:
                    if key in visited:
                        logger.debug("Already visited, not descending: %s", path)
                        continue
                    visited.add(key)
                    schedule(path, depth + 1, root)
    finally:
        for future in running:
            future.cancel()
