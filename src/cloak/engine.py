"""Batch and watch runs over one shared dispatcher."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Sequence
from dataclasses import dataclass

from cloak import CloakError
from cloak.dispatch import Dispatcher
from cloak.filter import ObjectType
from cloak.hide import Hider, default_hider
from cloak.matcher import PatternMatcher
from cloak.pool import WorkerPool
from cloak.report import Reporter, display
from cloak.scanner import walk
from cloak.watcher import watch

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Options controlling a run.

    Attributes:
        roots: Directories to search and/or watch.
        recursive: Whether to descend into subdirectories.
        watch: Keep running and act on filesystem changes.
        dry_run: Report matches without hiding them.
        verbose: Report routine skips and progress.
        include_globs: Glob patterns selecting entries.
        exclude_globs: Glob patterns rejecting entries.
        include_regexes: Regex patterns selecting entries.
        exclude_regexes: Regex patterns rejecting entries.
        ignore_files: Gitignore-style files with extra exclude rules.
        accepted_types: Object types to act on. ``None`` means all.
        workers: Worker thread count. ``None`` means one per core.
    """

    roots: tuple[str, ...] = (".",)
    recursive: bool = False
    watch: bool = False
    dry_run: bool = False
    verbose: bool = False
    include_globs: tuple[str, ...] | None = None
    exclude_globs: tuple[str, ...] | None = None
    include_regexes: tuple[str, ...] | None = None
    exclude_regexes: tuple[str, ...] | None = None
    ignore_files: tuple[str, ...] | None = None
    accepted_types: frozenset[ObjectType] | None = None
    workers: int | None = None


def resolve_roots(roots: Sequence[str]) -> tuple[str, ...]:
    """Make roots absolute and check that each one is a directory.

    Raises:
        CloakError: If a root is missing or not a directory.
    """
    resolved: list[str] = []
    for root in roots:
        path = os.path.abspath(root)
        if not os.path.isdir(path):
            raise CloakError(f"'{root}' is not a directory")
        resolved.append(path)
    return tuple(resolved)


def build_matcher(options: RunOptions) -> PatternMatcher:
    return PatternMatcher(
        include_globs=options.include_globs,
        exclude_globs=options.exclude_globs,
        include_regexes=options.include_regexes,
        exclude_regexes=options.exclude_regexes,
        ignore_files=options.ignore_files,
    )


def build_dispatcher(
    options: RunOptions,
    reporter: Reporter | None = None,
    hider: Hider | None = None,
) -> Dispatcher:
    """Build the dispatcher shared by batch and watch mode.

    Raises:
        PatternError: If any pattern fails to compile.
    """
    return Dispatcher(
        matcher=build_matcher(options),
        hider=hider or default_hider(),
        accepted_types=options.accepted_types,
        dry_run=options.dry_run,
        reporter=reporter,
    )


def run_batch(
    roots: Sequence[str],
    recursive: bool,
    dispatcher: Dispatcher,
    pool: WorkerPool,
    reporter: Reporter | None = None,
) -> None:
    """Walk *roots* once and dispatch every entry, waiting for completion."""
    if reporter is not None:
        for root in roots:
            reporter.info(f"Searching for files and folders to hide in {display(root)}...")
    on_error = reporter.traversal_error if reporter is not None else None
    for entry in walk(roots, recursive, pool, on_error=on_error):
        pool.submit(dispatcher.handle, entry)
    pool.join()


def run_watch(
    roots: Sequence[str],
    recursive: bool,
    dispatcher: Dispatcher,
    pool: WorkerPool,
    reporter: Reporter | None = None,
    stop: threading.Event | None = None,
) -> None:
    """Run one batch pass in the background while watching *roots*.

    Raises:
        ListenerError: If watching fails; the batch pass is unaffected.
    """
    batch = threading.Thread(
        target=run_batch,
        args=(roots, recursive, dispatcher, pool, reporter),
        name="cloak-batch",
    )
    batch.start()
    try:
        watch(roots, recursive, dispatcher, pool, reporter=reporter, stop=stop)
    finally:
        # the pool must outlive the batch pass even when watching fails
        batch.join()


def run(
    options: RunOptions,
    reporter: Reporter,
    hider: Hider | None = None,
    stop: threading.Event | None = None,
) -> None:
    """Validate *options* and run in batch or watch mode.

    Args:
        options: Run options.
        reporter: Output sink for outcomes and diagnostics.
        hider: Hide primitive. Defaults to the platform's.
        stop: Ends watch mode when set.

    Raises:
        CloakError: On configuration errors, before any work starts, and
            on watcher failure.
    """
    roots = resolve_roots(options.roots)
    dispatcher = build_dispatcher(options, reporter, hider)

    with WorkerPool(options.workers) as pool:
        if options.watch:
            run_watch(roots, options.recursive, dispatcher, pool, reporter, stop)
        else:
            run_batch(roots, options.recursive, dispatcher, pool, reporter)
    logger.debug("Run finished: %s", reporter.summary())
