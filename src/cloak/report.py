"""Line-oriented reporting of dispatch outcomes."""

from __future__ import annotations

import threading
from collections import Counter
from typing import TextIO

from cloak.dispatch import DispatchOutcome, OutcomeStatus
from cloak.matcher import render_path


def display(path: str) -> str:
    """Return *path* as printable text, replacing invalid sequences."""
    return render_path(path)[1]


class Reporter:
    """Write one line per outcome to the success or diagnostic stream.

    Acted-upon paths go to *out*. Errors always go to *err*; routine
    skips and progress messages only when *verbose* is set. Safe to call
    from several threads.
    """

    def __init__(self, out: TextIO, err: TextIO, verbose: bool = False) -> None:
        self.out = out
        self.err = err
        self.verbose = verbose
        self.counts: Counter[OutcomeStatus] = Counter()
        self._lock = threading.Lock()

    def _write(self, stream: TextIO, line: str) -> None:
        with self._lock:
            stream.write(line + "\n")
            stream.flush()

    def info(self, message: str) -> None:
        if self.verbose:
            self._write(self.err, message)

    def error(self, message: str) -> None:
        self._write(self.err, message)

    def traversal_error(self, path: str, exc: OSError) -> None:
        self.error(f"Cannot read {display(path)}: {exc}")

    def outcome(self, outcome: DispatchOutcome) -> None:
        with self._lock:
            self.counts[outcome.status] += 1

        path = display(outcome.path)
        verdict = outcome.verdict
        if self.verbose and verdict is not None and verdict.lossy_text is not None:
            self.error(f"Path {verdict.lossy_text} is not valid UTF-8. This may cause issues.")

        if outcome.status is OutcomeStatus.HIDDEN:
            self._write(self.out, f"Hidden {path}")
        elif outcome.status is OutcomeStatus.WOULD_HIDE:
            self._write(self.out, f"Would hide {path}")
        elif outcome.status is OutcomeStatus.FAILED:
            self.error(f"Failed to hide {path}: {outcome.error}")
        elif outcome.error is not None:
            self.error(f"Skipping {path}: {outcome.error}")
        elif self.verbose:
            self.error(f"Skipping {path} because {outcome.reason}")

    def summary(self) -> str:
        return ", ".join(
            f"{self.counts[status]} {status.value}" for status in OutcomeStatus
        )
