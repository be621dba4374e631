"""Type check, pattern check, then hide: the one path every candidate takes."""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import Collection
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from cloak.filter import ObjectType, accepts, classify
from cloak.hide import Hider
from cloak.matcher import MatchVerdict, PatternMatcher
from cloak.scanner import Entry

if TYPE_CHECKING:
    from cloak.report import Reporter

logger = logging.getLogger(__name__)

Candidate = Union[Entry, str, bytes, os.PathLike]


class OutcomeStatus(enum.Enum):
    HIDDEN = "hidden"
    WOULD_HIDE = "would hide"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """What happened to one candidate.

    Attributes:
        status: Final status.
        path: Candidate path.
        reason: Human-readable skip reason for routine skips.
        error: The ``OSError`` behind an I/O skip or a failed hide.
        verdict: Pattern verdict, when matching was reached.
    """

    status: OutcomeStatus
    path: str
    reason: str | None = None
    error: OSError | None = None
    verdict: MatchVerdict | None = None


def _candidate_path(candidate: Candidate) -> str:
    if isinstance(candidate, Entry):
        return candidate.path
    return os.fsdecode(candidate)


class Dispatcher:
    """Decide and act on candidates from traversal or watch events.

    Args:
        matcher: Pattern rules.
        hider: Platform hide primitive.
        accepted_types: Object types to act on. ``None`` accepts all.
        dry_run: Report ``WOULD_HIDE`` instead of hiding.
        reporter: Receives every outcome from :meth:`handle`.
    """

    def __init__(
        self,
        matcher: PatternMatcher,
        hider: Hider,
        accepted_types: Collection[ObjectType] | None = None,
        dry_run: bool = False,
        reporter: Reporter | None = None,
    ) -> None:
        self.matcher = matcher
        self.hider = hider
        self.accepted_types = (
            frozenset(accepted_types) if accepted_types is not None else None
        )
        self.dry_run = dry_run
        self.reporter = reporter

    def process(self, candidate: Candidate) -> DispatchOutcome:
        """Run one candidate through type check, matching and hiding.

        Per-entry ``OSError``s become ``SKIPPED`` or ``FAILED`` outcomes;
        they never propagate.
        """
        path = _candidate_path(candidate)

        try:
            object_type = classify(path)
        except OSError as exc:
            return DispatchOutcome(OutcomeStatus.SKIPPED, path, error=exc)

        if not accepts(object_type, self.accepted_types):
            return DispatchOutcome(
                OutcomeStatus.SKIPPED,
                path,
                reason=f"it is a {object_type.value}, which is not an accepted type",
            )

        verdict = self.matcher.evaluate(path)
        if not verdict.matched:
            if verdict.decided_by is not None:
                reason = f"it is excluded by a {verdict.decided_by.value} pattern"
            else:
                reason = "it did not match any patterns"
            return DispatchOutcome(
                OutcomeStatus.SKIPPED, path, reason=reason, verdict=verdict
            )

        if self.dry_run:
            return DispatchOutcome(OutcomeStatus.WOULD_HIDE, path, verdict=verdict)

        # a hide's own rename comes back as an event for the hidden name
        try:
            if self.hider.is_hidden(path):
                return DispatchOutcome(
                    OutcomeStatus.SKIPPED,
                    path,
                    reason="it is already hidden",
                    verdict=verdict,
                )
        except OSError as exc:
            return DispatchOutcome(
                OutcomeStatus.SKIPPED, path, error=exc, verdict=verdict
            )

        try:
            self.hider.hide(path)
        except OSError as exc:
            return DispatchOutcome(OutcomeStatus.FAILED, path, error=exc, verdict=verdict)
        return DispatchOutcome(OutcomeStatus.HIDDEN, path, verdict=verdict)

    def handle(self, candidate: Candidate) -> DispatchOutcome:
        """Process *candidate* and report the outcome."""
        outcome = self.process(candidate)
        logger.debug("%s: %s", outcome.status.value, outcome.path)
        if self.reporter is not None:
            self.reporter.outcome(outcome)
        return outcome
