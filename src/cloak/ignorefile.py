"""Ignore-file integration — load .gitignore-style exclude rules via pathspec."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pathspec import GitIgnoreSpec

from cloak import PatternError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IgnoreFile:
    """Compiled rules of one ignore file.

    Attributes:
        source: Path of the file the rules were read from.
        base: Directory the rules are relative to (the file's parent).
        spec: Compiled gitignore rules.
    """

    source: Path
    base: Path
    spec: GitIgnoreSpec

    def matches(self, path: str) -> bool:
        """Return whether *path* is ignored by these rules.

        Paths outside :attr:`base` never match.

        Args:
            path: Path rendered as text.

        Returns:
            bool: ``True`` when a rule ignores the path.
        """
        try:
            rel = os.path.relpath(path, self.base)
        except ValueError:
            # different drive on Windows
            return False
        if rel == os.curdir or rel == os.pardir or rel.startswith(os.pardir + os.sep):
            return False
        return self.spec.match_file(rel.replace(os.sep, "/"))


def load_ignore_file(path: str | Path) -> IgnoreFile:
    """Load exclude rules from a gitignore-style file.

    Args:
        path: File containing one pattern per line.

    Returns:
        IgnoreFile: Rules anchored at the file's directory.

    Raises:
        PatternError: If the file cannot be read or holds an invalid rule.
    """
    source = Path(os.path.abspath(path))
    try:
        lines = source.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise PatternError(str(path), "ignore file", str(exc)) from exc
    try:
        spec = GitIgnoreSpec.from_lines(lines)
    except ValueError as exc:
        raise PatternError(str(path), "ignore file", str(exc)) from exc
    logger.debug("Loaded %d ignore rules from %s", len(spec.patterns), source)
    return IgnoreFile(source=source, base=source.parent, spec=spec)
