"""Layered glob/regex matching with fixed exclude-before-include precedence."""

from __future__ import annotations

import enum
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from fnmatch import translate

from cloak import PatternError
from cloak.ignorefile import IgnoreFile, load_ignore_file


class RuleKind(enum.Enum):
    """Rule set that decided a verdict."""

    GLOB_INCLUDE = "glob include"
    GLOB_EXCLUDE = "glob exclude"
    REGEX_INCLUDE = "regex include"
    REGEX_EXCLUDE = "regex exclude"


@dataclass(frozen=True, slots=True)
class MatchVerdict:
    """Result of evaluating one path.

    Attributes:
        matched: Whether the path is selected.
        decided_by: Rule set whose hit decided the verdict, or ``None`` when
            the verdict came from the defaults (no rules at all, no include
            hit, or no exclude hit with only excludes configured).
        lossy_text: The path as text with invalid sequences replaced, set
            only when the path is not valid UTF-8.
    """

    matched: bool
    decided_by: RuleKind | None = None
    lossy_text: str | None = None


def _expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternation groups into plain glob patterns.

    Raises:
        ValueError: On unbalanced or nested groups.
    """
    start = pattern.find("{")
    stray = pattern.find("}")
    if start == -1:
        if stray != -1:
            raise ValueError("unopened alternate group")
        return [pattern]
    if stray != -1 and stray < start:
        raise ValueError("unopened alternate group")
    end = pattern.find("}", start)
    if end == -1:
        raise ValueError("unclosed alternate group")
    body = pattern[start + 1 : end]
    if "{" in body:
        raise ValueError("nested alternate groups are not allowed")

    prefix = pattern[:start]
    expanded: list[str] = []
    for tail in _expand_braces(pattern[end + 1 :]):
        for option in body.split(","):
            expanded.append(prefix + option + tail)
    return expanded


class _GlobSet:
    """Glob patterns folded into one byte-level regex."""

    def __init__(self, patterns: Sequence[str], kind: RuleKind) -> None:
        parts: list[bytes] = []
        for pattern in patterns:
            try:
                alternatives = _expand_braces(pattern)
            except ValueError as exc:
                raise PatternError(pattern, kind.value, str(exc)) from exc
            # fnmatch's "*" crosses "/", so "*.tmp" matches at any depth
            parts.extend(os.fsencode(translate(alt)) for alt in alternatives)
        self._regex = re.compile(b"|".join(parts))

    def is_match(self, native: bytes) -> bool:
        return self._regex.match(native) is not None


class _RegexSet:
    """Regex patterns searched against the text form of a path."""

    def __init__(self, patterns: Sequence[str], kind: RuleKind) -> None:
        compiled: list[re.Pattern[str]] = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as exc:
                raise PatternError(pattern, kind.value, str(exc)) from exc
        self._regexes = tuple(compiled)

    def is_match(self, text: str) -> bool:
        return any(regex.search(text) for regex in self._regexes)


def render_path(path: str | bytes | os.PathLike) -> tuple[bytes, str, bool]:
    """Return the native bytes, text form, and lossiness of *path*.

    Args:
        path: Path in any form accepted by :func:`os.fsencode`.

    Returns:
        tuple[bytes, str, bool]: Native bytes, text (with U+FFFD for
        invalid sequences), and whether replacement was needed.
    """
    native = os.fsencode(path)
    try:
        return native, native.decode("utf-8"), False
    except UnicodeDecodeError:
        return native, native.decode("utf-8", errors="replace"), True


class PatternMatcher:
    """Evaluate paths against four ordered rule sets.

    Exclude rules always win over include rules. With no rules at all
    every path matches; with only exclude rules every non-excluded path
    matches. Once built the matcher is immutable and safe to share
    between threads.

    Raises:
        PatternError: From the constructor when any pattern is invalid.
    """

    def __init__(
        self,
        include_globs: Sequence[str] | None = None,
        exclude_globs: Sequence[str] | None = None,
        include_regexes: Sequence[str] | None = None,
        exclude_regexes: Sequence[str] | None = None,
        ignore_files: Sequence[str | os.PathLike] | None = None,
    ) -> None:
        self._include_globs = (
            _GlobSet(include_globs, RuleKind.GLOB_INCLUDE) if include_globs else None
        )
        self._exclude_globs = (
            _GlobSet(exclude_globs, RuleKind.GLOB_EXCLUDE) if exclude_globs else None
        )
        self._include_regexes = (
            _RegexSet(include_regexes, RuleKind.REGEX_INCLUDE)
            if include_regexes
            else None
        )
        self._exclude_regexes = (
            _RegexSet(exclude_regexes, RuleKind.REGEX_EXCLUDE)
            if exclude_regexes
            else None
        )
        self._ignore_files: tuple[IgnoreFile, ...] = tuple(
            load_ignore_file(p) for p in ignore_files or ()
        )

    @property
    def has_rules(self) -> bool:
        return self.has_includes or self.has_excludes

    @property
    def has_includes(self) -> bool:
        return self._include_globs is not None or self._include_regexes is not None

    @property
    def has_excludes(self) -> bool:
        return (
            self._exclude_globs is not None
            or self._exclude_regexes is not None
            or bool(self._ignore_files)
        )

    def _excluded_by_glob(self, native: bytes) -> bool:
        if self._exclude_globs is not None and self._exclude_globs.is_match(native):
            return True
        if not self._ignore_files:
            return False
        # surrogate escapes keep undecodable bytes distinct from U+FFFD
        escaped = os.fsdecode(native)
        return any(rules.matches(escaped) for rules in self._ignore_files)

    def evaluate(self, path: str | bytes | os.PathLike) -> MatchVerdict:
        """Evaluate *path* against the rule sets.

        Args:
            path: Path to evaluate. Globs see its native bytes, regexes see
                its (possibly lossy) text form.

        Returns:
            MatchVerdict: Verdict with the deciding rule set.
        """
        native, text, lossy = render_path(path)
        lossy_text = text if lossy else None

        if not self.has_rules:
            return MatchVerdict(True, None, lossy_text)

        if self._excluded_by_glob(native):
            return MatchVerdict(False, RuleKind.GLOB_EXCLUDE, lossy_text)
        if self._exclude_regexes is not None and self._exclude_regexes.is_match(text):
            return MatchVerdict(False, RuleKind.REGEX_EXCLUDE, lossy_text)
        if self._include_globs is not None and self._include_globs.is_match(native):
            return MatchVerdict(True, RuleKind.GLOB_INCLUDE, lossy_text)
        if self._include_regexes is not None and self._include_regexes.is_match(text):
            return MatchVerdict(True, RuleKind.REGEX_INCLUDE, lossy_text)

        return MatchVerdict(not self.has_includes, None, lossy_text)
