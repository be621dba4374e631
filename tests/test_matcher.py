"""Tests for cloak.matcher."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from cloak import PatternError
from cloak.matcher import MatchVerdict, PatternMatcher, RuleKind, render_path


class TestDefaults:
    @pytest.mark.parametrize("path", ["/a/b.txt", "/", "relative/x", "/proj/.hidden"])
    def test_no_rules_matches_everything(self, path: str) -> None:
        assert PatternMatcher().evaluate(path) == MatchVerdict(True, None, None)

    def test_empty_collections_count_as_absent(self) -> None:
        matcher = PatternMatcher(include_globs=[], exclude_regexes=[])
        assert matcher.has_rules is False
        assert matcher.evaluate("/x").matched is True

    def test_only_excludes_accepts_the_rest(self) -> None:
        matcher = PatternMatcher(exclude_globs=["*.log"], exclude_regexes=["cache"])
        verdict = matcher.evaluate("/proj/a.tmp")
        assert verdict.matched is True
        assert verdict.decided_by is None

    def test_includes_without_hit_reject(self) -> None:
        matcher = PatternMatcher(include_globs=["*.tmp"], include_regexes=["^/var/"])
        verdict = matcher.evaluate("/proj/keep.txt")
        assert verdict == MatchVerdict(False, None, None)


class TestPrecedence:
    @pytest.mark.parametrize(
        ("kwargs", "path", "expected"),
        [
            (
                {"include_globs": ["*.tmp"], "exclude_globs": ["*/sub/*"]},
                "/proj/sub/b.tmp",
                MatchVerdict(False, RuleKind.GLOB_EXCLUDE),
            ),
            (
                {"include_regexes": [r"\.tmp$"], "exclude_regexes": ["sub"]},
                "/proj/sub/b.tmp",
                MatchVerdict(False, RuleKind.REGEX_EXCLUDE),
            ),
            (
                {"include_globs": ["*.tmp"], "exclude_regexes": ["keep"]},
                "/proj/a.tmp",
                MatchVerdict(True, RuleKind.GLOB_INCLUDE),
            ),
            (
                {"include_globs": ["*.md"], "include_regexes": [r"\.tmp$"]},
                "/proj/a.tmp",
                MatchVerdict(True, RuleKind.REGEX_INCLUDE),
            ),
        ],
    )
    def test_deciding_rule(
        self, kwargs: dict[str, list[str]], path: str, expected: MatchVerdict
    ) -> None:
        assert PatternMatcher(**kwargs).evaluate(path) == expected

    def test_glob_exclude_checked_before_regex_exclude(self) -> None:
        matcher = PatternMatcher(exclude_globs=["*.tmp"], exclude_regexes=["tmp"])
        assert matcher.evaluate("/a.tmp").decided_by is RuleKind.GLOB_EXCLUDE

    def test_glob_include_checked_before_regex_include(self) -> None:
        matcher = PatternMatcher(include_globs=["*.tmp"], include_regexes=["tmp"])
        assert matcher.evaluate("/a.tmp").decided_by is RuleKind.GLOB_INCLUDE

    @pytest.mark.parametrize(
        "path", ["/proj/a.tmp", "/proj/sub/b.tmp", "/proj/keep.txt", "/etc/passwd"]
    )
    def test_exclude_always_wins(self, path: str) -> None:
        matcher = PatternMatcher(
            include_globs=["*"],
            include_regexes=[".*"],
            exclude_globs=["/proj/*"],
            exclude_regexes=["passwd"],
        )
        assert matcher.evaluate(path).matched is False


class TestGlobSyntax:
    @pytest.mark.parametrize(
        ("pattern", "path", "expected"),
        [
            ("*.tmp", "/proj/a.tmp", True),
            ("*.tmp", "/proj/sub/deep/c.tmp", True),
            ("*.tmp", "/proj/a.tmp.bak", False),
            ("/proj/*", "/proj/sub/b.tmp", True),
            ("**/sub/*.tmp", "/proj/sub/b.tmp", True),
            ("*/a.?mp", "/proj/a.tmp", True),
            ("*/[ab].tmp", "/proj/b.tmp", True),
            ("*/[!ab].tmp", "/proj/b.tmp", False),
            ("*.{tmp,bak}", "/proj/x.bak", True),
            ("*.{tmp,bak}", "/proj/x.txt", False),
            ("*/{a,b}.{tmp,log}", "/proj/b.log", True),
            ("*.TMP", "/proj/a.tmp", False),
        ],
    )
    def test_glob(self, pattern: str, path: str, expected: bool) -> None:
        assert PatternMatcher(include_globs=[pattern]).evaluate(path).matched is expected

    def test_multiple_globs_combined(self) -> None:
        matcher = PatternMatcher(include_globs=["*.tmp", "*.bak", "*/node_modules"])
        assert matcher.evaluate("/p/x.bak").matched is True
        assert matcher.evaluate("/p/node_modules").matched is True
        assert matcher.evaluate("/p/src").matched is False

    def test_accepts_path_objects(self) -> None:
        matcher = PatternMatcher(include_globs=["*.tmp"])
        assert matcher.evaluate(Path("proj") / "a.tmp").matched is True


class TestRegexSyntax:
    def test_regex_is_searched_not_anchored(self) -> None:
        matcher = PatternMatcher(include_regexes=["sub"])
        assert matcher.evaluate("/proj/sub/b.tmp").matched is True

    def test_regex_with_inline_flags(self) -> None:
        matcher = PatternMatcher(include_regexes=[r"(?i)\.TMP$", "^/never"])
        assert matcher.evaluate("/proj/a.tmp").matched is True


class TestCompileErrors:
    @pytest.mark.parametrize(
        ("kwargs", "pattern", "kind"),
        [
            ({"include_regexes": ["ok", "(unclosed"]}, "(unclosed", "regex include"),
            ({"exclude_regexes": ["[z-a]"]}, "[z-a]", "regex exclude"),
            ({"include_globs": ["*.{tmp"]}, "*.{tmp", "glob include"),
            ({"exclude_globs": ["a}b"]}, "a}b", "glob exclude"),
            ({"exclude_globs": ["{a,{b,c}}"]}, "{a,{b,c}}", "glob exclude"),
        ],
    )
    def test_error_carries_pattern_and_kind(
        self, kwargs: dict[str, list[str]], pattern: str, kind: str
    ) -> None:
        with pytest.raises(PatternError) as info:
            PatternMatcher(**kwargs)
        assert info.value.pattern == pattern
        assert info.value.kind == kind
        assert pattern in str(info.value)

    def test_bad_pattern_aborts_whole_build(self) -> None:
        with pytest.raises(PatternError):
            PatternMatcher(include_globs=["*.tmp"], exclude_regexes=["("])


class TestIgnoreFiles:
    def test_ignore_file_rules_act_as_glob_excludes(self, tmp_path: Path) -> None:
        ignore = tmp_path / ".cloakignore"
        ignore.write_text("*.log\nbuild/\n")
        matcher = PatternMatcher(include_globs=["*"], ignore_files=[ignore])
        assert matcher.evaluate(str(tmp_path / "x.log")).decided_by is RuleKind.GLOB_EXCLUDE
        assert matcher.evaluate(str(tmp_path / "build" / "out.o")).matched is False
        assert matcher.evaluate(str(tmp_path / "x.txt")).matched is True

    def test_ignore_file_alone_counts_as_exclude_only(self, tmp_path: Path) -> None:
        ignore = tmp_path / "ignore"
        ignore.write_text("*.log\n")
        matcher = PatternMatcher(ignore_files=[ignore])
        assert matcher.has_includes is False
        assert matcher.evaluate(str(tmp_path / "x.txt")).matched is True

    @pytest.mark.skipif(os.name == "nt", reason="POSIX filesystem semantics")
    def test_replacement_char_rule_misses_invalid_bytes(self, tmp_path: Path) -> None:
        ignore = tmp_path / "ignore"
        ignore.write_text("\ufffd.tmp\n", encoding="utf-8")
        path = os.fsdecode(os.fsencode(tmp_path) + b"/\xff.tmp")
        verdict = PatternMatcher(ignore_files=[ignore]).evaluate(path)
        assert verdict.matched is True
        assert verdict.decided_by is None
        assert verdict.lossy_text is not None

    @pytest.mark.skipif(os.name == "nt", reason="POSIX filesystem semantics")
    def test_wildcard_rule_still_excludes_invalid_bytes(self, tmp_path: Path) -> None:
        ignore = tmp_path / "ignore"
        ignore.write_text("*.tmp\n")
        path = os.fsdecode(os.fsencode(tmp_path) + b"/\xff.tmp")
        verdict = PatternMatcher(ignore_files=[ignore]).evaluate(path)
        assert verdict.matched is False
        assert verdict.decided_by is RuleKind.GLOB_EXCLUDE

    def test_missing_ignore_file_is_pattern_error(self, tmp_path: Path) -> None:
        with pytest.raises(PatternError, match="ignore file"):
            PatternMatcher(ignore_files=[tmp_path / "nope"])


class TestLossyPaths:
    def test_valid_text_is_not_lossy(self) -> None:
        assert PatternMatcher().evaluate("/proj/café.tmp").lossy_text is None

    @pytest.mark.skipif(os.name == "nt", reason="POSIX filesystem semantics")
    def test_invalid_utf8_still_matches_glob(self) -> None:
        path = os.fsdecode(b"/proj/\xff\xfe.tmp")
        verdict = PatternMatcher(include_globs=["*.tmp"]).evaluate(path)
        assert verdict.matched is True
        assert verdict.decided_by is RuleKind.GLOB_INCLUDE
        assert verdict.lossy_text == "/proj/\ufffd\ufffd.tmp"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX filesystem semantics")
    def test_invalid_utf8_bytes_path(self) -> None:
        verdict = PatternMatcher(include_regexes=[r"\.tmp$"]).evaluate(b"/p/\xff.tmp")
        assert verdict.matched is True
        assert verdict.lossy_text == "/p/\ufffd.tmp"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX filesystem semantics")
    def test_glob_sees_raw_bytes(self) -> None:
        path = os.fsdecode(b"/proj/\xff.tmp")
        # the replacement character is text-only; globs match the native bytes
        matcher = PatternMatcher(include_globs=["*/\ufffd.tmp"])
        assert matcher.evaluate(path).matched is False

    @pytest.mark.skipif(os.name == "nt", reason="POSIX filesystem semantics")
    def test_render_path(self) -> None:
        assert render_path("/a/b") == (b"/a/b", "/a/b", False)
        assert render_path(b"/a/\xff") == (b"/a/\xff", "/a/\ufffd", True)
