"""Shared fixtures for cloak tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from cloak.pool import WorkerPool


@pytest.fixture
def pool() -> Iterator[WorkerPool]:
    """A small worker pool, shut down after the test."""
    with WorkerPool(max_workers=4, busy_timeout=0.5) as worker_pool:
        yield worker_pool


@pytest.fixture
def proj_tree(tmp_path: Path) -> Path:
    """Create a small project tree.

    Structure::

        proj/
        ├── a.tmp
        ├── keep.txt
        └── sub/
            ├── b.tmp
            └── deep/
                └── c.tmp
    """
    root = tmp_path / "proj"
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "a.tmp").write_text("a")
    (root / "keep.txt").write_text("keep")
    (root / "sub" / "b.tmp").write_text("b")
    (root / "sub" / "deep" / "c.tmp").write_text("c")
    return root


class RecordingHider:
    """Hider double that records calls instead of touching the disk."""

    def __init__(self, hidden: set[str] | None = None, fail: bool = False) -> None:
        self.hidden: set[str] = set(hidden or ())
        self.calls: list[str] = []
        self.fail = fail

    def is_hidden(self, path: str) -> bool:
        return path in self.hidden

    def hide(self, path: str) -> str:
        self.calls.append(path)
        if self.fail:
            raise FileNotFoundError(2, "No such file or directory", path)
        self.hidden.add(path)
        return path


@pytest.fixture
def hider() -> RecordingHider:
    """A hider double with nothing hidden yet."""
    return RecordingHider()


@pytest.fixture
def make_hider() -> Callable[..., RecordingHider]:
    """Factory for hider doubles with preset hidden paths or forced failures."""
    return RecordingHider
