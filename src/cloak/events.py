"""Reduce raw filesystem change notifications to candidate paths."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass

from watchdog.events import (
    DirCreatedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileMovedEvent,
    FileSystemEvent,
)

from cloak import EventError


class ChangeKind(enum.Enum):
    """Kind of a raw change notification.

    ``RENAME`` is a rename reported as one event, carrying the old and the
    new path (or only one of them on platforms that omit the old path).
    ``RENAME_FROM`` and ``RENAME_TO`` are the two halves of a rename
    reported as separate events.
    """

    CREATE = "create"
    RENAME = "rename"
    RENAME_FROM = "rename-from"
    RENAME_TO = "rename-to"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RawChangeEvent:
    """A platform change notification with its associated paths."""

    kind: ChangeKind
    paths: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.kind.value}: {' -> '.join(self.paths)}"


def normalize(event: RawChangeEvent) -> str | None:
    """Return the path that may need hiding because of *event*.

    Only a path that now exists, or that just acquired its current
    name, can need hiding. Deletions, content and metadata changes,
    and the vacated side of a rename yield ``None``.

    Args:
        event: Raw change notification.

    Returns:
        str | None: Candidate path, or ``None`` when nothing changed
        that could require action.

    Raises:
        EventError: If an actionable event carries no path.
    """
    if event.kind is ChangeKind.CREATE:
        if not event.paths:
            raise EventError(f"Failed to get path from {event.kind.value} event")
        return event.paths[0]

    if event.kind in (ChangeKind.RENAME, ChangeKind.RENAME_TO):
        if not event.paths:
            raise EventError(f"Failed to get path from {event.kind.value} event")
        # destination is last; a lone path is the destination
        return event.paths[-1] if len(event.paths) > 1 else event.paths[0]

    return None


def from_watchdog(event: FileSystemEvent) -> RawChangeEvent:
    """Convert a watchdog event into a :class:`RawChangeEvent`.

    Args:
        event: Event delivered by a watchdog observer.

    Returns:
        RawChangeEvent: Equivalent raw event. Anything other than a
        creation or a move becomes :attr:`ChangeKind.OTHER`.
    """
    src = os.fsdecode(event.src_path) if event.src_path else ""
    if isinstance(event, (FileCreatedEvent, DirCreatedEvent)):
        return RawChangeEvent(ChangeKind.CREATE, (src,) if src else ())
    if isinstance(event, (FileMovedEvent, DirMovedEvent)):
        dest = os.fsdecode(event.dest_path) if event.dest_path else ""
        return RawChangeEvent(ChangeKind.RENAME, tuple(p for p in (src, dest) if p))
    return RawChangeEvent(ChangeKind.OTHER, (src,) if src else ())
