"""Object-type filtering: classify entries and check accepted types."""

from __future__ import annotations

import enum
import os
import stat
from collections.abc import Collection


class ObjectType(enum.Enum):
    """Kind of filesystem object, as seen without following symlinks."""

    FILE = "file"
    FOLDER = "folder"
    SYMLINK = "symlink"
    UNKNOWN = "unknown"


def classify(path: str | bytes | os.PathLike) -> ObjectType:
    """Return the object type of *path* itself.

    Symlinks are reported as :attr:`ObjectType.SYMLINK` even when they
    point at a directory. Devices, sockets and FIFOs are ``UNKNOWN``.

    Args:
        path: Path to classify.

    Returns:
        ObjectType: Classification of the object.

    Raises:
        OSError: If the metadata cannot be read.
    """
    mode = os.lstat(path).st_mode
    if stat.S_ISREG(mode):
        return ObjectType.FILE
    if stat.S_ISDIR(mode):
        return ObjectType.FOLDER
    if stat.S_ISLNK(mode):
        return ObjectType.SYMLINK
    return ObjectType.UNKNOWN


def accepts(
    object_type: ObjectType, accepted: Collection[ObjectType] | None
) -> bool:
    """Return whether *object_type* is in the accepted set.

    ``None`` means no type restriction was given and everything passes.
    """
    return accepted is None or object_type in accepted
