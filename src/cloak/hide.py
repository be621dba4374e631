"""Platform hide primitives behind one idempotent interface."""

from __future__ import annotations

import errno
import logging
import os
import stat
from typing import Protocol

logger = logging.getLogger(__name__)


class Hider(Protocol):
    """Makes a filesystem entry invisible to normal directory listings.

    Implementations must be idempotent: hiding an already hidden entry
    is a no-op, not an error.
    """

    def is_hidden(self, path: str) -> bool: ...

    def hide(self, path: str) -> str: ...


class DotPrefixHider:
    """Hide by renaming ``name`` to ``.name`` in the same directory (POSIX)."""

    def is_hidden(self, path: str) -> bool:
        return os.path.basename(os.path.normpath(path)).startswith(".")

    def hide(self, path: str) -> str:
        """Rename *path* to its dot-prefixed name.

        Args:
            path: Entry to hide.

        Returns:
            str: Path the entry lives at afterwards.

        Raises:
            FileExistsError: If the dot-prefixed name is already taken.
            OSError: If the rename fails.
        """
        parent, name = os.path.split(os.path.normpath(path))
        if name.startswith("."):
            return path
        target = os.path.join(parent, "." + name)
        # os.rename silently replaces files on POSIX
        if os.path.lexists(target):
            raise FileExistsError(errno.EEXIST, "Hidden name is already taken", target)
        os.rename(path, target)
        logger.debug("Renamed %s -> %s", path, target)
        return target


class AttributeHider:
    """Hide by setting ``FILE_ATTRIBUTE_HIDDEN`` (Windows)."""

    def _attributes(self, path: str) -> int:
        return os.lstat(path).st_file_attributes

    def is_hidden(self, path: str) -> bool:
        return bool(self._attributes(path) & stat.FILE_ATTRIBUTE_HIDDEN)

    def hide(self, path: str) -> str:
        import ctypes

        attributes = self._attributes(path)
        if attributes & stat.FILE_ATTRIBUTE_HIDDEN:
            return path
        kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
        if not kernel32.SetFileAttributesW(
            path, attributes | stat.FILE_ATTRIBUTE_HIDDEN
        ):
            raise ctypes.WinError(ctypes.get_last_error())
        return path


def default_hider() -> Hider:
    """Return the hide primitive for the running platform."""
    if os.name == "nt":
        return AttributeHider()
    return DotPrefixHider()
