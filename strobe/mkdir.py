"""Directory creation, optionally with all missing parents."""

from __future__ import annotations

import errno
import os
from enum import IntFlag

from strobe.path import normalize_path
from strobe.stat import PathArg, exists, stat

PATH_MAX = 4096
_MODE = 0o755


class MkdirFlags(IntFlag):
    NONE = 0
    PARENTS = 1 << 0


def _create(path: str) -> None:
    try:
        os.mkdir(path, _MODE)
    except OSError as exc:
        raise OSError(
            exc.errno, f"Failed to create directory '{path}': {exc.strerror}", path
        ) from exc


def _mkdir_and_parents(path: str) -> None:
    """Create ``path`` (ending with a slash) and its missing parents."""
    if exists(path):
        if not stat(path).is_directory():
            raise FileExistsError(
                errno.EEXIST, f"Cannot create directory '{path}': File exists", path
            )
        return
    slash = path.rfind("/", 0, len(path) - 1)
    if slash != -1:
        _mkdir_and_parents(path[: slash + 1])
    _create(path)


def mkdir(path: PathArg, flags: MkdirFlags = MkdirFlags.NONE) -> None:
    """Create a directory; with ``PARENTS`` existing directories are fine."""
    p = os.fspath(path)
    if not flags & MkdirFlags.PARENTS:
        _create(p)
        return
    if not p:
        raise ValueError("Cannot create a directory from an empty path")
    if len(p) + 1 >= PATH_MAX:
        raise ValueError("Normalized path exceeds PATH_MAX")
    if not p.endswith("/"):
        p += "/"
    _mkdir_and_parents(normalize_path(p))