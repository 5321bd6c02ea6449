"""File status queries."""

from __future__ import annotations

import os
import stat as _statmod
from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Union

PathArg = Union[str, "os.PathLike[str]"]


class StatFlags(IntFlag):
    NONE = 0
    FOLLOW_SYMLINK = 1 << 0


class FileType(Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class Stat:
    """Type and size of a file system entry."""

    type: FileType
    size: int

    def is_file(self) -> bool:
        return self.type is FileType.FILE

    def is_directory(self) -> bool:
        return self.type is FileType.DIRECTORY


def stat(path: PathArg, flags: StatFlags = StatFlags.NONE) -> Stat:
    """Describe ``path``; symbolic links are followed only if asked."""
    p = os.fspath(path)
    follow = bool(flags & StatFlags.FOLLOW_SYMLINK)
    try:
        st = os.stat(p, follow_symlinks=follow)
    except OSError as exc:
        call = "stat" if follow else "lstat"
        raise OSError(exc.errno, f"Failed to {call} '{p}': {exc.strerror}", p) from exc
    mode = st.st_mode
    if _statmod.S_ISREG(mode):
        kind = FileType.FILE
    elif _statmod.S_ISDIR(mode):
        kind = FileType.DIRECTORY
    elif _statmod.S_ISLNK(mode):
        kind = FileType.SYMLINK
    else:
        raise ValueError(f"File type of '{p}' is not supported")
    return Stat(kind, st.st_size)


def exists(path: PathArg) -> bool:
    """Tell whether ``path`` can be reached."""
    return os.access(os.fspath(path), os.F_OK)