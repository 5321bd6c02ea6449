"""Removing files and directory trees."""

from __future__ import annotations

import errno
import os
from enum import IntFlag

from strobe.stat import PathArg, Stat, exists, stat


class RmFlags(IntFlag):
    NONE = 0
    RECURSIVE = 1 << 0
    FORCE = 1 << 1


def _remove_contents(directory: str) -> None:
    """Remove everything inside ``directory``; symbolic links are not followed."""
    with os.scandir(directory) as it:
        entries = list(it)
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            _remove_contents(entry.path)
            try:
                os.rmdir(entry.path)
            except OSError as exc:
                raise OSError(
                    exc.errno,
                    f"Failed to remove directory '{entry.name}': {exc.strerror}",
                    entry.path,
                ) from exc
        else:
            try:
                os.unlink(entry.path)
            except OSError as exc:
                raise OSError(
                    exc.errno, f"Failed to remove file: {exc.strerror}", entry.path
                ) from exc


def rm(path: PathArg, flags: RmFlags = RmFlags.NONE, info: Stat | None = None) -> None:
    """Remove ``path``.

    Directories need ``RECURSIVE``. A missing path is an error unless
    ``FORCE`` is given. When ``info`` is passed it is trusted as the
    status of ``path`` and no existence check is made.
    """
    p = os.fspath(path)
    if info is None:
        if not exists(p):
            if not flags & RmFlags.FORCE:
                raise FileNotFoundError(
                    errno.ENOENT, f"Cannot remove '{p}': No such file or directory", p
                )
            return
        info = stat(p)

    if info.is_directory():
        if not flags & RmFlags.RECURSIVE:
            raise IsADirectoryError(
                errno.EISDIR, f"Cannot remove '{p}': Is a directory", p
            )
        try:
            _remove_contents(p)
        except OSError as exc:
            raise OSError(
                exc.errno, f"Failed to remove directory '{p}': \n{exc}", p
            ) from exc
        try:
            os.rmdir(p)
        except OSError as exc:
            raise OSError(
                exc.errno, f"Failed to remove directory '{p}': {exc.strerror}", p
            ) from exc
    else:
        try:
            os.unlink(p)
        except OSError as exc:
            raise OSError(
                exc.errno, f"Failed to remove file '{p}': {exc.strerror}", p
            ) from exc