"""Moving and renaming file system entries."""

from __future__ import annotations

import errno
import os
import stat as _statmod
from enum import IntFlag

from strobe.stat import PathArg


class MvFlags(IntFlag):
    NONE = 0
    FORCE = 1 << 1
    RECURSIVE = 1 << 2
    PRESERVE_TIMESTAMPS = 1 << 3


def _wrap(exc: OSError, message: str, path: str) -> OSError:
    return OSError(exc.errno, f"{message}: {exc.strerror}", path)


def mv(src: PathArg, dst: PathArg, flags: MvFlags = MvFlags.NONE) -> None:
    """Rename ``src`` to ``dst``.

    An existing destination is an error unless ``FORCE`` is given; then a
    destination file is removed first, but a directory never is.
    """
    s, d = os.fspath(src), os.fspath(dst)

    try:
        dst_stat = os.stat(d)
    except OSError:
        dst_stat = None
    if dst_stat is not None:
        if not flags & MvFlags.FORCE:
            raise FileExistsError(
                errno.EEXIST, f"Destination '{d}' exists and Force flag not set", d
            )
        if not _statmod.S_ISDIR(dst_stat.st_mode):
            try:
                os.unlink(d)
            except OSError as exc:
                raise _wrap(exc, f"Failed to remove destination file '{d}'", d) from exc

    try:
        src_stat = os.stat(s)
    except OSError as exc:
        raise _wrap(exc, f"Failed to stat source '{s}'", s) from exc

    times = None
    if flags & MvFlags.PRESERVE_TIMESTAMPS:
        # Timestamps are kept at microsecond resolution.
        times = (
            src_stat.st_atime_ns // 1000 * 1000,
            src_stat.st_mtime_ns // 1000 * 1000,
        )

    try:
        os.rename(s, d)
    except OSError as exc:
        raise _wrap(exc, f"Failed to move '{s}' to '{d}'", s) from exc

    if times is not None:
        try:
            os.utime(d, ns=times)
        except OSError as exc:
            raise _wrap(exc, f"Failed to preserve timestamps on '{d}'", d) from exc