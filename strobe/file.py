"""Unbuffered files on top of operating system file descriptors."""

from __future__ import annotations

import contextlib
import os
from enum import Enum, IntFlag

from strobe.stat import PathArg

_DEFAULT_MODE = 0o644


class FileAccess(IntFlag):
    READ = 1 << 0
    WRITE = 1 << 1
    READ_WRITE = READ | WRITE
    CREATE = 1 << 2
    TRUNC = 1 << 3
    APPEND = 1 << 4
    EXCLUSIVE = 1 << 5
    SYNC = 1 << 6


class FileSeek(Enum):
    SET = os.SEEK_SET
    CUR = os.SEEK_CUR
    END = os.SEEK_END


def _wrap(exc: OSError, message: str) -> OSError:
    return OSError(exc.errno, f"{message} (errno: {exc.errno}): {exc.strerror}")


class File:
    """An open file descriptor; closed when the object is closed or dropped."""

    def __init__(self, path: PathArg | None = None, access: FileAccess = FileAccess.READ) -> None:
        self._fd = -1
        if path is None:
            return
        p = os.fspath(path)
        if p.endswith("/"):
            raise ValueError(f"Failed to open file '{p}'. Path names a directory.")

        access = FileAccess(access)
        readable = bool(access & FileAccess.READ)
        writable = bool(access & FileAccess.WRITE)
        if readable and writable:
            flags = os.O_RDWR
        elif readable:
            flags = os.O_RDONLY
        elif writable:
            flags = os.O_WRONLY
        else:
            raise ValueError(
                f"Failed to open file '{p}'. Must specify either "
                "Read and or Write access flags."
            )

        if access & FileAccess.CREATE:
            flags |= os.O_CREAT
            if access & FileAccess.EXCLUSIVE:
                flags |= os.O_EXCL
        if access & FileAccess.TRUNC:
            if not writable:
                raise ValueError(
                    f"Failed to open file '{p}'. Invalid file access. Trunc requires Write."
                )
            flags |= os.O_TRUNC
        if access & FileAccess.APPEND:
            if not writable:
                raise ValueError(
                    f"Failed to open file '{p}'. Invalid file access. Append requires Write."
                )
            flags |= os.O_APPEND
        if access & FileAccess.SYNC:
            flags |= getattr(os, "O_SYNC", 0)
        flags |= getattr(os, "O_BINARY", 0)

        try:
            self._fd = os.open(p, flags, _DEFAULT_MODE)
        except OSError as exc:
            raise OSError(
                exc.errno,
                f"Failed to open file '{p}' (errno: {exc.errno}): {exc.strerror}",
                p,
            ) from exc

    def __del__(self) -> None:
        with contextlib.suppress(OSError):
            self.close()

    def _require_open(self) -> int:
        if self._fd == -1:
            raise ValueError("File is not open")
        return self._fd

    def close(self) -> None:
        """Close the descriptor; closing a closed file does nothing."""
        fd, self._fd = self._fd, -1
        if fd != -1:
            try:
                os.close(fd)
            except OSError as exc:
                raise _wrap(exc, "Failed to close file") from exc

    def size(self) -> int:
        fd = self._require_open()
        try:
            return os.fstat(fd).st_size
        except OSError as exc:
            raise _wrap(exc, "Failed to get file size") from exc

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; fewer only at end of file."""
        fd = self._require_open()
        chunks: list[bytes] = []
        remaining = size
        while remaining > 0:
            try:
                chunk = os.read(fd, remaining)
            except OSError as exc:
                raise _wrap(exc, "Failed to read from file") from exc
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def write(self, data: bytes) -> int:
        """Write all of ``data`` and return the number of bytes written."""
        fd = self._require_open()
        view = memoryview(data).cast("B")
        total = 0
        while total < len(view):
            try:
                total += os.write(fd, view[total:])
            except OSError as exc:
                raise _wrap(exc, "Failed to write to file") from exc
        return total

    def seek(self, offset: int, whence: FileSeek = FileSeek.SET) -> None:
        fd = self._require_open()
        if not isinstance(whence, FileSeek):
            raise ValueError("Invalid seek flag")
        try:
            os.lseek(fd, offset, whence.value)
        except OSError as exc:
            raise _wrap(exc, "Failed to seek in file") from exc

    def tell(self) -> int:
        fd = self._require_open()
        try:
            return os.lseek(fd, 0, os.SEEK_CUR)
        except OSError as exc:
            raise _wrap(exc, "Failed to get file position") from exc

    def truncate(self, new_size: int) -> None:
        if self._fd == -1:
            raise RuntimeError("File not open")
        try:
            os.ftruncate(self._fd, new_size)
        except OSError as exc:
            raise _wrap(exc, "Failed to truncate file") from exc

    def is_open(self) -> bool:
        return self._fd != -1

    def __bool__(self) -> bool:
        return self.is_open()

    def __enter__(self) -> File:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()