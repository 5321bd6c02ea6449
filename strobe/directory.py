"""Reading the entries of a directory."""

from __future__ import annotations

import contextlib
import os
from dataclasses import dataclass
from typing import Iterator

from strobe.stat import FileType, PathArg


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    type: FileType


def _entry_type(entry: os.DirEntry) -> FileType:
    if entry.is_symlink():
        return FileType.SYMLINK
    if entry.is_dir(follow_symlinks=False):
        return FileType.DIRECTORY
    if entry.is_file(follow_symlinks=False):
        return FileType.FILE
    raise ValueError("File type not supported")


class Directory:
    """An open directory stream; ``.`` and ``..`` are not listed."""

    def __init__(self, path: PathArg | None = None) -> None:
        self._path: str | None = None
        self._it = None
        if path is None:
            return
        p = os.fspath(path)
        self._it = self._open(p)
        self._path = p

    @staticmethod
    def _open(path: str):
        try:
            return os.scandir(path)
        except OSError as exc:
            raise OSError(
                exc.errno, f"Failed to open directory '{path}': {exc.strerror}", path
            ) from exc

    def __del__(self) -> None:
        with contextlib.suppress(OSError):
            self.close()

    def next(self) -> DirectoryEntry | None:
        """Return the next entry, or None when there are no more."""
        if self._it is None:
            raise ValueError("Directory is not open")
        entry = next(self._it, None)
        if entry is None:
            return None
        return DirectoryEntry(entry.name, _entry_type(entry))

    def rewind(self) -> None:
        """Start reading the entries again from the beginning."""
        if self._it is not None and self._path is not None:
            self._it.close()
            self._it = self._open(self._path)

    def close(self) -> None:
        it, self._it = self._it, None
        if it is not None:
            it.close()

    def valid(self) -> bool:
        return self._it is not None

    def __bool__(self) -> bool:
        return self.valid()

    def __iter__(self) -> Iterator[DirectoryEntry]:
        while (entry := self.next()) is not None:
            yield entry

    def __enter__(self) -> Directory:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()