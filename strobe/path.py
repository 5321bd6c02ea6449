"""Slash separated paths where a trailing slash marks a directory."""

from __future__ import annotations

import os
from enum import Enum, auto
from typing import Union


class _State(Enum):
    EMPTY = auto()
    SINGLE_DOT = auto()
    DOUBLE_DOT = auto()
    WORD = auto()


def _drop_last_segment(out: list[str], replacement: str) -> None:
    """Remove the last segment of ``out``, which ends with a slash.

    If no earlier slash is found, ``out`` is replaced by ``replacement``.
    """
    w = len(out) - 1
    while True:
        w -= 1
        if w <= 0 or out[w] == "/":
            break
    if w <= 0:
        out[:] = replacement
    else:
        del out[w + 1:]


def normalize_path(path: str) -> str:
    """Collapse ``//``, ``./`` and ``dir/../`` in ``path``.

    A leading ``./`` or ``../`` is kept; the result is never longer than
    the input.
    """
    out: list[str] = []
    state = _State.EMPTY
    first_word = True
    prev = ""
    for c in path:
        next_state = state
        if state is _State.EMPTY:
            if c == ".":
                next_state = _State.SINGLE_DOT
            elif not first_word and c == "/":
                next_state = _State.EMPTY
            else:
                out.append(c)
                next_state = _State.WORD
        elif state is _State.SINGLE_DOT:
            if c == ".":
                next_state = _State.DOUBLE_DOT
            elif c == "/":
                if first_word:
                    out.extend("./")
                next_state = _State.EMPTY
            else:
                out.extend(("." , c))
                next_state = _State.WORD
        elif state is _State.DOUBLE_DOT:
            if c == "/":
                if first_word:
                    out.extend("../")
                else:
                    _drop_last_segment(out, "../")
            else:
                out.extend(("..", c))
            next_state = _State.EMPTY
        else:  # WORD
            if prev == "/" and c == "/":
                prev = c
                continue
            out.append(c)
            if c == "/":
                first_word = False
                next_state = _State.EMPTY
            else:
                next_state = _State.WORD
        state = next_state
        prev = c

    if state is _State.DOUBLE_DOT:
        if first_word:
            out.extend("..")
        else:
            _drop_last_segment(out, "./")
    return "".join(out)


PathLike = Union[str, "os.PathLike[str]"]


class Path:
    """A path string; directories end with ``/``, files do not."""

    __slots__ = ("_path",)

    def __init__(self, path: PathLike = "") -> None:
        value = os.fspath(path)
        if not isinstance(value, str):
            raise TypeError("Path expects a text path")
        self._path = value

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"Path({self._path!r})"

    def __fspath__(self) -> str:
        return self._path

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Path):
            return self._path == other._path
        if isinstance(other, str):
            return self._path == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._path)

    def is_directory(self) -> bool:
        return self._path.endswith("/")

    def is_file(self) -> bool:
        return not self.is_directory()

    def extension(self) -> str:
        """Text after the last dot, without the dot; empty if there is none."""
        if self.is_directory():
            raise ValueError(f"directory path '{self._path}' has no extension")
        dot = self._path.rfind(".")
        return "" if dot == -1 else self._path[dot + 1:]

    def name(self) -> str:
        """Last component, without any trailing slash."""
        if self.is_file():
            return self._path[self._path.rfind("/") + 1:]
        slash = self._path.rfind("/", 0, len(self._path) - 1)
        return self._path[slash + 1:-1]

    def parent(self) -> Path:
        """The directory holding this path, ending with a slash."""
        if self.is_file():
            return Path(self._path[: self._path.rfind("/") + 1])
        slash = self._path.rfind("/", 0, len(self._path) - 1)
        if slash == -1:
            return Path("./")
        return Path(self._path[: slash + 1])

    def append(self, other: Path | str) -> Path:
        """Append ``other`` to this directory path, in place."""
        other_path = os.fspath(other)
        if not self._path:
            self._path = other_path
            return self
        if not self.is_directory():
            raise ValueError(f"cannot append to file path '{self._path}'")
        self._path += other_path
        return self

    def normalize(self) -> Path:
        """Normalize this path in place."""
        self._path = normalize_path(self._path)
        return self