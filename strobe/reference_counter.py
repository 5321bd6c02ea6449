"""Thread safe reference counter."""

from __future__ import annotations

import threading


class ReferenceCounter:
    """A counter that, once it reaches zero, refuses to be incremented."""

    def __init__(self, initial: int = 1) -> None:
        self._lock = threading.Lock()
        self._counter = initial

    def reset(self) -> None:
        with self._lock:
            self._counter = 1

    def inc(self) -> bool:
        """Increment unless the count is zero; tell whether it was done."""
        with self._lock:
            if self._counter > 0:
                self._counter += 1
                return True
            return False

    def resurrect(self) -> None:
        """Increment unconditionally, even from zero."""
        with self._lock:
            self._counter += 1

    def dec(self) -> bool:
        """Decrement; return True if this dropped the count to zero."""
        with self._lock:
            previous = self._counter
            self._counter -= 1
            return previous == 1

    def use_count(self) -> int:
        """Current count; prefer :meth:`is_zero` where possible."""
        with self._lock:
            return self._counter

    def is_zero(self) -> bool:
        with self._lock:
            return self._counter == 0