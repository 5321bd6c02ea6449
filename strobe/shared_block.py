"""Reference counted value living in a control block from an allocator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from strobe.reference_counter import ReferenceCounter

T = TypeVar("T")

# Nominal footprint requested from the allocator for each control block.
CONTROL_BLOCK_SIZE = 32
CONTROL_BLOCK_ALIGN = 8


@dataclass(eq=False)
class _ControlBlock(Generic[T]):
    value: T
    allocator: Any
    address: Any
    counter: ReferenceCounter = field(default_factory=ReferenceCounter)


class SharedBlock(Generic[T]):
    """Shared ownership of a value; the last owner frees its control block."""

    def __init__(self) -> None:
        self._control: _ControlBlock[T] | None = None

    @classmethod
    def _adopt(cls, control: _ControlBlock[T]) -> SharedBlock[T]:
        block: SharedBlock[T] = cls()
        block._control = control
        return block

    @classmethod
    def make(cls, alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any) -> SharedBlock[T]:
        """Allocate a control block from ``alloc`` holding ``factory(*args, **kwargs)``."""
        address = alloc.allocate(CONTROL_BLOCK_SIZE, CONTROL_BLOCK_ALIGN)
        if address is None:
            raise MemoryError("allocator returned no memory for the control block")
        try:
            value = factory(*args, **kwargs)
        except BaseException:
            alloc.deallocate(address, CONTROL_BLOCK_SIZE, CONTROL_BLOCK_ALIGN)
            raise
        return cls._adopt(_ControlBlock(value, alloc, address))

    def copy(self) -> SharedBlock[T]:
        """Return another owner of the same value, or an empty block."""
        control = self._control
        if control is not None and control.counter.inc():
            return SharedBlock._adopt(control)
        return SharedBlock()

    __copy__ = copy

    def get(self) -> T | None:
        return None if self._control is None else self._control.value

    @property
    def value(self) -> T:
        if self._control is None:
            raise ValueError("empty SharedBlock has no value")
        return self._control.value

    def valid(self) -> bool:
        return self._control is not None

    def __bool__(self) -> bool:
        return self.valid()

    def release(self) -> None:
        """Drop this owner; free the control block if it was the last."""
        control, self._control = self._control, None
        if control is not None and control.counter.dec():
            control.allocator.deallocate(control.address, CONTROL_BLOCK_SIZE, CONTROL_BLOCK_ALIGN)

    def __enter__(self) -> SharedBlock[T]:
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


def make_shared_block(alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any) -> SharedBlock[T]:
    """Create a :class:`SharedBlock` holding ``factory(*args, **kwargs)``."""
    return SharedBlock.make(alloc, factory, *args, **kwargs)