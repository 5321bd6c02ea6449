"""Reference counted smart pointers whose control blocks come from an allocator.

* :class:`SharedPtr` / :class:`PolySharedPtr`: shared ownership; the last
  owner frees the control block.
* :class:`Block` / :class:`BlockRef`: a single owner that lends out counted
  references and refuses to be released while any of them is alive.
* :class:`SharedBlockRef` / :class:`WeakBlockRef`: strong and weak
  references; the value is dropped with the last strong reference and the
  control block with the last reference of either kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from strobe.reference_counter import ReferenceCounter
from strobe.shared_block import CONTROL_BLOCK_ALIGN, CONTROL_BLOCK_SIZE

T = TypeVar("T")


@dataclass(eq=False)
class _Control(Generic[T]):
    value: Any
    allocator: Any
    address: Any
    strong: ReferenceCounter = field(default_factory=ReferenceCounter)
    weak: ReferenceCounter = field(default_factory=ReferenceCounter)

    def free(self) -> None:
        self.value = None
        self.allocator.deallocate(self.address, CONTROL_BLOCK_SIZE, CONTROL_BLOCK_ALIGN)


def _allocate_control(
    alloc: Any, factory: Callable[..., T], args: tuple, kwargs: dict, initial: int = 1
) -> _Control[T]:
    address = alloc.allocate(CONTROL_BLOCK_SIZE, CONTROL_BLOCK_ALIGN)
    if address is None:
        raise MemoryError("allocator returned no memory for the control block")
    try:
        value = factory(*args, **kwargs)
    except BaseException:
        alloc.deallocate(address, CONTROL_BLOCK_SIZE, CONTROL_BLOCK_ALIGN)
        raise
    return _Control(value, alloc, address, strong=ReferenceCounter(initial))


class SharedPtr(Generic[T]):
    """Shared pointer whose control block keeps its allocator."""

    def __init__(self) -> None:
        self._control: _Control[T] | None = None

    @classmethod
    def _adopt(cls, control: _Control[T] | None):
        ptr = cls()
        ptr._control = control
        return ptr

    @classmethod
    def make(cls, alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any):
        """Allocate a control block from ``alloc`` holding ``factory(*args, **kwargs)``."""
        return cls._adopt(_allocate_control(alloc, factory, args, kwargs))

    def copy(self):
        """Return another owner of the same value, or an empty pointer."""
        control = self._control
        if control is not None and control.strong.inc():
            return type(self)._adopt(control)
        return type(self)()

    def __copy__(self):
        return self.copy()

    def get(self) -> T | None:
        return None if self._control is None else self._control.value

    @property
    def value(self) -> T:
        if self._control is None:
            raise ValueError(f"empty {type(self).__name__} has no value")
        return self._control.value

    def valid(self) -> bool:
        return self._control is not None

    def __bool__(self) -> bool:
        return self.valid()

    def release(self) -> None:
        """Drop this owner; free the control block if it was the last."""
        control, self._control = self._control, None
        if control is not None and control.strong.dec():
            control.free()

    def __enter__(self):
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


class PolySharedPtr(SharedPtr[T]):
    """Shared pointer that may be held through any base type of its value."""

    def copy(self) -> PolySharedPtr[T]:
        """Return another owner of the same value, or an empty pointer."""
        return super().copy()

    def get(self) -> T | None:
        return super().get()

    def valid(self) -> bool:
        return super().valid()

    def release(self) -> None:
        """Drop this owner; free the control block if it was the last."""
        super().release()


class BlockRef(Generic[T]):
    """Counted reference lent out by a :class:`Block`."""

    def __init__(self) -> None:
        self._control: _Control[T] | None = None

    @classmethod
    def _adopt(cls, control: _Control[T]) -> BlockRef[T]:
        ref: BlockRef[T] = cls()
        ref._control = control
        return ref

    def copy(self) -> BlockRef[T]:
        """Return another reference, or an empty one if none can be taken."""
        control = self._control
        if control is not None and control.strong.inc():
            return BlockRef._adopt(control)
        return BlockRef()

    __copy__ = copy

    def get(self) -> T | None:
        return None if self._control is None else self._control.value

    @property
    def value(self) -> T:
        if self._control is None:
            raise ValueError("empty BlockRef has no value")
        return self._control.value

    def valid(self) -> bool:
        return self._control is not None

    def __bool__(self) -> bool:
        return self.valid()

    def release(self) -> None:
        control, self._control = self._control, None
        if control is not None:
            control.strong.dec()

    def __enter__(self) -> BlockRef[T]:
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


class Block(Generic[T]):
    """Sole owner of a value that hands out :class:`BlockRef` references."""

    def __init__(self) -> None:
        self._control: _Control[T] | None = None

    @classmethod
    def make(cls, alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any) -> Block[T]:
        """Allocate a control block from ``alloc`` holding ``factory(*args, **kwargs)``."""
        block: Block[T] = cls()
        block._control = _allocate_control(alloc, factory, args, kwargs, initial=0)
        return block

    def get(self) -> T | None:
        return None if self._control is None else self._control.value

    @property
    def value(self) -> T:
        if self._control is None:
            raise ValueError("empty Block has no value")
        return self._control.value

    def valid(self) -> bool:
        return self._control is not None

    def __bool__(self) -> bool:
        return self.valid()

    def is_referenced(self) -> bool:
        """Tell whether any :class:`BlockRef` to this block is alive."""
        if self._control is None:
            raise ValueError("empty Block has no references")
        return not self._control.strong.is_zero()

    def ref(self) -> BlockRef[T]:
        """Lend out a new reference; an empty one if the block is empty."""
        if self._control is None:
            return BlockRef()
        self._control.strong.resurrect()
        return BlockRef._adopt(self._control)

    def release(self) -> None:
        """Free the value; every reference must have been released before."""
        if self._control is None:
            return
        if self.is_referenced():
            raise RuntimeError("cannot release a Block that is still referenced")
        control, self._control = self._control, None
        control.free()

    def __enter__(self) -> Block[T]:
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


class SharedBlockRef(Generic[T]):
    """Strong reference; weak references can observe the same block."""

    def __init__(self) -> None:
        self._control: _Control[T] | None = None

    @classmethod
    def _adopt(cls, control: _Control[T]) -> SharedBlockRef[T]:
        ref: SharedBlockRef[T] = cls()
        ref._control = control
        return ref

    @classmethod
    def make(cls, alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any) -> SharedBlockRef[T]:
        """Allocate a control block from ``alloc`` holding ``factory(*args, **kwargs)``."""
        return cls._adopt(_allocate_control(alloc, factory, args, kwargs))

    def copy(self) -> SharedBlockRef[T]:
        control = self._control
        if control is not None and control.strong.inc():
            return SharedBlockRef._adopt(control)
        return SharedBlockRef()

    __copy__ = copy

    def get(self) -> T | None:
        return None if self._control is None else self._control.value

    @property
    def value(self) -> T:
        if self._control is None:
            raise ValueError("empty SharedBlockRef has no value")
        return self._control.value

    def valid(self) -> bool:
        return self._control is not None

    def __bool__(self) -> bool:
        return self.valid()

    def release(self) -> None:
        """Drop this strong reference; the last one drops the value."""
        control, self._control = self._control, None
        if control is not None and control.strong.dec():
            control.value = None
            if control.weak.dec():
                control.free()

    def __enter__(self) -> SharedBlockRef[T]:
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


class WeakBlockRef(Generic[T]):
    """Weak reference to the block of a :class:`SharedBlockRef`."""

    def __init__(self, shared: SharedBlockRef[T] | None = None) -> None:
        self._control: _Control[T] | None = None
        if shared is not None:
            self._control = self._weak_copy(shared._control)

    @staticmethod
    def _weak_copy(control: _Control[T] | None) -> _Control[T] | None:
        if control is not None and control.weak.inc():
            return control
        return None

    def copy(self) -> WeakBlockRef[T]:
        ref: WeakBlockRef[T] = WeakBlockRef()
        ref._control = self._weak_copy(self._control)
        return ref

    __copy__ = copy

    def expired(self) -> bool:
        """Tell whether the observed value has been dropped."""
        return self._control is not None and self._control.strong.is_zero()

    def lock(self) -> SharedBlockRef[T]:
        """Return a strong reference, or an empty one if the value is gone."""
        control = self._control
        if control is None or not control.strong.inc():
            return SharedBlockRef()
        return SharedBlockRef._adopt(control)

    def release(self) -> None:
        control, self._control = self._control, None
        if control is not None and control.weak.dec():
            control.free()

    def __enter__(self) -> WeakBlockRef[T]:
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


def make_shared_ptr(alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any) -> SharedPtr[T]:
    """Create a :class:`SharedPtr` holding ``factory(*args, **kwargs)``."""
    return SharedPtr.make(alloc, factory, *args, **kwargs)


def make_poly_shared_ptr(alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any) -> PolySharedPtr[T]:
    """Create a :class:`PolySharedPtr` holding ``factory(*args, **kwargs)``."""
    return PolySharedPtr.make(alloc, factory, *args, **kwargs)


def make_block(alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any) -> Block[T]:
    """Create a :class:`Block` holding ``factory(*args, **kwargs)``."""
    return Block.make(alloc, factory, *args, **kwargs)


def make_shared_block_ref(
    alloc: Any, factory: Callable[..., T], *args: Any, **kwargs: Any
) -> SharedBlockRef[T]:
    """Create a :class:`SharedBlockRef` holding ``factory(*args, **kwargs)``."""
    return SharedBlockRef.make(alloc, factory, *args, **kwargs)