"""Allocator protocol, basic allocators and a simulated address space.

Allocators hand out integer addresses into a process-wide simulated address
space. The bytes behind an address are reached with :func:`read_bytes` and
:func:`write_bytes`; touching memory outside a live allocation raises
:class:`ValueError`.
"""

from __future__ import annotations

import bisect
import functools
import mmap
import threading
from abc import ABC, abstractmethod
from typing import Any

_MALLOC_ALIGNMENT = 16
_REGION_GAP = 16


def _is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


def align_up(offset: int, alignment: int) -> int:
    """Round ``offset`` up to the next multiple of ``alignment``."""
    if not _is_power_of_two(alignment):
        raise ValueError(f"alignment must be a power of two, got {alignment}")
    return (offset + alignment - 1) & ~(alignment - 1)


@functools.lru_cache(maxsize=None)
def page_size() -> int:
    """Return the size of a memory page of this system."""
    return mmap.PAGESIZE


class _AddressSpace:
    """Maps integer addresses onto byte buffers."""

    _BASE = 0x10000

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._regions: dict[int, bytearray] = {}
        self._bases: list[int] = []
        self._next = self._BASE

    def map(self, size: int, alignment: int) -> int:
        with self._lock:
            address = align_up(self._next, alignment)
            self._regions[address] = bytearray(size)
            bisect.insort(self._bases, address)
            self._next = address + max(size, 1) + _REGION_GAP
            return address

    def unmap(self, address: int) -> None:
        with self._lock:
            if self._regions.pop(address, None) is None:
                raise ValueError(f"address {address:#x} is not the start of an allocation")
            del self._bases[bisect.bisect_left(self._bases, address)]

    def locate(self, address: int, size: int) -> tuple[bytearray, int]:
        with self._lock:
            i = bisect.bisect_right(self._bases, address) - 1
            if i >= 0:
                base = self._bases[i]
                region = self._regions[base]
                offset = address - base
                if size >= 0 and offset + size <= len(region):
                    return region, offset
        raise ValueError(f"{size} bytes at address {address:#x} are not mapped")


_space = _AddressSpace()


def read_bytes(address: int, size: int) -> bytes:
    """Read ``size`` bytes starting at ``address``."""
    region, offset = _space.locate(address, size)
    return bytes(region[offset:offset + size])


def write_bytes(address: int, data: bytes) -> None:
    """Write ``data`` starting at ``address``."""
    region, offset = _space.locate(address, len(data))
    region[offset:offset + len(data)] = data


class Mallocator:
    """General purpose allocator; alignment is fixed like ``malloc``'s."""

    is_always_equal = True
    size_independent = True

    def allocate(self, size: int, align: int) -> int:
        return _space.map(size, _MALLOC_ALIGNMENT)

    def deallocate(self, ptr: int | None, size: int | None = None, align: int | None = None) -> None:
        if ptr is None:
            return
        _space.unmap(ptr)


class PageAllocator:
    """Allocates whole, page aligned pages."""

    def allocate(self, size: int, alignment: int) -> int | None:
        if size == 0:
            return None
        page = page_size()
        return _space.map(align_up(size, page), page)

    def deallocate(self, ptr: int | None, size: int, alignment: int) -> None:
        if ptr is None:
            return
        _space.unmap(ptr)


class AllocatorReference:
    """Non-owning handle that forwards to another allocator."""

    def __init__(self, resource: Any) -> None:
        self._resource = resource

    @property
    def resource(self) -> Any:
        return self._resource

    def allocate(self, size: int, align: int) -> Any:
        return self._resource.allocate(size, align)

    def deallocate(self, ptr: Any, size: int | None = None, align: int | None = None) -> None:
        if size is None:
            if not getattr(self._resource, "size_independent", False):
                raise TypeError(
                    f"{type(self._resource).__name__} needs a size to deallocate"
                )
            self._resource.deallocate(ptr)
            return
        self._resource.deallocate(ptr, size, align)

    def owns(self, ptr: Any) -> bool:
        owns = getattr(self._resource, "owns", None)
        if owns is None:
            raise TypeError(f"{type(self._resource).__name__} cannot tell ownership")
        return bool(owns(ptr))


class PolyMemoryResource(ABC):
    """Abstract, runtime polymorphic memory resource."""

    @abstractmethod
    def allocate(self, size: int, align: int) -> Any:
        """Allocate ``size`` bytes aligned to ``align``."""

    @abstractmethod
    def deallocate(self, ptr: Any, size: int, align: int) -> None:
        """Return memory obtained from :meth:`allocate`."""


class MemoryResource(PolyMemoryResource):
    """Wraps any allocator behind the :class:`PolyMemoryResource` interface."""

    def __init__(self, alloc: Any) -> None:
        self._allocator = alloc

    @property
    def allocator(self) -> Any:
        return self._allocator

    def allocate(self, size: int, align: int) -> Any:
        return self._allocator.allocate(size, align)

    def deallocate(self, ptr: Any, size: int, align: int) -> None:
        self._allocator.deallocate(ptr, size, align)


PolyAllocatorReference = AllocatorReference


def _is_comparable(alloc: Any) -> bool:
    return type(alloc).__eq__ is not object.__eq__


def alloc_equals(lhs: Any, rhs: Any) -> bool:
    """Tell whether memory from ``lhs`` may be released through ``rhs``."""
    if type(lhs) is not type(rhs):
        return False
    comparable = _is_comparable(lhs)
    if not comparable and getattr(type(lhs), "is_always_equal", False):
        return True
    if comparable:
        return bool(lhs == rhs)
    return False