"""Buddy memory resource over a single upstream buffer."""

from __future__ import annotations

from typing import Any

from strobe.allocators import PageAllocator

_MAX_ALIGN = 16


def _is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


def _bit_ceil(value: int) -> int:
    return 1 if value <= 1 else 1 << (value - 1).bit_length()


class BuddyResource:
    """Splits a power-of-two buffer into power-of-two blocks.

    Order 0 is the whole buffer; the highest order is a single block of
    ``block_size`` bytes. Freed blocks are merged with their free buddy.
    """

    def __init__(self, capacity: int, block_size: int, upstream: Any = None) -> None:
        if not _is_power_of_two(capacity):
            raise ValueError(f"capacity must be a power of two, got {capacity}")
        if not _is_power_of_two(block_size):
            raise ValueError(f"block size must be a power of two, got {block_size}")
        if block_size >= capacity:
            raise ValueError("block size must be smaller than the capacity")
        self._capacity = capacity
        self._block_size = block_size
        self._log_block_size = block_size.bit_length() - 1
        self._log_block_count = capacity.bit_length() - 1 - self._log_block_size
        block_count = 1 << self._log_block_count
        self._upstream = upstream if upstream is not None else PageAllocator()
        self._buffer = self._upstream.allocate(capacity, _MAX_ALIGN)
        if self._buffer is None:
            raise MemoryError("upstream allocator returned no memory")
        # A set flag marks a tree node that is allocated or split.
        self._used = bytearray(block_count * 2)
        self._freelists: list[list[int]] = [[] for _ in range(self._log_block_count + 1)]
        self._freelists[0].append(0)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def block_size(self) -> int:
        return self._block_size

    def __enter__(self) -> BuddyResource:
        return self

    def __exit__(self, *args: object) -> None:
        self.release()

    def owns(self, ptr: int | None) -> bool:
        if ptr is None or self._buffer is None:
            return False
        return self._buffer <= ptr < self._buffer + self._capacity

    def _order_of(self, size: int) -> int:
        size = max(_bit_ceil(size), self._block_size)
        blocks = size >> self._log_block_size
        return self._log_block_count - (blocks.bit_length() - 1)

    def allocate(self, size: int, alignment: int) -> int | None:
        """Return the address of a block of at least ``size`` bytes, or None."""
        if self._buffer is None:
            raise RuntimeError("resource has been released")
        if not _is_power_of_two(alignment) or alignment > size:
            raise ValueError("alignment must be a power of two no larger than size")
        if size > self._capacity:
            return None
        order = self._order_of(size)

        level = order
        while level >= 0 and not self._freelists[level]:
            level -= 1
        if level < 0:
            return None

        index = self._freelists[level].pop()
        rank = index - ((1 << level) - 1)
        offset = (rank << (self._log_block_count - level)) << self._log_block_size
        self._used[index] = 1
        while level != order:
            index = 2 * index + 1
            self._used[index] = 1
            level += 1
            self._freelists[level].append(index + 1)
        return self._buffer + offset

    def deallocate(self, ptr: int, size: int, alignment: int | None = None) -> None:
        """Return a block obtained from :meth:`allocate` with the same size."""
        if size <= 0 or size > self._capacity:
            raise ValueError("Invalid size for deallocate")
        if not self.owns(ptr):
            raise ValueError(f"address {ptr!r} does not belong to this resource")
        order = self._order_of(size)
        diff = ptr - self._buffer
        shift = self._log_block_count - order
        rank = (diff >> self._log_block_size) >> shift
        if (rank << shift) << self._log_block_size != diff:
            raise ValueError(f"address {ptr:#x} is not the start of a block of this size")
        index = (1 << order) - 1 + rank
        if not self._used[index]:
            raise ValueError(f"address {ptr:#x} is not allocated")

        level = order
        while index != 0:
            self._used[index] = 0
            buddy = index + 1 if index & 1 else index - 1
            if self._used[buddy]:
                break
            self._freelists[level].remove(buddy)
            index = (index - 1) // 2
            level -= 1
        if index == 0:
            self._used[0] = 0
        self._freelists[level].append(index)

    def release(self) -> None:
        """Give the buffer back to the upstream allocator."""
        if self._buffer is not None:
            self._upstream.deallocate(self._buffer, self._capacity, _MAX_ALIGN)
            self._buffer = None