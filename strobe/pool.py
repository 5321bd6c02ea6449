"""Monotonic pool resources handing out fixed-size nodes.

Memory is taken from an upstream allocator in chunks that grow
geometrically and is never returned before :meth:`release`. Freed nodes go
on a free list and are handed out again, most recently freed first.
"""

from __future__ import annotations

import threading
from typing import Any

from strobe.allocators import Mallocator, align_up

# Room for the chunk header: a link and a node count.
_HEADER_SIZE = 16


def _is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


class _PoolBase:
    """Bookkeeping shared by both pool resources."""

    def __init__(
        self,
        block_size: int,
        block_align: int,
        upstream: Any = None,
        growth: tuple[int, int] = (2, 1),
    ) -> None:
        if block_size <= 0:
            raise ValueError(f"block size must be positive, got {block_size}")
        if not _is_power_of_two(block_align):
            raise ValueError(f"block alignment must be a power of two, got {block_align}")
        num, den = growth
        if den <= 0 or num < den:
            raise ValueError(f"growth factor {num}/{den} must be at least 1")
        self._block_size = self._compute_block_size(block_size, block_align)
        self._block_align = block_align
        self._node_size = align_up(max(self._block_size, _HEADER_SIZE), block_align)
        self._upstream = upstream if upstream is not None else Mallocator()
        self._growth = (num, den)
        self._chunks: list[tuple[int, int]] = []
        self._freelist: list[int] = []
        self._free: set[int] = set()

    @staticmethod
    def _compute_block_size(block_size: int, block_align: int) -> int:
        return max(block_size, block_align)

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def block_align(self) -> int:
        return self._block_align

    @property
    def upstream(self) -> Any:
        return self._upstream

    def __enter__(self):
        return self

    def __exit__(self, *args: object) -> None:
        self.release()

    def _check_request(self, size: int, align: int) -> None:
        if size <= 0 or size > self._block_size:
            raise ValueError(
                f"size {size} does not fit a block of {self._block_size} bytes"
            )
        if not _is_power_of_two(align) or self._block_align % align != 0:
            raise ValueError(
                f"alignment {align} is not compatible with {self._block_align}"
            )

    def _next_chunk_nodes(self) -> int:
        if not self._chunks:
            return 2  # one header node plus one usable node
        num, den = self._growth
        return self._chunks[-1][1] * num // den

    def _map_chunk(self) -> tuple[int, int]:
        count = self._next_chunk_nodes()
        address = self._upstream.allocate(count * self._node_size, self._block_align)
        if address is None:
            raise MemoryError("upstream allocator returned no memory")
        self._chunks.append((address, count))
        return address, count

    def _push_nodes(self, nodes: list[int]) -> None:
        # The first node of ``nodes`` is handed out first.
        self._freelist.extend(reversed(nodes))
        self._free.update(nodes)

    def _pop(self) -> int:
        ptr = self._freelist.pop()
        self._free.discard(ptr)
        return ptr

    def _push(self, ptr: int) -> None:
        chunk = self._chunk_of(ptr)
        if chunk is None:
            raise ValueError(f"address {ptr!r} does not belong to this pool")
        if (ptr - chunk) % self._node_size != 0:
            raise ValueError(f"address {ptr:#x} is not the start of a node")
        if ptr in self._free:
            raise ValueError(f"address {ptr:#x} is already free")
        self._freelist.append(ptr)
        self._free.add(ptr)

    def _chunk_of(self, ptr: Any) -> int | None:
        if not isinstance(ptr, int):
            return None
        for address, count in reversed(self._chunks):
            if address + self._node_size <= ptr < address + count * self._node_size:
                return address
        return None

    def _release_chunks(self) -> None:
        for address, count in reversed(self._chunks):
            self._upstream.deallocate(address, count * self._node_size, self._block_align)
        self._chunks.clear()
        self._freelist.clear()
        self._free.clear()


class MonotonicPoolResource(_PoolBase):
    """Single-threaded pool of nodes of ``max(block_size, block_align)`` bytes."""

    def allocate(self, size: int, align: int) -> int:
        """Return the address of a free node."""
        self._check_request(size, align)
        if not self._freelist:
            self._grow()
        return self._pop()

    def deallocate(self, ptr: int, size: int | None = None, align: int | None = None) -> None:
        """Put a node back on the free list."""
        if size is not None:
            self._check_request(max(size, 1), align if align is not None else self._block_align)
        self._push(ptr)

    def owns(self, ptr: Any) -> bool:
        return self._chunk_of(ptr) is not None

    def release(self) -> None:
        """Return every chunk to the upstream allocator."""
        self._release_chunks()

    def _grow(self) -> None:
        address, count = self._map_chunk()
        self._push_nodes([address + i * self._node_size for i in range(1, count)])

    def _state(self) -> tuple[int | None, int | None]:
        return (
            self._chunks[-1][0] if self._chunks else None,
            self._freelist[-1] if self._freelist else None,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonotonicPoolResource):
            return NotImplemented
        return self._state() == other._state()

    __hash__ = None  # type: ignore[assignment]


class LockFreeMonotonicPoolResource(_PoolBase):
    """Thread safe pool; every growth hands one fresh node to the caller."""

    def __init__(
        self,
        block_size: int,
        block_align: int,
        upstream: Any = None,
        growth: tuple[int, int] = (2, 1),
    ) -> None:
        super().__init__(block_size, block_align, upstream, growth)
        self._lock = threading.Lock()

    @staticmethod
    def _compute_block_size(block_size: int, block_align: int) -> int:
        return max(block_size, block_align, _HEADER_SIZE)

    def allocate(self, size: int, align: int) -> int:
        """Return the address of a free node, growing the pool if needed."""
        self._check_request(size, align)
        with self._lock:
            if self._freelist:
                return self._pop()
            address, count = self._map_chunk()
            unique = address + self._node_size
            self._push_nodes([address + i * self._node_size for i in range(2, count)])
            return unique

    def deallocate(self, ptr: int, size: int | None = None, align: int | None = None) -> None:
        """Put a node back on the free list."""
        if ptr is None:
            raise ValueError("cannot deallocate a null address")
        if size is not None:
            self._check_request(max(size, 1), align if align is not None else self._block_align)
        with self._lock:
            self._push(ptr)

    def owns(self, ptr: Any) -> bool:
        with self._lock:
            return self._chunk_of(ptr) is not None

    def release(self) -> None:
        """Return every chunk to the upstream allocator."""
        with self._lock:
            self._release_chunks()