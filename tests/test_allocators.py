import mmap
from dataclasses import dataclass

import pytest

from strobe.allocators import (
    AllocatorReference,
    Mallocator,
    MemoryResource,
    PageAllocator,
    PolyMemoryResource,
    align_up,
    alloc_equals,
    page_size,
    read_bytes,
    write_bytes,
)


@pytest.mark.parametrize("offset", [0, 1, 7, 8, 9, 100, 4095, 4097])
@pytest.mark.parametrize("alignment", [1, 2, 8, 64, 4096])
def test_align_up_invariants(offset, alignment):
    result = align_up(offset, alignment)
    assert result % alignment == 0
    assert result >= offset
    assert result - offset < alignment


def test_align_up_keeps_aligned_values():
    assert align_up(64, 16) == 64


@pytest.mark.parametrize("alignment", [0, 3, 12, -4])
def test_align_up_rejects_non_power_of_two(alignment):
    with pytest.raises(ValueError):
        align_up(10, alignment)


def test_page_size_matches_system():
    size = page_size()
    assert size == mmap.PAGESIZE
    assert size & (size - 1) == 0


def test_mallocator_round_trip_and_distinct():
    alloc = Mallocator()
    a = alloc.allocate(8, 8)
    b = alloc.allocate(8, 8)
    assert a != b
    write_bytes(a, b"abcdefgh")
    write_bytes(b, b"12345678")
    assert read_bytes(a, 8) == b"abcdefgh"
    assert read_bytes(b, 8) == b"12345678"
    alloc.deallocate(a, 8, 8)
    alloc.deallocate(b)


def test_mallocator_freed_memory_is_unreachable():
    alloc = Mallocator()
    ptr = alloc.allocate(4, 4)
    alloc.deallocate(ptr, 4, 4)
    with pytest.raises(ValueError):
        read_bytes(ptr, 1)
    with pytest.raises(ValueError):
        alloc.deallocate(ptr, 4, 4)


def test_reading_past_allocation_fails():
    alloc = Mallocator()
    ptr = alloc.allocate(4, 4)
    with pytest.raises(ValueError):
        read_bytes(ptr, 5)
    with pytest.raises(ValueError):
        write_bytes(ptr + 2, b"xyz")
    alloc.deallocate(ptr)


def test_page_allocator_rounds_to_pages():
    alloc = PageAllocator()
    ptr = alloc.allocate(1, 1)
    page = page_size()
    assert ptr % page == 0
    write_bytes(ptr, b"\xff" * page)
    assert read_bytes(ptr, page) == b"\xff" * page
    with pytest.raises(ValueError):
        read_bytes(ptr, page + 1)
    alloc.deallocate(ptr, 1, 1)
    with pytest.raises(ValueError):
        read_bytes(ptr, 1)


def test_page_allocator_zero_size_returns_none():
    assert PageAllocator().allocate(0, 8) is None


def test_allocator_reference_forwards():
    alloc = Mallocator()
    ref = AllocatorReference(alloc)
    assert ref.resource is alloc
    ptr = ref.allocate(3, 1)
    write_bytes(ptr, b"abc")
    assert read_bytes(ptr, 3) == b"abc"
    ref.deallocate(ptr)
    with pytest.raises(ValueError):
        read_bytes(ptr, 1)


def test_allocator_reference_size_independent_requires_support():
    alloc = PageAllocator()
    ref = AllocatorReference(alloc)
    ptr = ref.allocate(16, 16)
    with pytest.raises(TypeError):
        ref.deallocate(ptr)
    ref.deallocate(ptr, 16, 16)
    with pytest.raises(ValueError):
        read_bytes(ptr, 1)


class _Owning:
    def __init__(self):
        self.owned = set()

    def allocate(self, size, align):
        ptr = Mallocator().allocate(size, align)
        self.owned.add(ptr)
        return ptr

    def deallocate(self, ptr, size, align):
        self.owned.discard(ptr)
        Mallocator().deallocate(ptr)

    def owns(self, ptr):
        return ptr in self.owned


def test_allocator_reference_owns():
    ref = AllocatorReference(_Owning())
    ptr = ref.allocate(4, 4)
    assert ref.owns(ptr) is True
    ref.deallocate(ptr, 4, 4)
    assert ref.owns(ptr) is False


def test_allocator_reference_owns_unsupported():
    with pytest.raises(TypeError):
        AllocatorReference(Mallocator()).owns(0)


def test_poly_memory_resource_is_abstract():
    with pytest.raises(TypeError):
        PolyMemoryResource()


def test_memory_resource_wraps_allocator():
    inner = Mallocator()
    resource = MemoryResource(inner)
    assert isinstance(resource, PolyMemoryResource)
    assert resource.allocator is inner
    ptr = resource.allocate(2, 1)
    write_bytes(ptr, b"ok")
    assert read_bytes(ptr, 2) == b"ok"
    resource.deallocate(ptr, 2, 1)
    with pytest.raises(ValueError):
        read_bytes(ptr, 1)


@dataclass
class _Comparable:
    ident: int

    def allocate(self, size, align):
        return None

    def deallocate(self, ptr, size, align):
        pass


def test_alloc_equals():
    assert alloc_equals(Mallocator(), Mallocator()) is True
    assert alloc_equals(PageAllocator(), PageAllocator()) is False
    assert alloc_equals(Mallocator(), PageAllocator()) is False
    assert alloc_equals(_Comparable(1), _Comparable(1)) is True
    assert alloc_equals(_Comparable(1), _Comparable(2)) is False