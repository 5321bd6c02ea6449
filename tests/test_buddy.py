import pytest

from strobe.allocators import Mallocator, read_bytes, write_bytes
from strobe.buddy import BuddyResource

CAPACITY = 1024
BLOCK = 64


@pytest.fixture
def buddy():
    resource = BuddyResource(CAPACITY, BLOCK)
    yield resource
    resource.release()


def test_first_block_is_start_of_buffer(buddy):
    a = buddy.allocate(BLOCK, BLOCK)
    buddy.deallocate(a, BLOCK, BLOCK)
    whole = buddy.allocate(CAPACITY, BLOCK)
    assert whole == a


def test_whole_capacity_then_exhausted(buddy):
    whole = buddy.allocate(CAPACITY, 16)
    assert whole is not None
    assert buddy.allocate(BLOCK, BLOCK) is None
    buddy.deallocate(whole, CAPACITY, 16)
    assert buddy.allocate(CAPACITY, 16) == whole


def test_all_blocks_distinct_and_owned(buddy):
    blocks = [buddy.allocate(BLOCK, BLOCK) for _ in range(CAPACITY // BLOCK)]
    assert None not in blocks
    assert len(set(blocks)) == len(blocks)
    assert all(buddy.owns(p) for p in blocks)
    assert buddy.allocate(BLOCK, BLOCK) is None
    start = min(blocks)
    assert sorted(p - start for p in blocks) == list(range(0, CAPACITY, BLOCK))


def test_free_in_any_order_coalesces(buddy):
    blocks = [buddy.allocate(BLOCK, BLOCK) for _ in range(CAPACITY // BLOCK)]
    for p in blocks[1::2] + blocks[0::2]:
        buddy.deallocate(p, BLOCK, BLOCK)
    assert buddy.allocate(CAPACITY, BLOCK) == min(blocks)


def test_mixed_sizes_do_not_overlap(buddy):
    sizes = [BLOCK * 4, BLOCK, BLOCK * 2, BLOCK]
    ptrs = [buddy.allocate(s, BLOCK) for s in sizes]
    assert None not in ptrs
    for ptr, size in zip(ptrs, sizes):
        write_bytes(ptr, bytes([size // BLOCK]) * size)
    for ptr, size in zip(ptrs, sizes):
        assert read_bytes(ptr, size) == bytes([size // BLOCK]) * size
    spans = sorted(zip(ptrs, sizes))
    for (p1, s1), (p2, _) in zip(spans, spans[1:]):
        assert p1 + s1 <= p2
    for ptr, size in zip(ptrs, sizes):
        buddy.deallocate(ptr, size, BLOCK)
    assert buddy.allocate(CAPACITY, BLOCK) is not None


def test_small_request_uses_minimum_block(buddy):
    a = buddy.allocate(1, 1)
    b = buddy.allocate(1, 1)
    assert abs(b - a) >= BLOCK


def test_oversized_request_returns_none(buddy):
    assert buddy.allocate(CAPACITY * 2, 16) is None


def test_owns_outside_buffer(buddy):
    whole = buddy.allocate(CAPACITY, 16)
    assert buddy.owns(whole + CAPACITY - 1) is True
    assert buddy.owns(whole + CAPACITY) is False
    assert buddy.owns(whole - 1) is False


@pytest.mark.parametrize("capacity,block", [(1000, 64), (1024, 48), (64, 64), (64, 128)])
def test_invalid_geometry(capacity, block):
    with pytest.raises(ValueError):
        BuddyResource(capacity, block)


def test_invalid_alignment(buddy):
    with pytest.raises(ValueError):
        buddy.allocate(BLOCK, 3)
    with pytest.raises(ValueError):
        buddy.allocate(BLOCK, BLOCK * 2)


def test_invalid_deallocate(buddy):
    ptr = buddy.allocate(BLOCK, BLOCK)
    with pytest.raises(ValueError):
        buddy.deallocate(ptr, 0, BLOCK)
    with pytest.raises(ValueError):
        buddy.deallocate(ptr, CAPACITY * 2, BLOCK)
    buddy.deallocate(ptr, BLOCK, BLOCK)
    with pytest.raises(ValueError):
        buddy.deallocate(ptr, BLOCK, BLOCK)


def test_release_with_mallocator_upstream():
    resource = BuddyResource(CAPACITY, BLOCK, Mallocator())
    ptr = resource.allocate(BLOCK, BLOCK)
    write_bytes(ptr, b"hi")
    resource.release()
    assert resource.owns(ptr) is False
    with pytest.raises(ValueError):
        read_bytes(ptr, 2)
    with pytest.raises(RuntimeError):
        resource.allocate(BLOCK, BLOCK)


def test_context_manager_releases():
    with BuddyResource(CAPACITY, BLOCK) as resource:
        ptr = resource.allocate(BLOCK, BLOCK)
        assert resource.owns(ptr) is True
    with pytest.raises(ValueError):
        read_bytes(ptr, 1)