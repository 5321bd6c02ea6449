# strobe

A small core library of building blocks:

- **Allocators**
  - `strobe.allocators` holds a simulated, process-wide address space. Allocators hand out plain integer addresses. `read_bytes` and `write_bytes` reach the memory behind them.
  - The module provides `Mallocator`, `PageAllocator`, `AllocatorReference`, `PolyMemoryResource` / `MemoryResource`, `align_up`, `page_size` and `alloc_equals`.
- **Buddy and pool resources**
  - `strobe.buddy.BuddyResource` splits a power-of-two buffer into power-of-two blocks and merges freed buddies.
  - `strobe.pool` provides `MonotonicPoolResource` and the thread safe `LockFreeMonotonicPoolResource`. Both hand out fixed-size nodes from geometrically growing chunks.
- **Reference counting**
  - `strobe.reference_counter.ReferenceCounter` is a thread safe counter.
  - `strobe.shared_block` provides `SharedBlock` and `make_shared_block`.
  - `strobe.smart_pointers` provides:
    - `SharedPtr` and `PolySharedPtr`, with shared ownership.
    - `Block` / `BlockRef`, a single owner that lends out counted references.
    - `SharedBlockRef` / `WeakBlockRef`, strong and weak references.
- **Filesystem**
  - `strobe.path` provides `Path` and `normalize_path`. A trailing `/` marks a directory.
  - `strobe.stat` provides `stat`, `exists`, `Stat`, `FileType` and `StatFlags`.
  - `strobe.mkdir` provides `mkdir` and `MkdirFlags`.
  - `strobe.mv` provides `mv` and `MvFlags`.
  - `strobe.rm` provides `rm` and `RmFlags`.
  - `strobe.file` provides `File`, `FileAccess` and `FileSeek`.
  - `strobe.directory` provides `Directory` and `DirectoryEntry`.
  - These are thin POSIX-style helpers. They raise `OSError` subclasses or `ValueError` on failure.

## Installation

```
pip install .
```

## Examples

### Pool allocation

```python
from strobe.allocators import Mallocator, read_bytes, write_bytes
from strobe.pool import MonotonicPoolResource

pool = MonotonicPoolResource(4, 4, Mallocator())
address = pool.allocate(4, 4)
write_bytes(address, b"\x01\x02\x03\x04")
assert read_bytes(address, 4) == b"\x01\x02\x03\x04"
pool.deallocate(address, 4, 4)
pool.release()
```

### Buddy allocation

`BuddyResource` takes its buffer from a `PageAllocator` unless it is given another upstream allocator:

```python
from strobe.buddy import BuddyResource

with BuddyResource(1024, 64) as buddy:
    block = buddy.allocate(100, 4)   # served from a 128-byte block
    assert buddy.owns(block)
    buddy.deallocate(block, 100, 4)
```

### Reference-counted handles

```python
from strobe.allocators import Mallocator
from strobe.smart_pointers import WeakBlockRef, make_shared_block_ref, make_shared_ptr

alloc = Mallocator()

first = make_shared_ptr(alloc, dict, a=1)
second = first.copy()
first.release()
assert second.value == {"a": 1}
second.release()

strong = make_shared_block_ref(alloc, list)
weak = WeakBlockRef(strong)
strong.release()
assert weak.expired()
assert not weak.lock()
weak.release()
```

### Paths and the filesystem

```python
from strobe.path import Path, normalize_path
from strobe.mkdir import MkdirFlags, mkdir
from strobe.rm import RmFlags, rm
from strobe.file import File, FileAccess

assert normalize_path("a/b/../c/") == "a/c/"
assert Path("dir/file.txt").extension() == "txt"

mkdir("build/out/", MkdirFlags.PARENTS)
with File("build/out/data.bin", FileAccess.WRITE | FileAccess.CREATE) as f:
    f.write(b"hello")
rm("build/", RmFlags.RECURSIVE)
```

## What it does not do

- The package has no event dispatching and no listener types.
- Allocators work on a simulated address space, not on real process memory.

## Running the tests

```
pip install .[test]
pytest
```