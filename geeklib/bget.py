"""A buffer pool allocator working over a simulated linear address space.

Buffers are carved out of pool blocks with a best-fit search, adjacent free
buffers are merged on release, and optional call-backs let the pool compact
storage, acquire expansion blocks and give empty blocks back.  All headers
and free-list links live inside the simulated memory, exactly where a native
allocator would keep them, so a pool can be walked and checked from outside.
"""

from __future__ import annotations

import bisect
import struct
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

BHEAD_SIZE = 8
QLINKS_SIZE = 8
BFHEAD_SIZE = BHEAD_SIZE + QLINKS_SIZE
BDHEAD_SIZE = 4 + BHEAD_SIZE
SIZE_QUANT = 4
SIZE_Q = max(SIZE_QUANT, QLINKS_SIZE)
END_SENTINEL = -(1 << 31)
MAX_BUFFER = (1 << 31) - 1
FREELIST = 0

PREVFREE_OFFSET = 0
BSIZE_OFFSET = 4
FLINK_OFFSET = 8
BLINK_OFFSET = 12

_ADDRESS_LIMIT = 1 << 32
_INT = struct.Struct("<i")
_LINK = struct.Struct("<I")

CompactFn = Callable[[int, int], bool]
AcquireFn = Callable[[int], Optional[int]]
ReleaseFn = Callable[[int], None]


@dataclass(frozen=True)
class PoolStats:
    """Allocation and free-space figures for a pool."""

    current_allocated: int
    total_free: int
    max_free: int
    gets: int
    releases: int


@dataclass(frozen=True)
class ExtendedStats:
    """Figures about expansion blocks and direct acquisitions."""

    pool_increment: int
    pool_blocks: int
    pool_gets: int
    pool_releases: int
    direct_gets: int
    direct_releases: int


class BufferPool:
    """Best-fit buffer allocator with optional automatic expansion."""

    def __init__(self) -> None:
        self._regions: dict[int, bytearray] = {}
        self._starts: list[int] = []
        self._compact: Optional[CompactFn] = None
        self._acquire: Optional[AcquireFn] = None
        self._release: Optional[ReleaseFn] = None
        self._exp_incr = 0
        self._pool_len = 0
        self._total_alloc = 0
        self._num_get = 0
        self._num_rel = 0
        self._num_pool_blocks = 0
        self._num_pool_get = 0
        self._num_pool_rel = 0
        self._num_direct_get = 0
        self._num_direct_rel = 0
        self._map(FREELIST, BFHEAD_SIZE)
        self._set_link(FREELIST + FLINK_OFFSET, FREELIST)
        self._set_link(FREELIST + BLINK_OFFSET, FREELIST)

    # ------------------------------------------------------------------
    # Simulated memory
    # ------------------------------------------------------------------

    def _map(self, start: int, length: int) -> None:
        if start < 0 or start + length > _ADDRESS_LIMIT:
            raise ValueError(f"region {start:#x}+{length} is outside the address space")
        index = bisect.bisect_left(self._starts, start)
        if index > 0:
            before = self._starts[index - 1]
            if before + len(self._regions[before]) > start:
                raise ValueError(f"region at {start:#x} overlaps mapped memory")
        if index < len(self._starts) and self._starts[index] < start + length:
            raise ValueError(f"region at {start:#x} overlaps mapped memory")
        self._starts.insert(index, start)
        self._regions[start] = bytearray(length)

    def _unmap(self, start: int) -> None:
        if start in self._regions:
            del self._regions[start]
            self._starts.remove(start)

    def _locate(self, address: int, length: int) -> tuple[bytearray, int]:
        index = bisect.bisect_right(self._starts, address) - 1
        if index >= 0:
            start = self._starts[index]
            region = self._regions[start]
            offset = address - start
            if offset + length <= len(region):
                return region, offset
        raise ValueError(f"address {address:#x} (+{length}) is not mapped")

    def _covered(self, start: int, length: int) -> bool:
        try:
            self._locate(start, length)
        except ValueError:
            return False
        return True

    def _get_int(self, address: int) -> int:
        region, offset = self._locate(address, 4)
        return _INT.unpack_from(region, offset)[0]

    def _set_int(self, address: int, value: int) -> None:
        region, offset = self._locate(address, 4)
        _INT.pack_into(region, offset, value)

    def _get_link(self, address: int) -> int:
        region, offset = self._locate(address, 4)
        return _LINK.unpack_from(region, offset)[0]

    def _set_link(self, address: int, value: int) -> None:
        region, offset = self._locate(address, 4)
        _LINK.pack_into(region, offset, value)

    def read(self, address: int, length: int) -> bytes:
        """Read length bytes of simulated memory starting at address."""
        region, offset = self._locate(address, length)
        return bytes(region[offset:offset + length])

    def write(self, address: int, data: bytes) -> None:
        """Write data into simulated memory starting at address."""
        region, offset = self._locate(address, len(data))
        region[offset:offset + len(data)] = data

    # ------------------------------------------------------------------
    # Header and free-list access
    # ------------------------------------------------------------------

    def _bsize(self, block: int) -> int:
        return self._get_int(block + BSIZE_OFFSET)

    def _set_bsize(self, block: int, value: int) -> None:
        self._set_int(block + BSIZE_OFFSET, value)

    def _prevfree(self, block: int) -> int:
        return self._get_int(block + PREVFREE_OFFSET)

    def _set_prevfree(self, block: int, value: int) -> None:
        self._set_int(block + PREVFREE_OFFSET, value)

    def _flink(self, block: int) -> int:
        return self._get_link(block + FLINK_OFFSET)

    def _blink(self, block: int) -> int:
        return self._get_link(block + BLINK_OFFSET)

    def _unlink(self, block: int) -> None:
        back, forward = self._blink(block), self._flink(block)
        if self._flink(back) != block or self._blink(forward) != block:
            raise RuntimeError(f"free list links of block {block:#x} are corrupt")
        self._set_link(back + FLINK_OFFSET, forward)
        self._set_link(forward + BLINK_OFFSET, back)

    def _append_free(self, block: int) -> None:
        tail = self._blink(FREELIST)
        if self._flink(tail) != FREELIST or self._blink(self._flink(FREELIST)) != FREELIST:
            raise RuntimeError("free list links are corrupt")
        self._set_link(block + FLINK_OFFSET, FREELIST)
        self._set_link(block + BLINK_OFFSET, tail)
        self._set_link(FREELIST + BLINK_OFFSET, block)
        self._set_link(tail + FLINK_OFFSET, block)

    def _free_blocks(self) -> Iterator[int]:
        block = self._flink(FREELIST)
        while block != FREELIST:
            yield block
            block = self._flink(block)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def set_expansion(
        self,
        compact: Optional[CompactFn],
        acquire: Optional[AcquireFn],
        release: Optional[ReleaseFn],
        increment: int,
    ) -> None:
        """Install the compaction, acquisition and release call-backs."""
        self._compact = compact
        self._acquire = acquire
        self._release = release
        self._exp_incr = increment

    def add_pool(self, start: int, length: int) -> None:
        """Contribute the region [start, start+length) to the pool."""
        length &= ~(SIZE_QUANT - 1)
        if length < BFHEAD_SIZE + BHEAD_SIZE:
            raise ValueError(f"pool block of {length} bytes is too small")
        if length - BHEAD_SIZE > MAX_BUFFER:
            raise ValueError(f"pool block of {length} bytes is too large")
        if not self._covered(start, length):
            self._map(start, length)

        if self._pool_len == 0:
            self._pool_len = length
        elif length != self._pool_len:
            self._pool_len = -1
        self._num_pool_get += 1
        self._num_pool_blocks += 1

        self._set_prevfree(start, 0)
        self._append_free(start)
        free_len = length - BHEAD_SIZE
        self._set_bsize(start, free_len)
        end = start + free_len
        self._set_prevfree(end, free_len)
        self._set_bsize(end, END_SENTINEL)

    def get(self, size: int) -> int:
        """Allocate a buffer of at least size bytes and return its address."""
        if size <= 0:
            raise ValueError(f"buffer size must be positive, got {size}")
        requested = size
        size = max(size, SIZE_Q)
        size = (size + (SIZE_QUANT - 1)) & ~(SIZE_QUANT - 1)
        size += BHEAD_SIZE

        sequence = 0
        while True:
            best = FREELIST
            for block in self._free_blocks():
                bsize = self._bsize(block)
                if bsize >= size and (best == FREELIST or bsize < self._bsize(best)):
                    best = block
            if best != FREELIST:
                return self._allocate_from(best, size)
            sequence += 1
            if self._compact is None or not self._compact(size, sequence):
                break

        if self._acquire is not None:
            if size > self._exp_incr - BHEAD_SIZE:
                size += BDHEAD_SIZE - BHEAD_SIZE
                block = self._acquire(size)
                if block is not None:
                    if not self._covered(block, size):
                        self._map(block, size)
                    self._set_int(block, size)
                    header = block + BDHEAD_SIZE - BHEAD_SIZE
                    self._set_bsize(header, 0)
                    self._set_prevfree(header, 0)
                    self._total_alloc += size
                    self._num_get += 1
                    self._num_direct_get += 1
                    return block + BDHEAD_SIZE
            else:
                block = self._acquire(self._exp_incr)
                if block is not None:
                    self.add_pool(block, self._exp_incr)
                    return self.get(requested)

        raise MemoryError(f"no buffer of {requested} bytes available")

    def _allocate_from(self, block: int, size: int) -> int:
        bsize = self._bsize(block)
        if bsize - size > SIZE_Q + BHEAD_SIZE:
            allocated = block + bsize - size
            following = allocated + size
            if self._prevfree(following) != bsize:
                raise RuntimeError(f"back pointer after block {block:#x} is corrupt")
            self._set_bsize(block, bsize - size)
            self._set_prevfree(allocated, bsize - size)
            self._set_bsize(allocated, -size)
            self._set_prevfree(following, 0)
            self._total_alloc += size
            self._num_get += 1
            return allocated + BHEAD_SIZE

        following = block + bsize
        if self._prevfree(following) != bsize:
            raise RuntimeError(f"back pointer after block {block:#x} is corrupt")
        self._unlink(block)
        self._total_alloc += bsize
        self._num_get += 1
        self._set_bsize(block, -bsize)
        self._set_prevfree(following, 0)
        return block + BHEAD_SIZE

    def _usable_size(self, address: int) -> int:
        bsize = self._bsize(address - BHEAD_SIZE)
        if bsize == 0:
            return self._get_int(address - BDHEAD_SIZE) - BDHEAD_SIZE
        if bsize > 0:
            raise ValueError(f"address {address:#x} is not an allocated buffer")
        return -bsize - BHEAD_SIZE

    def get_zeroed(self, size: int) -> int:
        """Allocate a buffer and clear its whole contents to zero."""
        address = self.get(size)
        usable = self._usable_size(address)
        self.write(address, bytes(usable))
        return address

    def resize(self, address: Optional[int], size: int) -> int:
        """Move a buffer into a new one of the given size, keeping its data."""
        new_address = self.get(size)
        if address is None:
            return new_address
        old_size = self._usable_size(address)
        self.write(new_address, self.read(address, min(size, old_size)))
        self.release(address)
        return new_address

    def release(self, address: int) -> None:
        """Return an allocated buffer to the pool."""
        if address is None:
            raise ValueError("cannot release a null buffer")
        block = address - BHEAD_SIZE
        bsize = self._bsize(block)

        if bsize == 0:
            direct = address - BDHEAD_SIZE
            if self._prevfree(block) != 0:
                raise ValueError(f"address {address:#x} is not an allocated buffer")
            if self._release is None:
                raise RuntimeError("directly acquired buffer but no release function")
            self._num_rel += 1
            self._total_alloc -= self._get_int(direct)
            self._num_direct_rel += 1
            self._release(direct)
            self._unmap(direct)
            return

        if bsize > 0:
            raise ValueError(f"address {address:#x} is not an allocated buffer")
        if self._prevfree(block - bsize) != 0:
            raise RuntimeError(f"back pointer after buffer {address:#x} is corrupt")
        self._num_rel += 1
        self._total_alloc += bsize

        prevfree = self._prevfree(block)
        if prevfree != 0:
            if self._bsize(block - prevfree) != prevfree:
                raise RuntimeError(f"free block before {address:#x} is corrupt")
            block -= prevfree
            self._set_bsize(block, self._bsize(block) - bsize)
        else:
            self._append_free(block)
            self._set_bsize(block, -bsize)

        following = block + self._bsize(block)
        following_size = self._bsize(following)
        if following_size > 0:
            self._unlink(following)
            self._set_bsize(block, self._bsize(block) + following_size)
            following = block + self._bsize(block)
        if self._bsize(following) >= 0:
            raise RuntimeError("two free blocks are adjacent in memory")
        merged = self._bsize(block)
        self._set_prevfree(following, merged)

        if self._release is not None and merged == self._pool_len - BHEAD_SIZE:
            if self._prevfree(block) != 0 or self._bsize(following) != END_SENTINEL:
                raise RuntimeError(f"pool block at {block:#x} is corrupt")
            self._unlink(block)
            self._release(block)
            self._unmap(block)
            self._num_pool_rel += 1
            self._num_pool_blocks -= 1

    def stats(self) -> PoolStats:
        """Current allocation total, free space and call counts."""
        sizes = [self._bsize(block) for block in self._free_blocks()]
        return PoolStats(
            current_allocated=self._total_alloc,
            total_free=sum(sizes),
            max_free=max(sizes, default=-1),
            gets=self._num_get,
            releases=self._num_rel,
        )

    def extended_stats(self) -> ExtendedStats:
        """Figures about expansion blocks and direct acquisitions."""
        increment = -self._exp_incr if self._pool_len < 0 else self._exp_incr
        return ExtendedStats(
            pool_increment=increment,
            pool_blocks=self._num_pool_blocks,
            pool_gets=self._num_pool_get,
            pool_releases=self._num_pool_rel,
            direct_gets=self._num_direct_get,
            direct_releases=self._num_direct_rel,
        )