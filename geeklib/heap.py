"""A process heap: a buffer pool that grows by moving a program break."""

from __future__ import annotations

from typing import Callable, Optional

from geeklib.bget import BufferPool, PoolStats

PAGE_SIZE = 4096

SbrkFn = Callable[[int], Optional[int]]


class Heap:
    """Dynamic memory for one process.

    The heap starts as the region [start, start+size).  When a request
    cannot be met, the pool asks for more memory through sbrk.  By default
    that moves an internal program break upwards from the end of the
    initial region, optionally stopping at limit.  Requests larger than
    one page are served directly by sbrk.
    """

    def __init__(
        self,
        start: int,
        size: int,
        *,
        page_size: int = PAGE_SIZE,
        limit: Optional[int] = None,
        sbrk: Optional[SbrkFn] = None,
    ) -> None:
        self._brk = start + size
        self._limit = limit
        self.pool = BufferPool()
        self.pool.add_pool(start, size)
        self.pool.set_expansion(None, sbrk or self._sbrk, None, page_size)

    @property
    def brk(self) -> int:
        """Current program break of the default extender."""
        return self._brk

    def _sbrk(self, size: int) -> Optional[int]:
        if self._limit is not None and self._brk + size > self._limit:
            return None
        address = self._brk
        self._brk += size
        return address

    def malloc(self, size: int) -> int:
        """Allocate size bytes; raise MemoryError if the heap cannot grow."""
        return self.pool.get(size)

    def free(self, address: int) -> None:
        """Give a buffer returned by malloc back to the heap."""
        self.pool.release(address)

    def stats(self) -> PoolStats:
        """Allocation and free-space figures of the underlying pool."""
        return self.pool.stats()