import pytest

from geeklib.heap import Heap

START = 0x1000


def test_malloc_inside_initial_region():
    heap = Heap(START, 256)
    address = heap.malloc(16)
    assert START <= address < START + 256


def test_write_read_round_trip():
    heap = Heap(START, 256)
    address = heap.malloc(10)
    heap.pool.write(address, b"0123456789")
    assert heap.pool.read(address, 10) == b"0123456789"


def test_free_restores_free_space():
    heap = Heap(START, 256)
    before = heap.stats()
    address = heap.malloc(40)
    assert heap.stats().current_allocated > 0
    heap.free(address)
    after = heap.stats()
    assert after.current_allocated == 0
    assert after.total_free == before.total_free
    assert after.releases == 1


def test_distinct_buffers_do_not_overlap():
    heap = Heap(START, 512)
    first = heap.malloc(32)
    second = heap.malloc(32)
    assert abs(first - second) >= 32


def test_expansion_adds_pool_block():
    heap = Heap(START, 64)
    address = heap.malloc(100)
    assert address >= START + 64
    assert heap.pool.extended_stats().pool_blocks == 2


def test_custom_sbrk_called_with_page_size():
    calls = []
    next_block = [0x100000]

    def sbrk(size):
        calls.append(size)
        address = next_block[0]
        next_block[0] += size
        return address

    heap = Heap(START, 64, page_size=4096, sbrk=sbrk)
    address = heap.malloc(100)
    assert calls == [4096]
    assert 0x100000 <= address < 0x100000 + 4096


def test_large_request_acquired_directly():
    heap = Heap(START, 64)
    address = heap.malloc(10000)
    assert heap.pool.extended_stats().direct_gets == 1
    heap.pool.write(address, b"x" * 10000)
    assert heap.pool.read(address, 10000) == b"x" * 10000


def test_direct_buffer_cannot_be_freed_without_release_function():
    heap = Heap(START, 64)
    address = heap.malloc(10000)
    with pytest.raises(RuntimeError):
        heap.free(address)


def test_exhausted_heap_raises_memory_error():
    heap = Heap(START, 64, limit=START + 64)
    with pytest.raises(MemoryError):
        heap.malloc(100)


def test_default_sbrk_moves_break():
    heap = Heap(START, 64)
    before = heap.brk
    heap.malloc(100)
    assert heap.brk > before


def test_zero_size_rejected():
    heap = Heap(START, 256)
    with pytest.raises(ValueError):
        heap.malloc(0)


def test_free_unmapped_address_rejected():
    heap = Heap(START, 256)
    with pytest.raises(ValueError):
        heap.free(0x900000)