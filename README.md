# geeklib

Pure-Python building blocks from the user-space side of a small teaching
operating system:

- `geeklib.bget`: `BufferPool`, a best-fit buffer allocator over a simulated
  linear address space. Free space is merged on release, and optional
  callbacks can compact storage, acquire expansion blocks and take back empty
  ones. `stats()` returns a `PoolStats` and `extended_stats()` an
  `ExtendedStats`.
- `geeklib.pooldump`: `dump_buffer`, `dump_pool` and `validate_pool`, for hex
  dumps, block listings and free-list checks of a pool.
- `geeklib.heap`: `Heap`, with `malloc` and `free` on top of a pool that grows
  by moving a program break.
- `geeklib.pfat`: `BootSector` and `DirectoryEntry`, packed to and unpacked
  from their on-disk PFAT layout.
- `geeklib.buildfat`: `build_image` and the `buildfat` command, which lay
  files out on a PFAT disk image.
- `geeklib.wordcount`: `count`, `parse_wc_options` and `format_counts`, for
  counting lines, words and bytes the way `wc` does.

## Installing

    pip install .

## Building a disk image

The image file must already exist, and its size must be a multiple of 512
bytes. Each listed file is copied into it, and then the file allocation table,
the root directory and the boot record are written:

    buildfat diskc.img setup.bin kernel.exe

To also copy a boot block into the first sector, put `-b` and the boot block
first. The first two files are then recorded as the setup program and the
kernel:

    buildfat -b bootsect.bin diskc.img setup.bin kernel.exe

The same is available from Python:

    from geeklib.buildfat import build_image

    boot, entries = build_image("diskc.img", ["setup.bin", "kernel.exe"])

## Using the allocator

    from geeklib.bget import BufferPool
    from geeklib.pooldump import dump_pool, validate_pool

    pool = BufferPool()
    pool.add_pool(0x10000, 4096)
    address = pool.get(100)
    pool.write(address, b"hello")
    assert pool.read(address, 5) == b"hello"
    print("\n".join(dump_pool(pool, 0x10000, False, False)))
    assert validate_pool(pool, 0x10000)
    pool.release(address)
    print(pool.stats())

`get` raises `MemoryError` when no buffer can be found and the pool cannot
grow.

A `Heap` sets up a pool with an expansion callback for you:

    from geeklib.heap import Heap

    heap = Heap(0x10000, 4096, limit=0x20000)
    address = heap.malloc(10000)
    heap.free(address)

## Counting words

    from geeklib.wordcount import count, format_counts

    counts = count(b"one two\n")
    print(format_counts(counts, True, True, True), end="")

## What this package does not do

It has no shell, no console or screen handling, no keyboard codes and no
system calls: it does not run programs, read key presses or talk to a kernel.
The only command it provides is `buildfat`.

## Running the tests

    pip install ".[test]"
    pytest