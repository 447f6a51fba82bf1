"""Inspection of a buffer pool: hex dumps, block listings and validation."""

from __future__ import annotations

import struct

from geeklib.bget import (
    BFHEAD_SIZE,
    BHEAD_SIZE,
    BLINK_OFFSET,
    BSIZE_OFFSET,
    END_SENTINEL,
    FLINK_OFFSET,
    BufferPool,
)

_INT = struct.Struct("<i")
_LINK = struct.Struct("<I")
_LINE_BYTES = 16


def _int_at(pool: BufferPool, address: int) -> int:
    return _INT.unpack(pool.read(address, 4))[0]


def _link_at(pool: BufferPool, address: int) -> int:
    return _LINK.unpack(pool.read(address, 4))[0]


def _bsize(pool: BufferPool, block: int) -> int:
    return _int_at(pool, block + BSIZE_OFFSET)


def _links_ok(pool: BufferPool, block: int) -> bool:
    forward = _link_at(pool, block + FLINK_OFFSET)
    back = _link_at(pool, block + BLINK_OFFSET)
    return (
        _link_at(pool, back + FLINK_OFFSET) == block
        and _link_at(pool, forward + BLINK_OFFSET) == block
    )


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte <= 0x7E else " "


def _hex_line(chunk: bytes) -> str:
    hex_part = "".join(f"{byte:02X} " for byte in chunk)
    ascii_part = "".join(_printable(byte) for byte in chunk)
    return f"{hex_part:<48}   {ascii_part}"


def dump_buffer(pool: BufferPool, address: int) -> list[str]:
    """Hex dump of the buffer whose user data starts at address.

    Works on allocated buffers and on free blocks.  Runs of more than one
    line identical to the line before are folded into a single note.
    """
    block = address - BHEAD_SIZE
    bsize = _bsize(pool, block)
    if bsize == 0:
        raise ValueError(f"buffer at {address:#x} has no pool header to dump")
    if bsize < 0:
        data = pool.read(address, -bsize - BHEAD_SIZE)
    else:
        data = pool.read(block + BFHEAD_SIZE, bsize - BFHEAD_SIZE)

    lines: list[str] = []
    pos = 0
    remaining = len(data)
    while remaining > 0:
        length = min(remaining, _LINE_BYTES)
        lines.append(_hex_line(data[pos:pos + length]))
        pos += length
        remaining -= length
        dupes = 0
        while (
            remaining > _LINE_BYTES
            and data[pos - _LINE_BYTES:pos] == data[pos:pos + _LINE_BYTES]
        ):
            dupes += 1
            pos += _LINE_BYTES
            remaining -= _LINE_BYTES
        if dupes > 1:
            lines.append(
                f"     ({dupes} lines [{dupes * _LINE_BYTES} bytes] "
                "identical to above line skipped)"
            )
        elif dupes == 1:
            pos -= _LINE_BYTES
            remaining += _LINE_BYTES
    return lines


def dump_pool(
    pool: BufferPool, start: int, dump_alloc: bool, dump_free: bool
) -> list[str]:
    """List every buffer of the pool block at start in address order.

    Buffer contents are included for allocated buffers if dump_alloc is set
    and for free blocks if dump_free is set.
    """
    lines: list[str] = []
    block = start
    while (bsize := _bsize(pool, block)) != END_SENTINEL:
        if bsize < 0:
            bsize = -bsize
            lines.append(f"Allocated buffer: size {bsize:6d} bytes.")
            if dump_alloc:
                lines.extend(dump_buffer(pool, block + BHEAD_SIZE))
        elif bsize == 0:
            raise RuntimeError(f"block at {block:#x} has a zero size")
        else:
            note = "" if _links_ok(pool, block) else "  (Bad free list links)"
            lines.append(f"Free block:       size {bsize:6d} bytes.{note}")
            if dump_free:
                lines.extend(dump_buffer(pool, block + BHEAD_SIZE))
        block += bsize
    return lines


def validate_pool(pool: BufferPool, start: int) -> bool:
    """True if every free block of the pool block at start is properly linked."""
    block = start
    while (bsize := _bsize(pool, block)) != END_SENTINEL:
        if bsize < 0:
            bsize = -bsize
        elif bsize == 0 or not _links_ok(pool, block):
            return False
        block += bsize
    return True