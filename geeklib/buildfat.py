"""Build a pseudo-FAT disk image from a list of files."""

from __future__ import annotations

import struct
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from geeklib.pfat import (
    FAT_ENTRY_EOF,
    FAT_ENTRY_FREE,
    FILE_NAME_LEN,
    PFAT_BOOT_RECORD_OFFSET,
    PFAT_MAGIC,
    SECTOR_SIZE,
    BootSector,
    DirectoryEntry,
)

PathLike = Union[str, Path]

USAGE = "usage: buildFat [-b <boot block> ] <diskImage> <files>"
DIRECTORY_ENTRY_SIZE = DirectoryEntry.FORMAT.size
_FAT_ENTRY = struct.Struct("<i")
_FAILURE = 255


def round_to_next_block(x: int) -> int:
    """Round x up to a whole number of sectors."""
    remainder = x % SECTOR_SIZE
    return x if remainder == 0 else x + SECTOR_SIZE - remainder


def _claim(fat: list[int], index: int, value: int, image: PathLike) -> None:
    if index >= len(fat):
        raise ValueError(f"Error: {image} is full")
    fat[index] = value


def _directory_name(path: PathLike) -> str:
    name = str(path).rsplit("/", 1)[-1]
    return name.encode("latin-1")[:FILE_NAME_LEN].decode("latin-1")


def _first_data_block(boot: BootSector) -> int:
    directory_bytes = DIRECTORY_ENTRY_SIZE * boot.root_directory_count
    return boot.root_directory_offset + round_to_next_block(directory_bytes) // SECTOR_SIZE


def build_image(
    image: PathLike,
    files: Iterable[PathLike],
    boot_block: Optional[PathLike] = None,
) -> tuple[BootSector, list[DirectoryEntry]]:
    """Lay files out on an existing image and write the FAT, directory and boot record.

    If boot_block is given, its first sector is copied to sector 0 and the
    first two files are recorded as the setup program and the kernel.
    Returns the boot record and the directory entries written.
    """
    image = Path(image)
    paths = list(files)
    disk_size = image.stat().st_size
    if disk_size % SECTOR_SIZE != 0:
        raise ValueError("image is not a multiple of 512 bytes")

    blocks = disk_size // SECTOR_SIZE
    fat_length = round_to_next_block(blocks) // SECTOR_SIZE * 4
    boot = BootSector(
        magic=PFAT_MAGIC,
        file_allocation_offset=1,
        file_allocation_length=fat_length,
        root_directory_offset=fat_length + 1,
        root_directory_count=len(paths),
    )
    fat = [FAT_ENTRY_FREE] * blocks
    entries: list[DirectoryEntry] = []
    next_free = _first_data_block(boot)

    with image.open("r+b") as disk:
        if boot_block is not None:
            record = Path(boot_block).read_bytes()[:SECTOR_SIZE]
            disk.seek(0)
            disk.write(record.ljust(SECTOR_SIZE, b"\0"))

        for index, path in enumerate(paths):
            data = Path(path).read_bytes()
            num_blocks = round_to_next_block(len(data)) // SECTOR_SIZE
            first = next_free

            if boot_block is not None:
                if index == 0:
                    boot.setup_start, boot.setup_size = first, num_blocks
                elif index == 1:
                    boot.kernel_start, boot.kernel_size = first, num_blocks

            for _ in range(num_blocks - 1):
                _claim(fat, next_free, next_free + 1, image)
                next_free += 1
            _claim(fat, next_free, FAT_ENTRY_EOF, image)
            next_free += 1

            disk.seek(first * SECTOR_SIZE)
            disk.write(data)
            entries.append(
                DirectoryEntry(
                    file_name=_directory_name(path),
                    first_block=first,
                    file_size=len(data),
                )
            )

        disk.seek(SECTOR_SIZE)
        disk.write(b"".join(_FAT_ENTRY.pack(value) for value in fat))

        disk.seek(boot.root_directory_offset * SECTOR_SIZE)
        disk.write(b"".join(entry.pack() for entry in entries))

        disk.seek(PFAT_BOOT_RECORD_OFFSET)
        disk.write(boot.pack())

    return boot, entries


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point: buildFat [-b <boot block>] <diskImage> <files>."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(USAGE)
        return _FAILURE

    boot_block: Optional[str] = None
    if args[0] == "-b":
        print("writing boot block")
        if len(args) < 3:
            print(USAGE)
            return _FAILURE
        boot_block, args = args[1], args[2:]

    image, files = args[0], args[1:]
    print(f"image file = {image}")

    try:
        boot, entries = build_image(image, files, boot_block)
    except OSError as exc:
        print(f"Error: {exc}")
        return _FAILURE
    except ValueError as exc:
        print(exc)
        return _FAILURE

    print(f"first data blocks is {_first_data_block(boot)}")
    for index, entry in enumerate(entries):
        if boot_block is not None and index == 0:
            print(
                f"setup file starts at {boot.setup_start}, "
                f"{boot.setup_size} sectors long"
            )
        elif boot_block is not None and index == 1:
            print(
                f"kernel file starts at {boot.kernel_start}, "
                f"{boot.kernel_size} sectors long"
            )
        print(f"file {entry.file_name} starts at block {entry.first_block}")
    print(f"putting the directory at sector {boot.root_directory_offset}")
    return 0