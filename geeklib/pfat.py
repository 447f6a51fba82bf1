"""On-disk records of the pseudo-FAT filesystem."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

FAT_ENTRY_FREE = 0
FAT_ENTRY_EOF = 1
PFAT_MAGIC = 0x78320000
PFAT_BOOT_RECORD_OFFSET = 482
SECTOR_SIZE = 512
FILE_NAME_LEN = 12

_READ_ONLY = 0x01
_HIDDEN = 0x02
_SYSTEM_FILE = 0x04
_VOLUME_LABEL = 0x08
_DIRECTORY = 0x10


def _unpack(fmt: struct.Struct, data: bytes) -> tuple:
    if len(data) < fmt.size:
        raise ValueError(f"need {fmt.size} bytes, got {len(data)}")
    return fmt.unpack_from(data)


@dataclass
class BootSector:
    """The PFAT record stored in the boot sector."""

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<5i4h")

    magic: int = PFAT_MAGIC
    file_allocation_offset: int = 0
    file_allocation_length: int = 0
    root_directory_offset: int = 0
    root_directory_count: int = 0
    setup_start: int = 0
    setup_size: int = 0
    kernel_start: int = 0
    kernel_size: int = 0

    def pack(self) -> bytes:
        """Encode the record in its on-disk layout."""
        return self.FORMAT.pack(
            self.magic,
            self.file_allocation_offset,
            self.file_allocation_length,
            self.root_directory_offset,
            self.root_directory_count,
            self.setup_start,
            self.setup_size,
            self.kernel_start,
            self.kernel_size,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "BootSector":
        """Decode a record from the start of data."""
        return cls(*_unpack(cls.FORMAT, data))


@dataclass
class DirectoryEntry:
    """One entry of the root directory."""

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<12sBxhhxxii")

    file_name: str = ""
    read_only: bool = False
    hidden: bool = False
    system_file: bool = False
    volume_label: bool = False
    directory: bool = False
    time: int = 0
    date: int = 0
    first_block: int = 0
    file_size: int = 0

    def _attributes(self) -> int:
        bits = (
            (self.read_only, _READ_ONLY),
            (self.hidden, _HIDDEN),
            (self.system_file, _SYSTEM_FILE),
            (self.volume_label, _VOLUME_LABEL),
            (self.directory, _DIRECTORY),
        )
        return sum(bit for flag, bit in bits if flag)

    def pack(self) -> bytes:
        """Encode the entry; the name is cut or NUL-padded to 12 bytes."""
        name = self.file_name.encode("latin-1")[:FILE_NAME_LEN]
        return self.FORMAT.pack(
            name,
            self._attributes(),
            self.time,
            self.date,
            self.first_block,
            self.file_size,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "DirectoryEntry":
        """Decode an entry from the start of data."""
        name, attrs, time, date, first_block, file_size = _unpack(cls.FORMAT, data)
        return cls(
            file_name=name.split(b"\0", 1)[0].decode("latin-1"),
            read_only=bool(attrs & _READ_ONLY),
            hidden=bool(attrs & _HIDDEN),
            system_file=bool(attrs & _SYSTEM_FILE),
            volume_label=bool(attrs & _VOLUME_LABEL),
            directory=bool(attrs & _DIRECTORY),
            time=time,
            date=date,
            first_block=first_block,
            file_size=file_size,
        )