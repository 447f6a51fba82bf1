import struct

import pytest

from geeklib.pfat import (
    FILE_NAME_LEN,
    PFAT_BOOT_RECORD_OFFSET,
    PFAT_MAGIC,
    SECTOR_SIZE,
    BootSector,
    DirectoryEntry,
)


def test_boot_sector_round_trip():
    sector = BootSector(
        file_allocation_offset=1,
        file_allocation_length=4,
        root_directory_offset=5,
        root_directory_count=2,
        setup_start=6,
        setup_size=3,
        kernel_start=9,
        kernel_size=100,
    )
    assert BootSector.unpack(sector.pack()) == sector


def test_boot_sector_starts_with_magic():
    data = BootSector().pack()
    assert struct.unpack_from("<i", data)[0] == PFAT_MAGIC


def test_boot_record_fits_in_sector():
    assert PFAT_BOOT_RECORD_OFFSET + len(BootSector().pack()) <= SECTOR_SIZE


def test_directory_entry_round_trip():
    entry = DirectoryEntry(
        file_name="kernel.exe",
        read_only=True,
        directory=False,
        hidden=True,
        time=3,
        date=4,
        first_block=7,
        file_size=9000,
    )
    data = entry.pack()
    assert len(data) == DirectoryEntry.FORMAT.size
    assert DirectoryEntry.unpack(data) == entry


def test_directory_entry_name_truncated_to_field():
    entry = DirectoryEntry(file_name="averyverylongname.exe")
    decoded = DirectoryEntry.unpack(entry.pack())
    assert decoded.file_name == "averyverylongname.exe"[:FILE_NAME_LEN]


@pytest.mark.parametrize(
    "flag", ["read_only", "hidden", "system_file", "volume_label", "directory"]
)
def test_each_attribute_survives_alone(flag):
    entry = DirectoryEntry(file_name="a", **{flag: True})
    decoded = DirectoryEntry.unpack(entry.pack())
    assert getattr(decoded, flag) is True
    others = {"read_only", "hidden", "system_file", "volume_label", "directory"} - {flag}
    assert not any(getattr(decoded, name) for name in others)


def test_short_data_rejected():
    with pytest.raises(ValueError):
        BootSector.unpack(b"\0" * 4)
    with pytest.raises(ValueError):
        DirectoryEntry.unpack(b"")