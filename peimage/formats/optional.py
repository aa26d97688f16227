"""The optional header comes in two layouts selected by its magic number.
PE32 (0x10B) stores the image base and the stack/heap sizes as 32-bit values
and has a base_of_data field. PE32+ (0x20B) widens those to 64 bits and
drops base_of_data. The "optional" header is required for images."""

import dataclasses
from enum import IntEnum, IntFlag
import logging
import struct
from typing import ClassVar, Union

from .directories import PEDataDirectory, read_data_directories
from .exceptions import (
    TruncatedInputError,
    UnknownFormatError,
    UnsupportedFormatError,
)
from .reader import ImageReader

logger = logging.getLogger(__name__)

PE32_MAGIC = 0x10B
PE32_PLUS_MAGIC = 0x20B


class WindowsSubsystem(IntEnum):
    IMAGE_SUBSYSTEM_UNKNOWN = 0
    IMAGE_SUBSYSTEM_NATIVE = 1
    IMAGE_SUBSYSTEM_WINDOWS_GUI = 2
    IMAGE_SUBSYSTEM_WINDOWS_CUI = 3
    IMAGE_SUBSYSTEM_OS2_CUI = 5
    IMAGE_SUBSYSTEM_POSIX_CUI = 7
    IMAGE_SUBSYSTEM_NATIVE_WINDOWS = 8
    IMAGE_SUBSYSTEM_WINDOWS_CE_GUI = 9
    IMAGE_SUBSYSTEM_EFI_APPLICATION = 10
    IMAGE_SUBSYSTEM_EFI_BOOT_SERVICE_DRIVER = 11
    IMAGE_SUBSYSTEM_EFI_RUNTIME_DRIVER = 12
    IMAGE_SUBSYSTEM_EFI_ROM = 13
    IMAGE_SUBSYSTEM_XBOX = 14
    IMAGE_SUBSYSTEM_WINDOWS_BOOT_APPLICATION = 16


class DllCharacteristics(IntFlag):
    IMAGE_DLLCHARACTERISTICS_RESERVED_0X0001 = 0x0001
    IMAGE_DLLCHARACTERISTICS_RESERVED_0X0002 = 0x0002
    IMAGE_DLLCHARACTERISTICS_RESERVED_0X0004 = 0x0004
    IMAGE_DLLCHARACTERISTICS_RESERVED_0X0008 = 0x0008
    IMAGE_DLLCHARACTERISTICS_HIGH_ENTROPY_VA = 0x0020
    IMAGE_DLLCHARACTERISTICS_DYNAMIC_BASE = 0x0040
    IMAGE_DLLCHARACTERISTICS_FORCE_INTEGRITY = 0x0080
    IMAGE_DLLCHARACTERISTICS_NX_COMPAT = 0x0100
    IMAGE_DLLCHARACTERISTICS_NO_ISOLATION = 0x0200
    IMAGE_DLLCHARACTERISTICS_NO_SEH = 0x0400
    IMAGE_DLLCHARACTERISTICS_NO_BIND = 0x0800
    IMAGE_DLLCHARACTERISTICS_APPCONTAINER = 0x1000
    IMAGE_DLLCHARACTERISTICS_WDM_DRIVER = 0x2000
    IMAGE_DLLCHARACTERISTICS_GUARD_CF = 0x4000
    IMAGE_DLLCHARACTERISTICS_TERMINAL_SERVER_AWARE = 0x8000


def subsystem_or_int(value: int) -> WindowsSubsystem | int:
    try:
        return WindowsSubsystem(value)
    except ValueError:
        logger.debug("Unknown subsystem %d", value)
        return value


class _OptionalHeaderMixin:
    """Behavior shared by both layouts. Each layout lists its fields in file order
    and gives the struct format for everything between the magic and the
    data directory table."""

    MAGIC: ClassVar[int]
    STRUCT_FMT: ClassVar[str]

    @classmethod
    def field_names(cls) -> list[str]:
        return [
            f.name
            for f in dataclasses.fields(cls)  # type: ignore[arg-type]
            if f.name != "directories"
        ]

    @classmethod
    def from_reader(cls, reader: ImageReader):
        # One check for the whole record so we never build half a header.
        values = dict(
            zip(cls.field_names(), reader.unpack(cls.STRUCT_FMT, "optional header"))
        )
        values["subsystem"] = subsystem_or_int(values["subsystem"])
        values["dll_characteristics"] = DllCharacteristics(
            values["dll_characteristics"]
        )
        directories = read_data_directories(reader, values["number_of_rva_and_sizes"])
        return cls(**values, directories=directories)

    @property
    def is_64bit(self) -> bool:
        return self.MAGIC == PE32_PLUS_MAGIC

    def to_bytes(self) -> bytes:
        values = [getattr(self, name) for name in self.field_names()]
        return (
            struct.pack("<H", self.MAGIC)
            + struct.pack(self.STRUCT_FMT, *values)
            + b"".join(d.to_bytes() for d in self.directories)  # type: ignore[attr-defined]
        )


# pylint: disable=too-many-instance-attributes
@dataclasses.dataclass(frozen=True)
class PEImageOptionalHeader32(_OptionalHeaderMixin):
    major_linker_version: int
    minor_linker_version: int
    size_of_code: int
    size_of_initialized_data: int
    size_of_uninitialized_data: int
    address_of_entry_point: int
    base_of_code: int
    base_of_data: int
    image_base: int
    section_alignment: int
    file_alignment: int
    major_operating_system_version: int
    minor_operating_system_version: int
    major_image_version: int
    minor_image_version: int
    major_subsystem_version: int
    minor_subsystem_version: int
    win32_version_value: int  # reserved, always 0
    size_of_image: int
    size_of_headers: int
    check_sum: int
    subsystem: WindowsSubsystem | int
    dll_characteristics: DllCharacteristics
    size_of_stack_reserve: int
    size_of_stack_commit: int
    size_of_heap_reserve: int
    size_of_heap_commit: int
    loader_flags: int  # reserved, always 0
    number_of_rva_and_sizes: int
    directories: tuple[PEDataDirectory, ...]

    MAGIC: ClassVar[int] = PE32_MAGIC
    STRUCT_FMT: ClassVar[str] = "<2B9I6H4I2H6I"


# pylint: disable=too-many-instance-attributes
@dataclasses.dataclass(frozen=True)
class PEImageOptionalHeader64(_OptionalHeaderMixin):
    major_linker_version: int
    minor_linker_version: int
    size_of_code: int
    size_of_initialized_data: int
    size_of_uninitialized_data: int
    address_of_entry_point: int
    base_of_code: int
    image_base: int
    section_alignment: int
    file_alignment: int
    major_operating_system_version: int
    minor_operating_system_version: int
    major_image_version: int
    minor_image_version: int
    major_subsystem_version: int
    minor_subsystem_version: int
    win32_version_value: int  # reserved, always 0
    size_of_image: int
    size_of_headers: int
    check_sum: int
    subsystem: WindowsSubsystem | int
    dll_characteristics: DllCharacteristics
    size_of_stack_reserve: int
    size_of_stack_commit: int
    size_of_heap_reserve: int
    size_of_heap_commit: int
    loader_flags: int  # reserved, always 0
    number_of_rva_and_sizes: int
    directories: tuple[PEDataDirectory, ...]

    MAGIC: ClassVar[int] = PE32_PLUS_MAGIC
    STRUCT_FMT: ClassVar[str] = "<2B5IQ2I6H4I2H4Q2I"


OptionalHeader = Union[PEImageOptionalHeader32, PEImageOptionalHeader64]


def read_optional_header(reader: ImageReader) -> OptionalHeader:
    magic_offset = reader.offset
    if reader.remaining < 2:
        raise TruncatedInputError(magic_offset, "optional header not found")
    (magic,) = reader.unpack("<H", "optional header magic")

    match magic:
        case 0x10B:  # PE32
            header_cls: type[OptionalHeader] = PEImageOptionalHeader32
        case 0x20B:  # PE32+
            header_cls = PEImageOptionalHeader64
        case 0x107:  # ROM image
            raise UnsupportedFormatError(magic_offset, "ROM images are not supported")
        case _:
            raise UnknownFormatError(
                magic_offset, f"Unknown optional header magic 0x{magic:04x}", magic
            )

    header = header_cls.from_reader(reader)
    logger.debug(
        "Optional header %s at 0x%x with %d data directories",
        header_cls.__name__,
        magic_offset,
        header.number_of_rva_and_sizes,
    )
    return header
