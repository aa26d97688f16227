import dataclasses
from enum import IntFlag
import logging
import struct

from .exceptions import SectionOutOfBoundsError
from .reader import ImageReader

logger = logging.getLogger(__name__)


class PESectionFlags(IntFlag):
    IMAGE_SCN_RESERVED_0X1 = 0x00000001
    IMAGE_SCN_RESERVED_0X2 = 0x00000002
    IMAGE_SCN_RESERVED_0X4 = 0x00000004
    IMAGE_SCN_TYPE_NO_PAD = 0x00000008
    IMAGE_SCN_RESERVED_0X10 = 0x00000010
    IMAGE_SCN_CNT_CODE = 0x00000020
    IMAGE_SCN_CNT_INITIALIZED_DATA = 0x00000040
    IMAGE_SCN_CNT_UNINITIALIZED_DATA = 0x00000080
    IMAGE_SCN_LNK_OTHER = 0x00000100
    IMAGE_SCN_LNK_INFO = 0x00000200
    IMAGE_SCN_RESERVED_0X400 = 0x00000400
    IMAGE_SCN_LNK_REMOVE = 0x00000800
    IMAGE_SCN_LNK_COMDAT = 0x00001000
    IMAGE_SCN_GPREL = 0x00008000
    IMAGE_SCN_MEM_PURGEABLE = 0x00020000
    IMAGE_SCN_MEM_LOCKED = 0x00040000
    IMAGE_SCN_MEM_PRELOAD = 0x00080000
    # Bits 0x00100000 through 0x00F00000 hold the alignment as a 4-bit number.
    IMAGE_SCN_LNK_NRELOC_OVFL = 0x01000000
    IMAGE_SCN_MEM_DISCARDABLE = 0x02000000
    IMAGE_SCN_MEM_NOT_CACHED = 0x04000000
    IMAGE_SCN_MEM_NOT_PAGED = 0x08000000
    IMAGE_SCN_MEM_SHARED = 0x10000000
    IMAGE_SCN_MEM_EXECUTE = 0x20000000
    IMAGE_SCN_MEM_READ = 0x40000000
    IMAGE_SCN_MEM_WRITE = 0x80000000


def decode_section_name(raw_name: bytes) -> str:
    """The name field is eight bytes padded with NULs.
    A name of exactly eight characters has no terminator."""
    return raw_name.rstrip(b"\x00").decode("utf-8", errors="replace")


# pylint: disable=too-many-instance-attributes
@dataclasses.dataclass(frozen=True)
class PEImageSectionHeader:
    raw_name: bytes
    virtual_size: int
    virtual_address: int
    size_of_raw_data: int
    pointer_to_raw_data: int
    pointer_to_relocations: int  # zero for images
    pointer_to_line_numbers: int  # deprecated
    number_of_relocations: int
    number_of_line_numbers: int  # deprecated
    characteristics: PESectionFlags

    STRUCT_FMT = "<8s6I2HI"

    @property
    def name(self) -> str:
        return decode_section_name(self.raw_name)

    @classmethod
    def from_reader(
        cls, reader: ImageReader, count: int
    ) -> tuple["PEImageSectionHeader", ...]:
        return tuple(
            cls(*members[:-1], PESectionFlags(members[-1]))
            for members in reader.iter_unpack(cls.STRUCT_FMT, count, "section headers")
        )

    def to_bytes(self) -> bytes:
        return struct.pack(
            self.STRUCT_FMT,
            self.raw_name,
            self.virtual_size,
            self.virtual_address,
            self.size_of_raw_data,
            self.pointer_to_raw_data,
            self.pointer_to_relocations,
            self.pointer_to_line_numbers,
            self.number_of_relocations,
            self.number_of_line_numbers,
            self.characteristics,
        )


@dataclasses.dataclass(frozen=True)
class PESection:
    header: PEImageSectionHeader
    data: bytes = dataclasses.field(repr=False)

    @property
    def name(self) -> str:
        return self.header.name

    @property
    def virtual_address(self) -> int:
        """Relative to the image base."""
        return self.header.virtual_address

    @property
    def virtual_size(self) -> int:
        return self.header.virtual_size

    @property
    def size_of_raw_data(self) -> int:
        return len(self.data)

    @property
    def extent(self) -> int:
        """Get the highest possible offset of this section"""
        return max(self.size_of_raw_data, self.virtual_size)

    def match_name(self, name: str) -> bool:
        return self.name == name

    def contains_rva(self, rva: int) -> bool:
        return self.virtual_address <= rva < self.virtual_address + self.extent

    def is_uninitialized(self) -> bool:
        return bool(
            self.header.characteristics & PESectionFlags.IMAGE_SCN_CNT_UNINITIALIZED_DATA
        )


def read_sections(reader: ImageReader, count: int) -> tuple[PESection, ...]:
    """Decode the section table at the cursor, then copy the raw data of each
    section out of the full buffer using the header's own file pointer."""
    data = reader.data
    headers = PEImageSectionHeader.from_reader(reader, count)
    sections = []
    for header in headers:
        start = header.pointer_to_raw_data
        end = start + header.size_of_raw_data
        if end > len(data):
            raise SectionOutOfBoundsError(
                reader.offset,
                f"Section '{header.name}' incomplete: data ends at 0x{end:x}, file size is 0x{len(data):x}",
                header.name,
            )
        sections.append(PESection(header=header, data=bytes(data[start:end])))

    logger.debug("Read %d sections", len(sections))
    return tuple(sections)
