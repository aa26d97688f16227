"""
Based on the following resources:
- Windows SDK Headers
- PE: https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
"""

import dataclasses
from datetime import datetime, timezone
from enum import IntEnum, IntFlag
import logging
import struct

from .exceptions import SignatureNotFoundError
from .reader import ImageReader

logger = logging.getLogger(__name__)


class PEMachine(IntEnum):
    IMAGE_FILE_MACHINE_UNKNOWN = 0x0
    IMAGE_FILE_MACHINE_ALPHA = 0x184
    IMAGE_FILE_MACHINE_ALPHA64 = 0x284
    IMAGE_FILE_MACHINE_AM33 = 0x1D3
    IMAGE_FILE_MACHINE_AMD64 = 0x8664
    IMAGE_FILE_MACHINE_ARM = 0x1C0
    IMAGE_FILE_MACHINE_ARM64 = 0xAA64
    IMAGE_FILE_MACHINE_ARMNT = 0x1C4
    IMAGE_FILE_MACHINE_AXP64 = 0x284
    IMAGE_FILE_MACHINE_CEE = 0xC0EE
    IMAGE_FILE_MACHINE_CEF = 0xCEF
    IMAGE_FILE_MACHINE_EBC = 0xEBC
    IMAGE_FILE_MACHINE_I386 = 0x14C
    IMAGE_FILE_MACHINE_IA64 = 0x200
    IMAGE_FILE_MACHINE_LOONGARCH32 = 0x6232
    IMAGE_FILE_MACHINE_LOONGARCH64 = 0x6264
    IMAGE_FILE_MACHINE_M32R = 0x9041
    IMAGE_FILE_MACHINE_MIPS16 = 0x266
    IMAGE_FILE_MACHINE_MIPSFPU = 0x366
    IMAGE_FILE_MACHINE_MIPSFPU16 = 0x466
    IMAGE_FILE_MACHINE_POWERPC = 0x1F0
    IMAGE_FILE_MACHINE_POWERPCFP = 0x1F1
    IMAGE_FILE_MACHINE_R3000 = 0x162
    IMAGE_FILE_MACHINE_R4000 = 0x166
    IMAGE_FILE_MACHINE_R10000 = 0x168
    IMAGE_FILE_MACHINE_RISCV32 = 0x5032
    IMAGE_FILE_MACHINE_RISCV64 = 0x5064
    IMAGE_FILE_MACHINE_RISCV128 = 0x5128
    IMAGE_FILE_MACHINE_SH3 = 0x1A2
    IMAGE_FILE_MACHINE_SH3DSP = 0x1A3
    IMAGE_FILE_MACHINE_SH3E = 0x1A4
    IMAGE_FILE_MACHINE_SH4 = 0x1A6
    IMAGE_FILE_MACHINE_SH5 = 0x1A8
    IMAGE_FILE_MACHINE_THUMB = 0x1C2
    IMAGE_FILE_MACHINE_TRICORE = 0x520
    IMAGE_FILE_MACHINE_WCEMIPSV2 = 0x169


class PECharacteristics(IntFlag):
    IMAGE_FILE_RELOCS_STRIPPED = 0x0001
    IMAGE_FILE_EXECUTABLE_IMAGE = 0x0002
    IMAGE_FILE_LINE_NUMS_STRIPPED = 0x0004
    IMAGE_FILE_LOCAL_SYMS_STRIPPED = 0x0008
    IMAGE_FILE_AGGRESSIVE_WS_TRIM = 0x0010
    IMAGE_FILE_LARGE_ADDRESS_AWARE = 0x0020
    IMAGE_FILE_RESERVED_0X40 = 0x0040
    IMAGE_FILE_BYTES_REVERSED_LO = 0x0080
    IMAGE_FILE_32BIT_MACHINE = 0x0100
    IMAGE_FILE_DEBUG_STRIPPED = 0x0200
    IMAGE_FILE_REMOVABLE_RUN_FROM_SWAP = 0x0400
    IMAGE_FILE_NET_RUN_FROM_SWAP = 0x0800
    IMAGE_FILE_SYSTEM = 0x1000
    IMAGE_FILE_DLL = 0x2000
    IMAGE_FILE_UP_SYSTEM_ONLY = 0x4000
    IMAGE_FILE_BYTES_REVERSED_HI = 0x8000


def machine_or_int(value: int) -> PEMachine | int:
    """New machine types appear with each SDK. An unlisted value is not
    an error for the decoder, so we keep the raw number."""
    try:
        return PEMachine(value)
    except ValueError:
        logger.debug("Unknown machine type 0x%x", value)
        return value


# pylint: disable=too-many-instance-attributes
@dataclasses.dataclass(frozen=True)
class PEImageFileHeader:
    machine: PEMachine | int
    number_of_sections: int
    time_date_stamp: int
    pointer_to_symbol_table: int  # deprecated
    number_of_symbols: int  # deprecated
    size_of_optional_header: int
    characteristics: PECharacteristics

    SIGNATURE = b"PE\x00\x00"
    STRUCT_FMT = "<2H3I2H"

    @classmethod
    def from_reader(cls, reader: ImageReader) -> "PEImageFileHeader":
        start = reader.offset
        reader.require(len(cls.SIGNATURE), "PE signature")
        if not cls.taste(reader.data, start):
            raise SignatureNotFoundError(start, "COFF header not found", "PE")
        reader.read_bytes(len(cls.SIGNATURE), "PE signature")

        items = list(reader.unpack(cls.STRUCT_FMT, "COFF header"))
        items[0] = machine_or_int(items[0])
        items[6] = PECharacteristics(items[6])
        return cls(*items)

    @classmethod
    def taste(cls, data: bytes, offset: int) -> bool:
        return data[offset : offset + 4] == cls.SIGNATURE

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.time_date_stamp, tz=timezone.utc)

    def to_bytes(self) -> bytes:
        return self.SIGNATURE + struct.pack(
            self.STRUCT_FMT,
            self.machine,
            self.number_of_sections,
            self.time_date_stamp,
            self.pointer_to_symbol_table,
            self.number_of_symbols,
            self.size_of_optional_header,
            self.characteristics,
        )
