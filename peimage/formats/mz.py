import logging
from dataclasses import dataclass
import struct

from .exceptions import (
    SignatureNotFoundError,
    TruncatedInputError,
    UnsupportedFormatError,
)
from .reader import ImageReader

logger = logging.getLogger(__name__)


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True)
class ImageDosHeader:
    # Order is significant!
    e_magic: bytes
    e_cblp: int  # Bytes on last page of file
    e_cp: int  # Pages in file
    e_crlc: int  # Relocations
    e_cparhdr: int  # Size of header in paragraphs
    e_minalloc: int
    e_maxalloc: int
    e_ss: int  # Initial (relative) SS value
    e_sp: int  # Initial SP value
    e_csum: int
    e_ip: int  # Initial IP value
    e_cs: int  # Initial (relative) CS value
    e_lfarlc: int  # File address of relocation table
    e_ovno: int  # Overlay number
    e_res: tuple[int, int, int, int]
    e_oemid: int
    e_oeminfo: int
    e_res2: tuple[int, int, int, int, int, int, int, int, int, int]
    e_lfanew: int  # File address of new exe header

    STRUCT_FMT = "<2s29HI"
    SIZE = struct.calcsize(STRUCT_FMT)
    LFANEW_OFFSET = SIZE - 4

    @classmethod
    def from_reader(cls, reader: ImageReader) -> "ImageDosHeader":
        start = reader.offset
        head = reader.data[start : start + 2]
        # Only a cut-off "MZ" is truncated; anything else can never become one.
        if len(head) < 2 and b"MZ".startswith(head):
            raise TruncatedInputError(start, "DOS signature incomplete")
        if not cls.taste(reader.data, start):
            raise SignatureNotFoundError(start, "DOS signature not found", "DOS")

        items = reader.unpack(cls.STRUCT_FMT, "DOS header")
        return cls(
            *items[:14],
            items[14:18],
            *items[18:20],
            items[20:30],
            items[30],
        )

    @classmethod
    def taste(cls, data: bytes, offset: int) -> bool:
        return data[offset : offset + 2] == b"MZ"

    def to_bytes(self) -> bytes:
        return struct.pack(
            self.STRUCT_FMT,
            self.e_magic,
            self.e_cblp,
            self.e_cp,
            self.e_crlc,
            self.e_cparhdr,
            self.e_minalloc,
            self.e_maxalloc,
            self.e_ss,
            self.e_sp,
            self.e_csum,
            self.e_ip,
            self.e_cs,
            self.e_lfarlc,
            self.e_ovno,
            *self.e_res,
            self.e_oemid,
            self.e_oeminfo,
            *self.e_res2,
            self.e_lfanew,
        )


def read_dos_stub(reader: ImageReader, mz_header: ImageDosHeader) -> bytes:
    """The stub is the real-mode program between the DOS header and the PE header.
    Its contents are not interpreted."""
    if mz_header.e_lfanew < reader.offset:
        raise UnsupportedFormatError(
            ImageDosHeader.LFANEW_OFFSET, "PE header overlaps the DOS header"
        )

    stub = reader.read_bytes(mz_header.e_lfanew - reader.offset, "DOS stub")
    logger.debug("DOS stub: %d bytes, PE header at 0x%x", len(stub), mz_header.e_lfanew)
    return stub
