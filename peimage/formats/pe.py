"""
Based on the following resources:
- Windows SDK Headers
- PE: https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
"""

import dataclasses
import logging
from os import PathLike
from pathlib import Path
from typing import Optional

from .coff import PEImageFileHeader, PEMachine
from .directories import PEDataDirectory, PEDataDirectoryItemType
from .exceptions import SectionNotFoundError
from .mz import ImageDosHeader, read_dos_stub
from .optional import OptionalHeader, read_optional_header
from .reader import ImageReader
from .sections import PESection, read_sections

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class PEImage:
    """A decoded PE32 or PE32+ image.
    Create one with from_bytes() or from_file(). Every field is set once
    during decoding; the instance has no mutation API."""

    data: bytes = dataclasses.field(repr=False)
    mz_header: ImageDosHeader
    dos_stub: bytes = dataclasses.field(repr=False)
    header: PEImageFileHeader
    optional_header: OptionalHeader
    sections: tuple[PESection, ...] = dataclasses.field(repr=False)
    filepath: Optional[Path] = dataclasses.field(default=None, compare=False)

    @classmethod
    def from_bytes(cls, data: bytes, filepath: Optional[Path] = None) -> "PEImage":
        # Keep our own immutable copy so nobody can change the bytes under us.
        data = bytes(data)
        reader = ImageReader(data)

        mz_header = ImageDosHeader.from_reader(reader)
        dos_stub = read_dos_stub(reader, mz_header)
        header = PEImageFileHeader.from_reader(reader)
        logger.debug(
            "COFF header: machine %r, %d sections",
            header.machine,
            header.number_of_sections,
        )
        optional_header = read_optional_header(reader)
        sections = read_sections(reader, header.number_of_sections)

        return cls(
            data=data,
            mz_header=mz_header,
            dos_stub=dos_stub,
            header=header,
            optional_header=optional_header,
            sections=sections,
            filepath=filepath,
        )

    @classmethod
    def from_file(cls, filepath: str | PathLike) -> "PEImage":
        """Read the whole file and decode it. OSError from opening or reading
        the file is not caught here."""
        filepath = Path(filepath)
        with filepath.open("rb") as f:
            data = f.read()
        logger.debug("Read %d bytes from %s", len(data), filepath)
        return cls.from_bytes(data, filepath=filepath)

    @classmethod
    def taste(cls, data: bytes, offset: int = 0) -> bool:
        """Quick check for the MZ and PE signatures without a full decode."""
        if not ImageDosHeader.taste(data, offset):
            return False
        lfanew_start = offset + ImageDosHeader.LFANEW_OFFSET
        lfanew = int.from_bytes(data[lfanew_start : lfanew_start + 4], "little")
        return PEImageFileHeader.taste(data, offset + lfanew)

    @property
    def is_64bit(self) -> bool:
        return self.optional_header.is_64bit

    @property
    def machine(self) -> PEMachine | int:
        return self.header.machine

    @property
    def imagebase(self) -> int:
        return self.optional_header.image_base

    @property
    def entry(self) -> int:
        return self.imagebase + self.optional_header.address_of_entry_point

    @property
    def directories(self) -> tuple[PEDataDirectory, ...]:
        return self.optional_header.directories

    def get_data_directory(
        self, t: PEDataDirectoryItemType
    ) -> Optional[PEDataDirectory]:
        """Returns None if the image does not declare the directory
        or if its address is zero."""
        if t.value >= len(self.directories):
            return None
        directory = self.directories[t.value]
        if not directory.virtual_address:
            return None
        return directory

    def get_section_by_name(self, name: str) -> PESection:
        try:
            return next(
                section for section in self.sections if section.match_name(name)
            )
        except StopIteration as exc:
            raise SectionNotFoundError(name) from exc

    def get_section_by_rva(self, rva: int) -> Optional[PESection]:
        return next(
            (section for section in self.sections if section.contains_rva(rva)), None
        )

    @property
    def overlay(self) -> bytes:
        """Data appended after the last section, e.g. an Authenticode signature."""
        end = max(
            [len(self.headers_bytes())]
            + [
                s.header.pointer_to_raw_data + s.header.size_of_raw_data
                for s in self.sections
                if s.header.size_of_raw_data
            ]
        )
        return self.data[end:]

    def headers_bytes(self) -> bytes:
        """Everything from the DOS header through the section table,
        rebuilt from the decoded fields."""
        return b"".join(
            (
                self.mz_header.to_bytes(),
                self.dos_stub,
                self.header.to_bytes(),
                self.optional_header.to_bytes(),
                *(section.header.to_bytes() for section in self.sections),
            )
        )

    def to_bytes(self) -> bytes:
        """Rebuild the file from the decoded fields. Section data is written at
        each section's file pointer and gaps are filled with zero bytes. Bytes
        the decoder does not keep (padding and overlay data) are not restored."""
        output = bytearray(self.headers_bytes())
        for section in self.sections:
            if not section.data:
                continue
            start = section.header.pointer_to_raw_data
            end = start + len(section.data)
            if len(output) < end:
                output.extend(b"\x00" * (end - len(output)))
            output[start:end] = section.data

        return bytes(output)

    def save(self, filepath: str | PathLike):
        with Path(filepath).open("wb") as f:
            f.write(self.to_bytes())
