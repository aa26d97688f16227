"""Summary of a decoded image that can be written as JSON or YAML."""

import hashlib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError
import ruamel.yaml
from ruamel.yaml.error import YAMLError

from .formats import PECharacteristics, PEImage, PESectionFlags

_yaml = ruamel.yaml.YAML()


class ImageReportDeserializeError(Exception):
    """The given file is not a serialized image report"""


def _flag_names(value: int, flag_type) -> list[str]:
    # IntFlag keeps unknown bits, so list the members individually.
    return [member.name for member in flag_type if member.value and member & value]


def _enum_name(value) -> str:
    return getattr(value, "name", None) or f"0x{value:x}"


class DirectoryEntry(BaseModel):
    index: int
    name: str | None
    virtual_address: int
    size: int


class SectionEntry(BaseModel):
    name: str
    virtual_address: int
    virtual_size: int
    pointer_to_raw_data: int
    size_of_raw_data: int
    characteristics: list[str]


class ImageReport(BaseModel):
    format: Literal[1] = 1
    file: str
    sha256: str
    machine: str
    pe32_plus: bool
    timestamp: int
    imagebase: int
    entry: int
    subsystem: str
    characteristics: list[str]
    directories: list[DirectoryEntry]
    sections: list[SectionEntry]

    @classmethod
    def from_image(cls, image: PEImage) -> "ImageReport":
        return cls(
            file=image.filepath.name if image.filepath is not None else "",
            sha256=hashlib.sha256(image.data).hexdigest(),
            machine=_enum_name(image.machine),
            pe32_plus=image.is_64bit,
            timestamp=image.header.time_date_stamp,
            imagebase=image.imagebase,
            entry=image.entry,
            subsystem=_enum_name(image.optional_header.subsystem),
            characteristics=_flag_names(
                image.header.characteristics, PECharacteristics
            ),
            directories=[
                DirectoryEntry(
                    index=d.index,
                    name=d.name.name if d.name is not None else None,
                    virtual_address=d.virtual_address,
                    size=d.size,
                )
                for d in image.directories
            ],
            sections=[
                SectionEntry(
                    name=s.name,
                    virtual_address=s.virtual_address,
                    virtual_size=s.virtual_size,
                    pointer_to_raw_data=s.header.pointer_to_raw_data,
                    size_of_raw_data=s.size_of_raw_data,
                    characteristics=_flag_names(
                        s.header.characteristics, PESectionFlags
                    ),
                )
                for s in image.sections
            ],
        )

    def write_json(self, filename: Path):
        with filename.open("w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    def write_yaml(self, filename: Path):
        with filename.open("w", encoding="utf-8") as f:
            _yaml.dump(data=self.model_dump(mode="json"), stream=f)

    @classmethod
    def from_file(cls, filename: Path) -> "ImageReport":
        """Accepts either format. JSON is a subset of YAML, so one loader covers both."""
        with filename.open("r", encoding="utf-8") as f:
            try:
                obj = _yaml.load(f)
            except YAMLError as ex:
                raise ImageReportDeserializeError("File is not JSON or YAML") from ex

        try:
            return cls.model_validate(obj)
        except ValidationError as ex:
            raise ImageReportDeserializeError("File is not an image report") from ex
