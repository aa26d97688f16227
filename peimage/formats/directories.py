import dataclasses
from enum import IntEnum
import logging
import struct
from typing import Optional

from .reader import ImageReader

logger = logging.getLogger(__name__)


class PEDataDirectoryItemType(IntEnum):
    EXPORT_TABLE = 0
    IMPORT_TABLE = 1
    RESOURCE_TABLE = 2
    EXCEPTION_TABLE = 3
    CERTIFICATE_TABLE = 4
    BASE_RELOCATION_TABLE = 5
    DEBUG = 6
    ARCHITECTURE = 7
    GLOBAL_PTR = 8
    TLS_TABLE = 9
    LOAD_CONFIG_TABLE = 10
    BOUND_IMPORT = 11
    IAT = 12
    DELAY_IMPORT_DESCRIPTOR = 13


@dataclasses.dataclass(frozen=True)
class PEDataDirectory:
    index: int
    virtual_address: int
    size: int

    STRUCT_FMT = "<2I"

    @property
    def name(self) -> Optional[PEDataDirectoryItemType]:
        """Entries past the well-known ones are valid but have no name."""
        if self.index < len(PEDataDirectoryItemType):
            return PEDataDirectoryItemType(self.index)
        return None

    @property
    def is_empty(self) -> bool:
        return self.virtual_address == 0 and self.size == 0

    def to_bytes(self) -> bytes:
        return struct.pack(self.STRUCT_FMT, self.virtual_address, self.size)


def read_data_directories(
    reader: ImageReader, count: int
) -> tuple[PEDataDirectory, ...]:
    directories = tuple(
        PEDataDirectory(i, virtual_address, size)
        for i, (virtual_address, size) in enumerate(
            reader.iter_unpack(PEDataDirectory.STRUCT_FMT, count, "data directories")
        )
    )
    logger.debug("Read %d data directories", len(directories))
    return directories
