from .coff import PECharacteristics, PEImageFileHeader, PEMachine
from .directories import PEDataDirectory, PEDataDirectoryItemType
from .exceptions import (
    PEErrorKind,
    PEFormatError,
    SectionNotFoundError,
    SectionOutOfBoundsError,
    SignatureNotFoundError,
    TruncatedInputError,
    UnknownFormatError,
    UnsupportedFormatError,
)
from .mz import ImageDosHeader
from .optional import (
    DllCharacteristics,
    OptionalHeader,
    PEImageOptionalHeader32,
    PEImageOptionalHeader64,
    WindowsSubsystem,
)
from .pe import PEImage
from .reader import ImageReader
from .sections import PEImageSectionHeader, PESection, PESectionFlags
