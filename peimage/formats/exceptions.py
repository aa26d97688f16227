from enum import Enum


class PEErrorKind(Enum):
    SIGNATURE_NOT_FOUND = "signature-not-found"
    TRUNCATED_INPUT = "truncated-input"
    UNSUPPORTED_FORMAT = "unsupported-format"
    UNKNOWN_FORMAT = "unknown-format"
    SECTION_OUT_OF_BOUNDS = "section-out-of-bounds"


class PEFormatError(ValueError):
    """The buffer is not a valid PE image.
    Carries the offset (from the start of the buffer) of the first violation
    and a message that describes it."""

    kind: PEErrorKind

    def __init__(self, offset: int, message: str):
        super().__init__(offset, message)
        self.offset = offset
        self.message = message

    def __str__(self) -> str:
        return f"{self.message} (at offset 0x{self.offset:x})"


class SignatureNotFoundError(PEFormatError):
    """Magic string not found at a fixed location."""

    kind = PEErrorKind.SIGNATURE_NOT_FOUND

    def __init__(self, offset: int, message: str, format_name: str):
        super().__init__(offset, message)
        self.format_name = format_name


class TruncatedInputError(PEFormatError):
    """The buffer ends before a structure that must be present."""

    kind = PEErrorKind.TRUNCATED_INPUT


class SectionOutOfBoundsError(TruncatedInputError):
    """The raw data of a section runs past the end of the buffer."""

    kind = PEErrorKind.SECTION_OUT_OF_BOUNDS

    def __init__(self, offset: int, message: str, section_name: str):
        super().__init__(offset, message)
        self.section_name = section_name


class UnsupportedFormatError(PEFormatError):
    """A recognized variant of the format that we do not decode."""

    kind = PEErrorKind.UNSUPPORTED_FORMAT


class UnknownFormatError(PEFormatError):
    """The optional header magic is not one we know about."""

    kind = PEErrorKind.UNKNOWN_FORMAT

    def __init__(self, offset: int, message: str, magic: int):
        super().__init__(offset, message)
        self.magic = magic


class SectionNotFoundError(KeyError):
    """The specified section was not found in the file."""
