import pytest
from peimage.formats.reader import ImageReader
from peimage.formats.exceptions import PEErrorKind, TruncatedInputError


def test_unpack_advances():
    reader = ImageReader(b"\x01\x00\x02\x00\x00\x00\xff")
    assert reader.unpack("<H", "first") == (1,)
    assert reader.offset == 2
    assert reader.unpack("<I", "second") == (2,)
    assert reader.offset == 6
    assert reader.remaining == 1


def test_read_bytes():
    reader = ImageReader(b"abcdef", offset=2)
    assert reader.read_bytes(3, "text") == b"cde"
    assert reader.offset == 5

    # Zero-length read is fine at the end of the buffer.
    assert reader.read_bytes(1, "text") == b"f"
    assert reader.read_bytes(0, "text") == b""


def test_truncated_read():
    reader = ImageReader(b"\x00" * 10, offset=8)
    with pytest.raises(TruncatedInputError) as exc_info:
        reader.unpack("<I", "thing")

    assert exc_info.value.offset == 8
    assert exc_info.value.message == "thing incomplete"
    assert exc_info.value.kind == PEErrorKind.TRUNCATED_INPUT
    assert str(exc_info.value) == "thing incomplete (at offset 0x8)"

    # Failed reads do not move the cursor.
    assert reader.offset == 8


def test_negative_size():
    reader = ImageReader(b"\x00" * 10)
    with pytest.raises(TruncatedInputError):
        reader.read_bytes(-1, "thing")


def test_iter_unpack():
    reader = ImageReader(b"\x01\x00\x02\x00\x03\x00")
    assert reader.iter_unpack("<H", 3, "words") == [(1,), (2,), (3,)]
    assert reader.remaining == 0


def test_iter_unpack_checks_whole_run():
    """A huge count from a corrupt header must fail before reading anything."""
    reader = ImageReader(b"\x01\x00\x02\x00")
    with pytest.raises(TruncatedInputError):
        reader.iter_unpack("<H", 0xFFFFFFFF, "words")

    assert reader.offset == 0
