from pathlib import Path
import pytest
from peimage.formats import PEFormatError, PEImage, SignatureNotFoundError
from .pe_builder import BuiltImage, SectionSpec, build_image


def test_from_file(tmp_path: Path, pe32: BuiltImage):
    filename = tmp_path / "test.exe"
    filename.write_bytes(pe32.data)

    image = PEImage.from_file(filename)
    assert image.filepath == filename
    assert image == PEImage.from_bytes(pe32.data)


def test_from_file_str(tmp_path: Path, pe32: BuiltImage):
    filename = tmp_path / "test.dll"
    filename.write_bytes(pe32.data)
    assert PEImage.from_file(str(filename)).filepath == filename


def test_file_not_found(tmp_path: Path):
    with pytest.raises(FileNotFoundError) as exc_info:
        PEImage.from_file(tmp_path / "missing.exe")

    # I/O errors are never reported as format errors.
    assert not isinstance(exc_info.value, PEFormatError)


def test_directory(tmp_path: Path):
    with pytest.raises(OSError):
        PEImage.from_file(tmp_path)


def test_format_error_from_file(tmp_path: Path):
    filename = tmp_path / "readme.txt"
    filename.write_bytes(b"Just some text.\n")
    with pytest.raises(SignatureNotFoundError):
        PEImage.from_file(filename)


@pytest.mark.parametrize("fixture_name", ("pe32", "pe32_plus"))
def test_to_bytes(fixture_name: str, request):
    built: BuiltImage = request.getfixturevalue(fixture_name)
    image = PEImage.from_bytes(built.data)
    assert image.to_bytes() == built.data


def test_to_bytes_keeps_odd_section_name():
    """Bytes after the first NUL in the name field are kept."""
    built = build_image(sections=(SectionSpec(b".a\x00junk\x00", b"\x90" * 8),))
    image = PEImage.from_bytes(built.data)
    assert image.sections[0].name == ".a\x00junk"
    assert image.to_bytes() == built.data


def test_to_bytes_drops_overlay(pe32: BuiltImage):
    image = PEImage.from_bytes(pe32.data + b"\x01\x02\x03")
    assert image.to_bytes() == pe32.data


def test_save(tmp_path: Path, pe32: BuiltImage):
    image = PEImage.from_bytes(pe32.data)
    filename = tmp_path / "copy.exe"
    image.save(filename)

    assert filename.read_bytes() == pe32.data
    assert PEImage.from_file(filename) == image
