from pathlib import Path
from typing import Iterator
import pytest

from peimage.formats import PEImage
from .pe_builder import PE32, PE32_PLUS, BuiltImage, build_image


def pytest_addoption(parser):
    """Allow the option to run tests against a real Windows binary."""
    parser.addoption(
        "--pefile", action="store", help="Path to a Windows EXE or DLL"
    )


@pytest.fixture(name="pe32")
def fixture_pe32() -> BuiltImage:
    return build_image(magic=PE32)


@pytest.fixture(name="pe32_plus")
def fixture_pe32_plus() -> BuiltImage:
    return build_image(magic=PE32_PLUS, machine=0x8664)


@pytest.fixture(name="binfile", scope="session")
def fixture_binfile(pytestconfig) -> Iterator[PEImage]:
    filename = pytestconfig.getoption("--pefile")

    # Skip this if we have not provided the path to a PE file.
    if filename is None:
        pytest.skip(allow_module_level=True, reason="No path to a PE file")

    yield PEImage.from_file(Path(filename))
