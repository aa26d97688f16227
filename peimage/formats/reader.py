import struct

from .exceptions import TruncatedInputError


class ImageReader:
    """Forward-only cursor over an immutable buffer.
    Every read checks the remaining length first so that a short buffer
    raises TruncatedInputError instead of struct.error or a short slice.
    The offset of the cursor is always relative to the start of the buffer."""

    def __init__(self, data: bytes, offset: int = 0):
        self._data = data
        self._offset = offset

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return max(len(self._data) - self._offset, 0)

    def require(self, size: int, what: str):
        if size < 0 or self.remaining < size:
            raise TruncatedInputError(self._offset, f"{what} incomplete")

    def unpack(self, struct_fmt: str, what: str) -> tuple:
        size = struct.calcsize(struct_fmt)
        self.require(size, what)
        items = struct.unpack_from(struct_fmt, self._data, self._offset)
        self._offset += size
        return items

    def iter_unpack(self, struct_fmt: str, count: int, what: str) -> list[tuple]:
        """Read `count` consecutive records, checking the whole run up front."""
        size = struct.calcsize(struct_fmt) * count
        self.require(size, what)
        items = list(
            struct.iter_unpack(struct_fmt, self._data[self._offset : self._offset + size])
        )
        self._offset += size
        return items

    def read_bytes(self, size: int, what: str) -> bytes:
        self.require(size, what)
        result = bytes(self._data[self._offset : self._offset + size])
        self._offset += size
        return result
