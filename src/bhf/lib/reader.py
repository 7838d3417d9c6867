"""Seekable byte cursor used by every record parser."""

import io
import struct
from typing import BinaryIO, Tuple, Union

from .exceptions import ShortReadError


class RecordReader:
    """
    Sequential reader over a seekable byte source.

    All reads advance the cursor. Fixed-size reads raise `ShortReadError`
    when the source runs out; callers that can live with a truncated payload
    use `read_bytes(..., partial=True)` instead.
    """

    def __init__(self, source: Union[bytes, BinaryIO]):
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        self.stream = source

    def tell(self) -> int:
        return self.stream.tell()

    def seek(self, offset: int) -> None:
        """Move the cursor to an absolute offset."""
        self.stream.seek(offset, io.SEEK_SET)

    def at_end(self) -> bool:
        position = self.stream.tell()
        if self.stream.read(1):
            self.stream.seek(position, io.SEEK_SET)
            return False
        return True

    def read_bytes(self, size: int, partial: bool = False) -> bytes:
        """
        Read `size` bytes.

        Args:
            size: Number of bytes wanted
            partial: Return whatever is available instead of raising on a short read

        Returns:
            The bytes read
        """
        offset = self.stream.tell()
        data = self.stream.read(size)
        if len(data) < size and not partial:
            raise ShortReadError(size, len(data), offset)
        return data

    def read_fixed(self, fmt: str) -> Tuple:
        """Read and unpack a little-endian structure described by a `struct` format."""
        return struct.unpack(fmt, self.read_bytes(struct.calcsize(fmt)))

    def read_u8(self) -> int:
        return self.read_fixed("<B")[0]

    def read_i8(self) -> int:
        return self.read_fixed("<b")[0]

    def read_u16(self) -> int:
        return self.read_fixed("<H")[0]

    def read_cstring(self) -> bytes:
        """Read bytes up to a NUL terminator, consuming but not returning the NUL."""
        offset = self.stream.tell()
        chars = bytearray()
        while True:
            char = self.stream.read(1)
            if not char:
                raise ShortReadError(len(chars) + 1, len(chars), offset)
            if char == b"\x00":
                return bytes(chars)
            chars += char
