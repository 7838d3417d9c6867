"""Parser for the Compression record."""

from enum import IntEnum
from typing import List

from .base import Record
from ..reader import RecordReader

TABLE_SIZE = 14


class CompressionType(IntEnum):
    NIBBLE = 2


class CompressionRecord(Record):
    """
    Nibble substitution table used to decompress every text record.

    u8 type        CompressionType
    u8 table[14]   byte emitted for nibble values 0x0-0xD
    """

    compression_type: int = 0
    table: List[int] = []

    def __init__(self, **data):
        super().__init__(**data)
        self._parse()

    def _parse(self):
        reader = RecordReader(self.raw_data)
        self.compression_type = reader.read_u8()
        self.table = list(reader.read_bytes(TABLE_SIZE))

    @property
    def is_nibble(self) -> bool:
        return self.compression_type == CompressionType.NIBBLE
