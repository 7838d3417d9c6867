"""Parser for the Context record."""

from typing import List, Optional

from .base import Record
from ..reader import RecordReader


class ContextRecord(Record):
    """
    Table of jump targets. The position of an offset in the table is its
    context id; each offset points at the header of a Text record.

    u16 count
    u8  offset[count][3]   24-bit little-endian, top byte signed
    """

    offsets: List[int] = []

    def __init__(self, **data):
        super().__init__(**data)
        self._parse()

    def _parse(self):
        reader = RecordReader(self.raw_data)
        count = reader.read_u16()

        offsets = []
        for _ in range(count):
            low, high = reader.read_fixed("<BB")
            offsets.append(low | high << 8 | reader.read_i8() << 16)
        self.offsets = offsets

    def get_offset(self, context_id: int) -> Optional[int]:
        if 0 <= context_id < len(self.offsets):
            return self.offsets[context_id]
        return None
