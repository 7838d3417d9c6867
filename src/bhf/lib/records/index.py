"""Parser for the Index record."""

from typing import List

from pydantic import BaseModel

from .base import Record
from ..reader import RecordReader
from ..text_utils import decode_cp437


class IndexEntry(BaseModel):
    """
    A single index label and the context id it jumps to.

    u8  length       carry << 5 | new_chars
    u8  chars[new_chars]
    u16 context
    """

    label: str
    context: int
    raw_data: dict


class IndexRecord(Record):
    """
    Prefix-compressed, alphabetically ordered list of index labels.

    Each entry may reuse the first `carry` (0-7) characters of the previous
    label, so entries have to be decoded in file order.
    """

    entries: List[IndexEntry] = []

    def __init__(self, **data):
        super().__init__(**data)
        self._parse()

    def _parse(self):
        reader = RecordReader(self.raw_data)
        count = reader.read_u16()

        entries = []
        previous_label = ""
        for _ in range(count):
            length = reader.read_u8()
            carry = length >> 5
            chars = reader.read_bytes(length & 0x1F)
            context = reader.read_u16()

            label = previous_label[:carry] + decode_cp437(chars)
            parsed_entry = {"carry": carry, "chars": chars, "context": context}
            entries.append(IndexEntry(label=label, context=context, raw_data=parsed_entry))
            previous_label = label
        self.entries = entries
