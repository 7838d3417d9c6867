"""Parser for the Keyword record that follows a Text record."""

from typing import List

from .base import Record
from ..reader import RecordReader


class KeywordRecord(Record):
    """
    Hyperlink targets of the preceding text record.

    u16 up_context
    u16 down_context
    u16 count
    u16 contexts[count]   one per keyword span, in order of appearance
    """

    up_context: int = 0
    down_context: int = 0
    contexts: List[int] = []
    truncated: bool = False

    def __init__(self, **data):
        super().__init__(**data)
        self._parse()

    def _parse(self):
        reader = RecordReader(self.raw_data)
        self.up_context, self.down_context, count = reader.read_fixed("<HHH")

        # A truncated payload keeps the targets that are complete.
        available = min(count, (len(self.raw_data) - 6) // 2)
        self.contexts = list(reader.read_fixed(f"<{available}H"))
        self.truncated = available < count
