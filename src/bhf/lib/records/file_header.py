"""Parser for the FileHeader record."""

from pydantic import Field

from .base import Record
from ..reader import RecordReader


class FileHeaderRecord(Record):
    """
    Screen geometry and global options of the help file.

    u16 options
    u16 main_index       context id of the main index topic
    u16 largest_record   size of the largest text record
    u8  height           screen height
    u8  width            screen width
    u8  left_margin
    """

    options: int = 0
    main_index: int = 0
    largest_record: int = 0
    height: int = 0
    width: int = Field(default=0, description="Screen width used for reflow")
    left_margin: int = 0

    def __init__(self, **data):
        super().__init__(**data)
        self._parse()

    def _parse(self):
        reader = RecordReader(self.raw_data)
        (
            self.options,
            self.main_index,
            self.largest_record,
            self.height,
            self.width,
            self.left_margin,
        ) = reader.read_fixed("<HHHBBB")

    @property
    def max_width(self) -> int:
        """Printable columns available on one line."""
        return self.width - self.left_margin
