"""Base classes for tagged record parsers."""

from enum import IntEnum
from typing import ClassVar

from pydantic import BaseModel, Field


class RecordType(IntEnum):
    """Type tag found in every record header."""

    FILE_HEADER = 0
    CONTEXT = 1
    TEXT = 2
    KEYWORD = 3
    INDEX = 4
    COMPRESSION = 5
    INDEX_TAGS = 6


class RecordHeader(BaseModel):
    """
    Header preceding every tagged record.

    u8  type     RecordType
    u16 length   payload size in bytes, excluding this header
    """

    record_type: int = Field(..., description="RecordType tag, kept as int so unknown tags survive")
    length: int = Field(..., description="Payload size in bytes")
    offset: int = Field(..., description="File offset of the header itself")
    raw_data: dict

    SIZE: ClassVar[int] = 3

    @property
    def payload_offset(self) -> int:
        return self.offset + self.SIZE

    @property
    def end_offset(self) -> int:
        return self.payload_offset + self.length

    def is_type(self, record_type: RecordType) -> bool:
        return self.record_type == record_type


class Record(BaseModel):
    """
    Base class for all record payload parsers.
    """

    header: RecordHeader
    raw_data: bytes
