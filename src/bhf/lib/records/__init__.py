"""
bhf.lib.records - Tagged record parsers

Parsers for the length-prefixed records that make up a BHF file.
"""

from .base import Record, RecordHeader, RecordType
from .file_header import FileHeaderRecord
from .compression import CompressionRecord, CompressionType
from .context import ContextRecord
from .index import IndexEntry, IndexRecord
from .keyword import KeywordRecord

__all__ = [
    "Record",
    "RecordHeader",
    "RecordType",
    "FileHeaderRecord",
    "CompressionRecord",
    "CompressionType",
    "ContextRecord",
    "IndexEntry",
    "IndexRecord",
    "KeywordRecord",
]
