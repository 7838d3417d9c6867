"""
bhf.lib - Core library components

Internal modules for parsing BHF file structures.
"""

from .bhf import BHFFile, Version, VersionFormat, open_file
from .reader import RecordReader
from .compression import NibbleDecompressor, Reflow, nibble_decompress
from .formatter import HTMLFormatter, TextFormat, format_as_html, format_as_text
from .diagnostics import Diagnostic, DiagnosticKind
from .exceptions import BHFError, InvalidBHFFileError, ShortReadError, UnexpectedRecordTypeError

__all__ = [
    "BHFFile",
    "Version",
    "VersionFormat",
    "open_file",
    "RecordReader",
    "NibbleDecompressor",
    "Reflow",
    "nibble_decompress",
    "HTMLFormatter",
    "TextFormat",
    "format_as_html",
    "format_as_text",
    "Diagnostic",
    "DiagnosticKind",
    "BHFError",
    "InvalidBHFFileError",
    "ShortReadError",
    "UnexpectedRecordTypeError",
]
