"""
bhf - Borland help file library for Python

A pure Python library for reading Borland Pascal/C++ help (.TPH/.TCH) files.
"""

from .lib.bhf import BHFFile, open_file
from .lib.formatter import TextFormat
from .lib.exceptions import BHFError, InvalidBHFFileError, ShortReadError, UnexpectedRecordTypeError

__version__ = "0.0.1"

__all__ = [
    "BHFFile",
    "open_file",
    "TextFormat",
    "BHFError",
    "InvalidBHFFileError",
    "ShortReadError",
    "UnexpectedRecordTypeError",
]
