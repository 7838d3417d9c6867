"""Custom exceptions for the BHF file reader library."""


class BHFError(Exception):
    """Base class for exceptions in this module."""

    pass


class InvalidBHFFileError(BHFError):
    """Raised when the file is not a valid BHF file."""

    pass


class UnexpectedRecordTypeError(InvalidBHFFileError):
    """Raised when a positionally required record carries the wrong type tag."""

    def __init__(self, expected, actual, offset: int):
        self.expected = expected
        self.actual = actual
        self.offset = offset
        super().__init__(f"Expected {expected.name} record at offset {offset:#x}, got type {actual}")


class ShortReadError(BHFError):
    """Raised when fewer bytes are available than a fixed-size read requires."""

    def __init__(self, expected: int, actual: int, offset: int):
        self.expected = expected
        self.actual = actual
        self.offset = offset
        super().__init__(f"Short read at offset {offset:#x}, trying to read {expected} bytes got {actual} bytes.")
