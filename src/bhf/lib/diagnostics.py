"""Non-fatal problems recorded while reading a BHF file."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class DiagnosticKind(str, Enum):
    SHORT_READ = "short_read"
    UNEXPECTED_RECORD_TYPE = "unexpected_record_type"
    INVALID_SENTINEL = "invalid_sentinel"
    UNKNOWN_VERSION = "unknown_version"
    UNKNOWN_COMPRESSION = "unknown_compression"
    MISSING_KEYWORD_TARGET = "missing_keyword_target"
    TRUNCATED_ESCAPE = "truncated_escape"
    UNKNOWN_CONTEXT = "unknown_context"


class Diagnostic(BaseModel):
    kind: DiagnosticKind
    message: str
    offset: Optional[int] = None
