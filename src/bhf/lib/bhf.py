"""Main BHF file reader class."""

import logging
from collections import deque
from enum import IntEnum
from typing import Deque, Iterator, List, Optional

from pydantic import BaseModel, Field, PrivateAttr

from .compression import NibbleDecompressor
from .diagnostics import Diagnostic, DiagnosticKind
from .exceptions import ShortReadError, UnexpectedRecordTypeError
from .formatter import DEFAULT_LINK_TEMPLATE, HTMLFormatter, TextFormat, format_as_text
from .reader import RecordReader
from .records import (
    CompressionRecord,
    ContextRecord,
    FileHeaderRecord,
    IndexEntry,
    IndexRecord,
    KeywordRecord,
    RecordHeader,
    RecordType,
)
from .text_utils import decode_cp437

logger = logging.getLogger(__name__)

STAMP_SENTINEL = 0x1A
MAX_RENDER_DIAGNOSTICS = 100


class VersionFormat(IntEnum):
    TP2 = 0x02
    TP4 = 0x04  # also written by Turbo C++ 3.0
    TP6 = 0x33
    BP7 = 0x34


class Version(BaseModel):
    """
    Two bytes following the signature.

    u8 format   VersionFormat
    u8 text
    """

    format: int = Field(..., description="VersionFormat of the compiler that wrote the file")
    text: int
    raw_data: dict

    @property
    def format_name(self) -> Optional[str]:
        try:
            return VersionFormat(self.format).name
        except ValueError:
            return None


class BHFFile(BaseModel):
    """
    The main class for reading and parsing a BHF file.

    The catalog (stamp, signature, version and the FileHeader, Compression,
    Context and Index records) is parsed once when the file is opened. Text
    records are decoded on demand from the context offsets and are never
    cached, so every render call decodes from the file bytes again.

    Problems found while parsing the catalog are kept in `diagnostics` and
    dumped with it. Problems found while rendering go to `render_diagnostics`,
    which only keeps the most recent MAX_RENDER_DIAGNOSTICS entries.

    One instance owns one cursor; do not render from several threads at once.
    """

    filepath: str
    data: bytes = Field(default=b"", exclude=True)
    reflow: bool = True
    link_template: str = DEFAULT_LINK_TEMPLATE
    stamp: str = ""
    signature: bytes = b""
    version: Optional[Version] = None
    file_header: Optional[FileHeaderRecord] = None
    compression: Optional[CompressionRecord] = None
    context: Optional[ContextRecord] = None
    index: Optional[IndexRecord] = None
    index_tags: Optional[RecordHeader] = None
    diagnostics: List[Diagnostic] = []

    _reader: Optional[RecordReader] = PrivateAttr(default=None)
    _records_offset: int = PrivateAttr(default=0)
    _parsed: bool = PrivateAttr(default=False)
    _render_diagnostics: Deque[Diagnostic] = PrivateAttr(
        default_factory=lambda: deque(maxlen=MAX_RENDER_DIAGNOSTICS)
    )

    def __init__(self, filepath: str, **data):
        super().__init__(filepath=filepath, **data)
        if not self.data:
            with open(self.filepath, "rb") as f:
                self.data = f.read()

        self._reader = RecordReader(self.data)
        self.parse()

    @property
    def last_error(self) -> str:
        """Message of the most recent diagnostic, or an empty string."""
        if self._render_diagnostics:
            return self._render_diagnostics[-1].message
        if self.diagnostics:
            return self.diagnostics[-1].message
        return ""

    @property
    def render_diagnostics(self) -> List[Diagnostic]:
        """Diagnostics recorded since the catalog was parsed, oldest first."""
        return list(self._render_diagnostics)

    def _diagnose(self, kind: DiagnosticKind, message: str, offset: Optional[int] = None):
        logger.warning(message)
        diagnostic = Diagnostic(kind=kind, message=message, offset=offset)
        if self._parsed:
            self._render_diagnostics.append(diagnostic)
        else:
            self.diagnostics.append(diagnostic)

    def parse(self):
        """
        Parses the catalog from the loaded data.

        Raises:
            UnexpectedRecordTypeError: A record is missing or out of order
            ShortReadError: The file ends inside the catalog
        """
        reader = self._reader
        reader.seek(0)
        self._parsed = False

        self.stamp = decode_cp437(reader.read_cstring())
        sentinel_offset = reader.tell()
        sentinel = reader.read_u8()
        if sentinel != STAMP_SENTINEL:
            self._diagnose(
                DiagnosticKind.INVALID_SENTINEL,
                f"Expected end of stamp marker {STAMP_SENTINEL:#04x}, got {sentinel:#04x}",
                sentinel_offset,
            )

        self.signature = reader.read_cstring()
        self.version = self._parse_version()
        self._records_offset = reader.tell()

        self.file_header = self._load_record(RecordType.FILE_HEADER, FileHeaderRecord)
        self.compression = self._load_record(RecordType.COMPRESSION, CompressionRecord)
        if not self.compression.is_nibble:
            self._diagnose(
                DiagnosticKind.UNKNOWN_COMPRESSION,
                f"Unknown compression type {self.compression.compression_type}",
                self.compression.header.offset,
            )
        self.context = self._load_record(RecordType.CONTEXT, ContextRecord)
        self.index = self._load_record(RecordType.INDEX, IndexRecord)
        self.index_tags = self._skip_index_tags()
        self._parsed = True

    def _parse_version(self) -> Version:
        offset = self._reader.tell()
        raw_bytes = self._reader.read_bytes(2)
        parsed_version = {"format": raw_bytes[0], "text": raw_bytes[1]}
        version = Version(**parsed_version, raw_data={"raw": raw_bytes, "parsed": parsed_version})

        if version.format_name is None:
            self._diagnose(DiagnosticKind.UNKNOWN_VERSION, f"Unknown version format {version.format:#04x}", offset)
        return version

    def _read_record_header(self) -> RecordHeader:
        offset = self._reader.tell()
        raw_bytes = self._reader.read_bytes(RecordHeader.SIZE)
        record_type, length = raw_bytes[0], raw_bytes[1] | raw_bytes[2] << 8
        parsed_header = {"record_type": record_type, "length": length}
        return RecordHeader(**parsed_header, offset=offset, raw_data={"raw": raw_bytes, "parsed": parsed_header})

    def _load_record(self, record_type: RecordType, parser_class):
        """
        Read a tagged record that must appear at the current position.

        The whole payload is read by its declared length before parsing, so
        the cursor always ends up at the next record header.
        """
        header = self._read_record_header()
        if not header.is_type(record_type):
            raise UnexpectedRecordTypeError(record_type, header.record_type, header.offset)

        payload = self._reader.read_bytes(header.length)
        logger.debug("Loaded %s record at %#x, %d bytes", record_type.name, header.offset, header.length)
        return parser_class(header=header, raw_data=payload)

    def _skip_index_tags(self) -> Optional[RecordHeader]:
        """Skip the IndexTags record written by newer compilers, if present."""
        position = self._reader.tell()
        try:
            header = self._read_record_header()
        except ShortReadError:
            self._reader.seek(position)
            return None

        if not header.is_type(RecordType.INDEX_TAGS):
            self._reader.seek(position)
            return None

        logger.debug("Skipping IndexTags record at %#x, %d bytes", header.offset, header.length)
        self._reader.seek(header.end_offset)
        return header

    def iter_records(self) -> Iterator[RecordHeader]:
        """
        Walk every record header from the end of the version block to the end
        of the file, including the Text and Keyword records.
        """
        reader = self._reader
        reader.seek(self._records_offset)
        while not reader.at_end():
            try:
                header = self._read_record_header()
            except ShortReadError as e:
                self._diagnose(DiagnosticKind.SHORT_READ, str(e), e.offset)
                return
            yield header
            reader.seek(header.end_offset)

    def context_offset(self, context_id: int) -> Optional[int]:
        """File offset of the Text record a context id jumps to."""
        return self.context.get_offset(context_id)

    def resolve_index(self, entry: IndexEntry) -> Optional[int]:
        """File offset of the Text record an index entry jumps to."""
        return self.context_offset(entry.context)

    def _read_text_header(self, offset: int) -> Optional[RecordHeader]:
        if offset < 0 or offset >= len(self.data):
            self._diagnose(DiagnosticKind.SHORT_READ, f"Text offset {offset:#x} is outside the file", offset)
            return None

        self._reader.seek(offset)
        try:
            header = self._read_record_header()
        except ShortReadError as e:
            self._diagnose(DiagnosticKind.SHORT_READ, str(e), e.offset)
            return None

        if not header.is_type(RecordType.TEXT):
            self._diagnose(
                DiagnosticKind.UNEXPECTED_RECORD_TYPE,
                f"Expected TEXT record at offset {offset:#x}, got type {header.record_type}",
                offset,
            )
            return None
        return header

    def _read_payload(self, header: RecordHeader) -> bytes:
        self._reader.seek(header.payload_offset)
        payload = self._reader.read_bytes(header.length, partial=True)
        if len(payload) < header.length:
            self._diagnose(
                DiagnosticKind.SHORT_READ,
                f"Short read, trying to read {header.length} bytes got {len(payload)} bytes.",
                header.payload_offset,
            )
        return payload

    def _read_keywords_after(self, text_header: RecordHeader) -> Optional[KeywordRecord]:
        self._reader.seek(text_header.end_offset)
        try:
            header = self._read_record_header()
        except ShortReadError:
            logger.debug("No keyword record after text record at %#x", text_header.offset)
            return None

        if not header.is_type(RecordType.KEYWORD):
            logger.debug("Text record at %#x is followed by type %d", text_header.offset, header.record_type)
            return None

        payload = self._read_payload(header)
        try:
            keywords = KeywordRecord(header=header, raw_data=payload)
        except ShortReadError as e:
            self._diagnose(DiagnosticKind.SHORT_READ, str(e), header.payload_offset)
            return None

        if keywords.truncated:
            self._diagnose(
                DiagnosticKind.SHORT_READ,
                f"Keyword record at {header.offset:#x} holds only {len(keywords.contexts)} targets",
                header.offset,
            )
        return keywords

    def read_keywords(self, offset: int) -> Optional[KeywordRecord]:
        """Read the Keyword record following the Text record at `offset`."""
        header = self._read_text_header(offset)
        if header is None:
            return None
        return self._read_keywords_after(header)

    def decompress_text(self, header: RecordHeader) -> bytes:
        """Decompress a Text record into its control-coded byte stream."""
        width = None
        if self.reflow and self.file_header.max_width > 0:
            width = self.file_header.width

        decompressor = NibbleDecompressor(
            self.compression.table, width=width, left_margin=self.file_header.left_margin
        )
        text = decompressor.decompress(self._read_payload(header))
        if decompressor.truncated:
            self._diagnose(
                DiagnosticKind.TRUNCATED_ESCAPE,
                f"Text record at {header.offset:#x} ends inside a nibble escape",
                header.offset,
            )
        return text

    def render_text(self, offset: int, text_format: TextFormat = TextFormat.PLAIN_TEXT) -> str:
        """
        Decode and render the Text record at a file offset.

        Returns an empty string, and records a diagnostic, if there is no
        Text record at `offset`.
        """
        header = self._read_text_header(offset)
        if header is None:
            return ""

        text = self.decompress_text(header)
        if text_format == TextFormat.PLAIN_TEXT:
            return format_as_text(text)

        keywords = self._read_keywords_after(header)
        formatter = HTMLFormatter(keywords.contexts if keywords else [], link_template=self.link_template)
        html = formatter.format(text)
        if formatter.missing_targets:
            self._diagnose(
                DiagnosticKind.MISSING_KEYWORD_TARGET,
                f"{formatter.missing_targets} keyword span(s) in text record at {offset:#x} have no target",
                offset,
            )
        return html

    def render_context(self, context_id: int, text_format: TextFormat = TextFormat.PLAIN_TEXT) -> str:
        """Render the Text record a context id jumps to."""
        offset = self.context_offset(context_id)
        if offset is None:
            self._diagnose(DiagnosticKind.UNKNOWN_CONTEXT, f"Unknown context id {context_id}")
            return ""
        return self.render_text(offset, text_format)

    def extract_all_text(self) -> str:
        """Extract the text of every distinct context as plain text."""
        texts = []
        seen = set()
        for offset in self.context.offsets:
            if offset < 0 or offset in seen:
                continue
            seen.add(offset)
            texts.append(self.render_text(offset))
        return "\n".join(texts)


def open_file(filepath: str, **kwargs) -> BHFFile:
    """Open and parse a BHF file."""
    return BHFFile(filepath=filepath, **kwargs)
