"""Nibble decompression and line reflow for BHF text records."""

import logging
from typing import Iterator, Optional, Sequence

from .text_utils import CONTROL_CODES, ControlCode

logger = logging.getLogger(__name__)

NIBBLE_REPEAT = 0x0E
NIBBLE_RAW = 0x0F

NEW_LINE = ControlCode.NEW_LINE
SPACE = 0x20


def iter_nibbles(data: bytes) -> Iterator[int]:
    """Yield the nibbles of `data`, low nibble of each byte first."""
    for byte in data:
        yield byte & 0x0F
        yield byte >> 4


class Reflow:
    """
    Word wrap applied while a text record is being decompressed.

    Source text stores paragraphs as lines joined by single newlines. Those
    soft breaks are turned into spaces, and when a line grows past
    `width - left_margin` printable columns the most recent eligible space
    already written to `output` is rewritten into a newline. Lines that start
    with a space are preformatted and never rewrapped.
    """

    def __init__(self, width: int, left_margin: int = 0):
        self.output = bytearray()
        self.left_margin = left_margin
        self.max_width = width - left_margin
        self.column = left_margin
        self.armed = False
        self.at_line_start = True
        self.line_start = 0
        self.last_space = -1
        self.join_position = -1
        self.in_keyword = False
        self.previous: Optional[int] = None

    @property
    def line_length(self) -> int:
        return self.column - self.left_margin

    def feed(self, value: int) -> None:
        """Append one decoded byte."""
        if value in CONTROL_CODES and value != NEW_LINE:
            if value == ControlCode.KEYWORD_TOGGLE:
                self.in_keyword = not self.in_keyword
            self.output.append(value)
            return

        if value == NEW_LINE:
            self._new_line()
        elif value == SPACE:
            self._space()
        else:
            self._glyph(value)
        self.previous = value

    def _start_line(self, position: int) -> None:
        self.line_start = position
        self.last_space = -1
        printable = sum(1 for value in self.output[position:] if value not in CONTROL_CODES)
        self.column = self.left_margin + printable

    def _break_line(self) -> None:
        self.output.append(NEW_LINE)
        self._start_line(len(self.output))
        self.armed = False
        self.at_line_start = True

    def _wrap(self) -> None:
        # No eligible space on this line: the token is never split.
        if self.last_space < self.line_start:
            return
        self.output[self.last_space] = NEW_LINE
        self._start_line(self.last_space + 1)

    def _new_line(self) -> None:
        if not self.armed:
            self._break_line()
        elif self.previous == NEW_LINE:
            # Paragraph break: the preceding soft break becomes a real one too.
            self.output[self.join_position] = NEW_LINE
            self._break_line()
        elif self.previous == SPACE:
            self._break_line()
        else:
            if self.line_length > self.max_width:
                self._wrap()
            self.join_position = len(self.output)
            self._space()

    def _space(self) -> None:
        self.at_line_start = False
        self.output.append(SPACE)
        self.column += 1
        if self.armed and not self.in_keyword:
            self.last_space = len(self.output) - 1

    def _glyph(self, value: int) -> None:
        if self.at_line_start:
            self.armed = True
            self.at_line_start = False
        self.output.append(value)
        self.column += 1
        if self.armed and self.line_length > self.max_width:
            self._wrap()


class NibbleDecompressor:
    """
    Expands a nibble-packed text record into control-coded bytes.

    Nibble 0xF escapes a literal byte held in the next two nibbles, 0xE sets
    the repeat count of the next symbol to the following nibble plus one, and
    every other nibble indexes the 14-entry substitution table.
    """

    def __init__(self, table: Sequence[int], width: Optional[int] = None, left_margin: int = 0):
        self.table = list(table)
        self.width = width
        self.left_margin = left_margin
        self.truncated = False

    def _make_sink(self):
        if self.width is not None and self.width - self.left_margin > 0:
            reflow = Reflow(self.width, self.left_margin)
            return reflow.output, reflow.feed
        output = bytearray()
        return output, output.append

    def decompress(self, data: bytes) -> bytes:
        """
        Decompress one text record payload.

        Args:
            data: Payload bytes, two nibbles per byte

        Returns:
            The decoded control-coded byte stream
        """
        output, emit = self._make_sink()
        nibbles = iter_nibbles(data)
        repeat = 1
        self.truncated = False

        for nibble in nibbles:
            if nibble == NIBBLE_RAW:
                low = next(nibbles, None)
                high = next(nibbles, None)
                if high is None:
                    self.truncated = True
                    break
                value = high << 4 | low
            elif nibble == NIBBLE_REPEAT:
                count = next(nibbles, None)
                if count is None:
                    self.truncated = True
                    break
                repeat = count + 1
                continue
            else:
                value = self.table[nibble]

            for _ in range(repeat):
                emit(value)
            repeat = 1

        if self.truncated:
            logger.warning("Text stream ends inside a nibble escape, %d bytes decoded", len(output))
        return bytes(output)


def nibble_decompress(data: bytes, table: Sequence[int], width: Optional[int] = None, left_margin: int = 0) -> bytes:
    """
    Decompresses a nibble-packed text record.

    Without `width` the raw decoded stream is returned; with it, the stream
    is reflowed to `width - left_margin` columns.
    """
    return NibbleDecompressor(table, width=width, left_margin=left_margin).decompress(data)
