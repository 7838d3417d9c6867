"""Text decoding utilities for BHF help files.

Help text and index labels are stored in the DOS code page 437. This module
provides the byte to text table used by every decoder, plus an HTML variant
that escapes markup characters and keeps spaces from collapsing.

Reference: https://en.wikipedia.org/wiki/Code_page_437
"""

from enum import IntEnum
from typing import List

# Graphic glyphs DOS displays for the control range 0x01-0x1F. The cp437
# codec maps these bytes to the C0 control characters instead.
_CONTROL_GLYPHS = (
    "\u263a\u263b\u2665\u2666\u2663\u2660\u2022\u25d8\u25cb\u25d9\u2642\u2640\u266a\u266b\u263c"
    "\u25ba\u25c4\u2195\u203c\u00b6\u00a7\u25ac\u21a8\u2191\u2193\u2192\u2190\u221f\u2194\u25b2\u25bc"
)

HTML_ESCAPES = {
    '"': "&quot;",
    "&": "&amp;",
    "'": "&#39;",
    "/": "&#47;",
    "<": "&lt;",
    ">": "&gt;",
    " ": "&nbsp;",
}


def _build_cp437_table() -> List[str]:
    table = [bytes([value]).decode("cp437") for value in range(256)]
    table[0x00] = "\n"
    for value, glyph in enumerate(_CONTROL_GLYPHS, start=0x01):
        table[value] = glyph
    table[0x7F] = "\u2302"
    return table


CP437_TABLE = _build_cp437_table()
CP437_HTML_TABLE = [HTML_ESCAPES.get(char, char) for char in CP437_TABLE]


def cp437_to_text(value: int) -> str:
    """Translate a single code page 437 byte to its Unicode text."""
    return CP437_TABLE[value]


def cp437_to_html(value: int) -> str:
    """Translate a single code page 437 byte to HTML-safe text."""
    return CP437_HTML_TABLE[value]


def decode_cp437(data: bytes) -> str:
    """
    Decode a code page 437 byte string.

    Used for the stamp and index labels. Every byte value has a mapping, so
    unlike `bytes.decode` this never fails and control bytes come out as
    their DOS glyphs.

    Args:
        data: Raw bytes from the help file

    Returns:
        Decoded string
    """
    return "".join(CP437_TABLE[value] for value in data)


class ControlCode(IntEnum):
    """Formatting instructions carried in-band in decompressed text."""

    NEW_LINE = 0x00
    DOCUMENT_END = 0x01
    KEYWORD_TOGGLE = 0x02
    SOURCE_CODE_TOGGLE = 0x05


CONTROL_CODES = frozenset(ControlCode)
