"""Renders decompressed, control-coded text as plain text or HTML."""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .text_utils import ControlCode, cp437_to_html, cp437_to_text

logger = logging.getLogger(__name__)

DEFAULT_LINK_TEMPLATE = '<a href="context:{context}">'
HTML_SPACE = cp437_to_html(0x20)


class TextFormat(Enum):
    PLAIN_TEXT = "text"
    HTML = "html"


def format_as_text(data: bytes) -> str:
    """
    Render a control-coded stream as plain text.

    Newlines become line breaks, the stream stops at the first document end
    code and span toggles are dropped.
    """
    text = []
    for value in data:
        if value == ControlCode.DOCUMENT_END:
            break
        if value in (ControlCode.KEYWORD_TOGGLE, ControlCode.SOURCE_CODE_TOGGLE):
            continue
        text.append(cp437_to_text(value))
    return "".join(text)


class FormatterState(Enum):
    NORMAL = "normal"
    KEYWORD = "keyword"
    CODE = "code"
    CODE_KEYWORD = "code_keyword"


class HTMLFormatter:
    """
    Control-code state machine producing hyperlinked HTML.

    The output is kept as a list of fragments so that anchors can be
    inserted around a keyword span once its last visible glyph is known:
    the opening tag goes right before the first non-space glyph of the
    span and the closing tag right after the last one.

    A source code toggle inside a keyword span splits the span into
    segments, each wrapped in its own anchor to the same target, so that
    anchors and `<code>` elements stay properly nested.
    """

    def __init__(self, keywords: Sequence[int] = (), link_template: str = DEFAULT_LINK_TEMPLATE):
        self.keywords = list(keywords)
        self.link_template = link_template
        self.missing_targets = 0

        self._transitions: Dict[Tuple[FormatterState, int], Tuple[FormatterState, Callable[[], None]]] = {
            (FormatterState.NORMAL, ControlCode.KEYWORD_TOGGLE): (FormatterState.KEYWORD, self._open_link),
            (FormatterState.KEYWORD, ControlCode.KEYWORD_TOGGLE): (FormatterState.NORMAL, self._close_link),
            (FormatterState.CODE, ControlCode.KEYWORD_TOGGLE): (FormatterState.CODE_KEYWORD, self._open_link),
            (FormatterState.CODE_KEYWORD, ControlCode.KEYWORD_TOGGLE): (FormatterState.CODE, self._close_link),
            (FormatterState.NORMAL, ControlCode.SOURCE_CODE_TOGGLE): (FormatterState.CODE, self._open_code),
            (FormatterState.CODE, ControlCode.SOURCE_CODE_TOGGLE): (FormatterState.NORMAL, self._close_code),
            (FormatterState.KEYWORD, ControlCode.SOURCE_CODE_TOGGLE): (
                FormatterState.CODE_KEYWORD,
                self._open_code_in_link,
            ),
            (FormatterState.CODE_KEYWORD, ControlCode.SOURCE_CODE_TOGGLE): (
                FormatterState.KEYWORD,
                self._close_code_in_link,
            ),
        }
        self._reset()

    def _reset(self):
        self.state = FormatterState.NORMAL
        self.fragments: List[str] = []
        self.next_keyword = 0
        self.link_segments: List[Tuple[int, int]] = []
        self.link_start: Optional[int] = None
        self.link_end: Optional[int] = None

    @property
    def in_link(self) -> bool:
        return self.state in (FormatterState.KEYWORD, FormatterState.CODE_KEYWORD)

    def _open_link(self):
        self.link_segments = []
        self.link_start = None
        self.link_end = None

    def _end_segment(self):
        if self.link_start is not None:
            self.link_segments.append((self.link_start, self.link_end))
        self.link_start = None
        self.link_end = None

    def _close_link(self):
        if self.next_keyword < len(self.keywords):
            context = self.keywords[self.next_keyword]
        else:
            context = None
            self.missing_targets += 1
            logger.warning("Keyword span %d has no target context", self.next_keyword)
        self.next_keyword += 1

        self._end_segment()
        if context is None:
            return
        anchor = self.link_template.format(context=context)
        # Insert from the end so earlier indexes stay valid.
        for start, end in reversed(self.link_segments):
            self.fragments.insert(end, "</a>")
            self.fragments.insert(start, anchor)

    def _open_code(self):
        self.fragments.append("<code>")

    def _close_code(self):
        self.fragments.append("</code>")

    def _open_code_in_link(self):
        self._end_segment()
        self._open_code()

    def _close_code_in_link(self):
        self._end_segment()
        self._close_code()

    def _glyph(self, value: int):
        fragment = cp437_to_html(value)
        self.fragments.append(fragment)
        if self.in_link and fragment != HTML_SPACE:
            if self.link_start is None:
                self.link_start = len(self.fragments) - 1
            self.link_end = len(self.fragments)

    def feed(self, value: int) -> bool:
        """Process one byte; returns False once the document end is reached."""
        if value == ControlCode.DOCUMENT_END:
            return False
        if value == ControlCode.NEW_LINE:
            self.fragments.append("<br>")
        elif value in (ControlCode.KEYWORD_TOGGLE, ControlCode.SOURCE_CODE_TOGGLE):
            transition = self._transitions.get((self.state, value))
            if transition is None:
                logger.debug("Ignoring control code %#04x in state %s", value, self.state.value)
            else:
                self.state, action = transition
                action()
        else:
            self._glyph(value)
        return True

    def _finish(self):
        if self.in_link:
            self.feed(ControlCode.KEYWORD_TOGGLE)
        if self.state == FormatterState.CODE:
            self.feed(ControlCode.SOURCE_CODE_TOGGLE)

    def format(self, data: bytes) -> str:
        """Render a control-coded stream, wrapped in a preformatted block."""
        self._reset()
        self.missing_targets = 0
        for value in data:
            if not self.feed(value):
                break
        self._finish()
        return "<pre>" + "".join(self.fragments) + "</pre>"


def format_as_html(data: bytes, keywords: Sequence[int] = (), link_template: str = DEFAULT_LINK_TEMPLATE) -> str:
    """Render a control-coded stream as HTML, linking keyword spans to `keywords` in order."""
    return HTMLFormatter(keywords, link_template=link_template).format(data)
