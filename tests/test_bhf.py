"""Tests for the BHF file reader."""

import pytest

from bhf import BHFFile, TextFormat, open_file
from bhf.lib.bhf import MAX_RENDER_DIAGNOSTICS, VersionFormat
from bhf.lib.diagnostics import DiagnosticKind
from bhf.lib.exceptions import InvalidBHFFileError, ShortReadError, UnexpectedRecordTypeError
from bhf.lib.records import RecordType
from bhf_builder import SIGNATURE, STAMP, build_bhf, record

TEXTS = [
    (b"Writeln procedure\x00\x00See also \x02Write\x02 and \x02Readln\x02.", [1, 2]),
    (b"Write procedure", [0, 0]),
    (b"Readln procedure", None),
]
INDEX = [(0, b"Readln", 2), (0, b"Write", 1), (5, b"ln", 0)]


@pytest.fixture
def bhf_path(tmp_path):
    path = tmp_path / "TURBO.TPH"
    path.write_bytes(build_bhf(TEXTS, INDEX, main_index=1))
    return str(path)


def test_parse_header(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)

    assert bhf_file.stamp == STAMP.decode("ascii")
    assert bhf_file.signature == SIGNATURE
    assert bhf_file.version.format == VersionFormat.BP7
    assert bhf_file.version.format_name == "BP7"
    assert bhf_file.version.text == 1
    assert bhf_file.diagnostics == []
    assert bhf_file.last_error == ""


def test_parse_file_header(bhf_path):
    bhf_file = open_file(bhf_path)

    assert bhf_file.file_header.main_index == 1
    assert bhf_file.file_header.height == 25
    assert bhf_file.file_header.width == 80
    assert bhf_file.file_header.left_margin == 0
    assert bhf_file.compression.is_nibble


def test_parse_context_and_index(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)

    assert len(bhf_file.context.offsets) == 3
    assert [entry.label for entry in bhf_file.index.entries] == ["Readln", "Write", "Writeln"]
    assert bhf_file.index_tags is None

    for offset in bhf_file.context.offsets:
        assert bhf_file.data[offset] == RecordType.TEXT


def test_resolve_index_entry(tmp_path):
    path = tmp_path / "ctx.tph"
    path.write_bytes(build_bhf(index=[(0, b"Foo", 1)], extra_contexts=[100, 250]))
    bhf_file = BHFFile(filepath=str(path))

    assert bhf_file.context.offsets == [100, 250]
    assert bhf_file.resolve_index(bhf_file.index.entries[0]) == 250


def test_render_plain_text(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)

    assert bhf_file.render_context(0) == "Writeln procedure\n\nSee also Write and Readln."
    assert bhf_file.render_context(1, TextFormat.PLAIN_TEXT) == "Write procedure"


def test_render_html(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)

    html = bhf_file.render_context(0, TextFormat.HTML)
    assert html == (
        "<pre>Writeln&nbsp;procedure<br><br>See&nbsp;also&nbsp;"
        '<a href="context:1">Write</a>&nbsp;and&nbsp;<a href="context:2">Readln</a>.</pre>'
    )
    assert bhf_file.render_diagnostics == []


def test_render_is_repeatable(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)
    offset = bhf_file.context_offset(0)

    assert bhf_file.render_text(offset, TextFormat.HTML) == bhf_file.render_text(offset, TextFormat.HTML)
    assert bhf_file.render_text(offset) == bhf_file.render_text(offset)


def test_read_keywords(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)

    keywords = bhf_file.read_keywords(bhf_file.context_offset(0))
    assert keywords.contexts == [1, 2]
    assert bhf_file.read_keywords(bhf_file.context_offset(2)) is None


def test_render_non_text_record(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)
    keyword_offset = bhf_file.context_offset(1) - 3 - 10

    assert bhf_file.render_text(keyword_offset) == ""
    assert bhf_file.render_diagnostics[-1].kind == DiagnosticKind.UNEXPECTED_RECORD_TYPE
    assert "TEXT" in bhf_file.last_error


def test_render_outside_file(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)

    assert bhf_file.render_text(len(bhf_file.data) + 10) == ""
    assert bhf_file.render_text(-1) == ""
    assert bhf_file.render_diagnostics[-1].kind == DiagnosticKind.SHORT_READ


def test_render_unknown_context(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)

    assert bhf_file.render_context(42) == ""
    assert bhf_file.render_diagnostics[-1].kind == DiagnosticKind.UNKNOWN_CONTEXT


def test_missing_keyword_target(tmp_path):
    path = tmp_path / "kw.tph"
    path.write_bytes(build_bhf([(b"\x02one\x02 \x02two\x02", [3])]))
    bhf_file = BHFFile(filepath=str(path))

    html = bhf_file.render_context(0, TextFormat.HTML)
    assert html == '<pre><a href="context:3">one</a>&nbsp;two</pre>'
    assert bhf_file.render_diagnostics[-1].kind == DiagnosticKind.MISSING_KEYWORD_TARGET


def test_render_diagnostics_stay_out_of_catalog(tmp_path):
    path = tmp_path / "kw.tph"
    path.write_bytes(build_bhf([(b"\x02one\x02", [])]))
    bhf_file = BHFFile(filepath=str(path))
    catalog = bhf_file.model_dump()

    for _ in range(3):
        bhf_file.render_context(0, TextFormat.HTML)

    assert bhf_file.diagnostics == []
    assert len(bhf_file.render_diagnostics) == 3
    assert bhf_file.model_dump() == catalog
    assert "no target" in bhf_file.last_error


def test_render_diagnostics_are_capped(tmp_path):
    path = tmp_path / "kw.tph"
    path.write_bytes(build_bhf([(b"\x02one\x02", [])]))
    bhf_file = BHFFile(filepath=str(path))

    for _ in range(MAX_RENDER_DIAGNOSTICS + 20):
        bhf_file.render_context(5)

    assert len(bhf_file.render_diagnostics) == MAX_RENDER_DIAGNOSTICS
    assert bhf_file.render_diagnostics[-1].kind == DiagnosticKind.UNKNOWN_CONTEXT


def test_truncated_text_record(tmp_path):
    data = build_bhf([(b"hello there", None)])
    bhf_file = BHFFile(filepath="truncated.tph", data=data[:-2])

    assert bhf_file.render_context(0).startswith("hello")
    assert bhf_file.render_diagnostics[0].kind == DiagnosticKind.SHORT_READ


def test_reflow_uses_screen_width(tmp_path):
    path = tmp_path / "narrow.tph"
    path.write_bytes(build_bhf([(b"aaa bbb ccc ddd", None)], width=12, left_margin=2))

    assert BHFFile(filepath=str(path)).render_context(0) == "aaa bbb\nccc ddd"
    assert BHFFile(filepath=str(path), reflow=False).render_context(0) == "aaa bbb ccc ddd"


def test_no_reflow_when_margin_fills_screen(tmp_path):
    path = tmp_path / "margin.tph"
    path.write_bytes(build_bhf([(b"foo\x00bar", None)], width=4, left_margin=4))
    bhf_file = BHFFile(filepath=str(path))

    assert bhf_file.file_header.max_width == 0
    assert bhf_file.render_context(0) == "foo\nbar"


def test_extract_all_text(tmp_path):
    path = tmp_path / "all.tph"
    path.write_bytes(build_bhf([(b"one", None), (b"two", None)], extra_contexts=[-1]))
    bhf_file = BHFFile(filepath=str(path))

    assert bhf_file.extract_all_text() == "one\ntwo"


def test_iter_records(bhf_path):
    bhf_file = BHFFile(filepath=bhf_path)
    types = [header.record_type for header in bhf_file.iter_records()]

    assert types == [
        RecordType.FILE_HEADER,
        RecordType.COMPRESSION,
        RecordType.CONTEXT,
        RecordType.INDEX,
        RecordType.TEXT,
        RecordType.KEYWORD,
        RecordType.TEXT,
        RecordType.KEYWORD,
        RecordType.TEXT,
    ]


def test_index_tags_are_skipped(tmp_path):
    path = tmp_path / "bp7.tph"
    path.write_bytes(build_bhf(TEXTS, INDEX, after_index=record(RecordType.INDEX_TAGS, b"\x01\x02\x03\x04")))
    bhf_file = BHFFile(filepath=str(path))

    assert bhf_file.index_tags is not None
    assert bhf_file.index_tags.length == 4
    assert bhf_file.render_context(1) == "Write procedure"


def test_invalid_sentinel_is_a_diagnostic(tmp_path):
    path = tmp_path / "sentinel.tph"
    path.write_bytes(build_bhf(TEXTS, INDEX, sentinel=0x00))
    bhf_file = BHFFile(filepath=str(path))

    assert bhf_file.diagnostics[0].kind == DiagnosticKind.INVALID_SENTINEL
    assert bhf_file.render_context(1) == "Write procedure"


def test_unknown_version_is_a_diagnostic(tmp_path):
    path = tmp_path / "version.tph"
    path.write_bytes(build_bhf(TEXTS, INDEX, version=0x99))
    bhf_file = BHFFile(filepath=str(path))

    assert bhf_file.version.format_name is None
    assert bhf_file.diagnostics[0].kind == DiagnosticKind.UNKNOWN_VERSION


def test_unexpected_record_type(tmp_path):
    data = bytearray(build_bhf(TEXTS, INDEX))
    file_header_offset = len(STAMP) + 1 + 1 + len(SIGNATURE) + 1 + 2
    assert data[file_header_offset] == RecordType.FILE_HEADER
    data[file_header_offset] = RecordType.CONTEXT

    with pytest.raises(UnexpectedRecordTypeError) as excinfo:
        BHFFile(filepath="broken.tph", data=bytes(data))
    assert excinfo.value.expected == RecordType.FILE_HEADER
    assert excinfo.value.actual == RecordType.CONTEXT
    assert isinstance(excinfo.value, InvalidBHFFileError)


def test_truncated_catalog_aborts():
    # without texts the Index record is the last one in the file
    data = build_bhf(index=INDEX)

    with pytest.raises(ShortReadError):
        BHFFile(filepath="short.tph", data=data[:-2])


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        BHFFile(filepath=str(tmp_path / "nope.tph"))


def test_model_dump(bhf_path):
    dumped = BHFFile(filepath=bhf_path).model_dump()

    assert "data" not in dumped
    assert dumped["file_header"]["width"] == 80
    assert dumped["context"]["offsets"] == BHFFile(filepath=bhf_path).context.offsets
