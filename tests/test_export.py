import json

import pytest

from lyricsync.lrc.export import export_document, export_json, export_lrc, export_srt
from lyricsync.lrc.model import LyricsSource, SyncedLine, SyncedLyricsDocument
from lyricsync.lrc.parse import parse_lrc


def _doc(*pairs, **meta):
    return SyncedLyricsDocument(lines=tuple(SyncedLine(t, s) for t, s in pairs), **meta)


def test_export_lrc_without_metadata():
    doc = _doc((0.5, "Hello"), (3.2, "World"))
    assert export_lrc(doc) == "[00:00.50]Hello\n[00:03.20]World"


def test_export_lrc_with_metadata_header():
    doc = _doc((1.2, "Père Dieu de gloire"), title="Hosanna", artist="Ronn The Voice", duration_s=225.4)
    assert export_lrc(doc) == (
        "[ti:Hosanna]\n"
        "[ar:Ronn The Voice]\n"
        "[length:03:45]\n"
        "[by:LyricSync]\n"
        "\n"
        "[00:01.20]Père Dieu de gloire"
    )


def test_export_lrc_is_idempotent():
    doc = _doc((0.0, "a"), (61.07, "b"), album="Souffle")
    assert export_lrc(doc) == export_lrc(doc)


def test_lrc_round_trip():
    doc = _doc((0.0, "Je suis ton ami"), (4.2, "Celui qui sera toujours là"), (8.8, "Dans les moments difficiles"), (13.1, "Je te tiendrai la main"), title="Je Suis Ton Ami", artist="Dena Mwana")
    back = parse_lrc(export_lrc(doc))
    assert [ln.text for ln in back.lines] == [ln.text for ln in doc.lines]
    assert [ln.time for ln in back.lines] == pytest.approx([ln.time for ln in doc.lines])
    assert back.title == doc.title
    assert back.artist == doc.artist


def test_export_srt_basic():
    doc = _doc((0.0, "a"), (1.0, "b"))
    srt = export_srt(doc)
    assert srt == "1\n00:00:00,000 --> 00:00:01,000\na\n\n2\n00:00:01,000 --> 00:00:04,000\nb\n"


def test_export_srt_last_line_fallback_and_hours():
    doc = _doc((3599.5, "late"), (3725.125, "last"))
    srt = export_srt(doc)
    assert "00:59:59,500 --> 01:02:05,125" in srt
    assert "01:02:05,125 --> 01:02:08,125" in srt


def test_export_srt_empty():
    assert export_srt(_doc()) == ""


def test_export_json_structure():
    doc = _doc((1.2, "Hosanna"), title="Hosanna", source=LyricsSource.HYBRID)
    data = json.loads(export_json(doc, "1"))
    assert data == {
        "song_id": "1",
        "format": "json",
        "lyrics": [{"time": 1.2, "text": "Hosanna"}],
        "metadata": {"source": "hybrid", "title": "Hosanna"},
    }


def test_export_document_dispatch():
    doc = _doc((0.5, "Hello"))
    assert export_document(doc, "LRC") == "[00:00.50]Hello"
    assert export_document(doc, "srt", srt_last_line_s=1.0).startswith("1\n00:00:00,500 --> 00:00:01,500")
    assert json.loads(export_document(doc, "json", song_id="x"))["song_id"] == "x"
    with pytest.raises(ValueError):
        export_document(doc, "txt")
