from __future__ import annotations

import json
import re

import pytest
from typer.testing import CliRunner

from lyricsync.cli import app
from lyricsync.i18n import set_lang

runner = CliRunner()

LRC = "[ti:Hosanna]\n[ar:Ronn The Voice]\n[length:03:45]\n\n[00:01.20]Père Dieu de gloire\n[00:05.50]Ton amour nous inonde\n"


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("LYRICSYNC_BACKEND", "sqlite")
    monkeypatch.delenv("LYRICSYNC_LANG", raising=False)
    yield
    set_lang("EN")


@pytest.fixture
def lrc_file(tmp_path):
    p = tmp_path / "hosanna.lrc"
    p.write_text(LRC, encoding="utf-8")
    return p


def _song_id(output: str) -> str:
    m = re.search(r"Added song (\w+)", output)
    assert m, output
    return m.group(1)


def test_export_srt(lrc_file):
    result = runner.invoke(app, ["export", str(lrc_file), "--format", "srt"])
    assert result.exit_code == 0, result.output
    assert "1\n00:00:01,200 --> 00:00:05,500\nPère Dieu de gloire\n" in result.output
    assert "00:00:05,500 --> 00:00:08,500" in result.output


def test_export_json_with_overrides(lrc_file, tmp_path):
    out = tmp_path / "out.json"
    result = runner.invoke(app, ["export", str(lrc_file), "--format", "json", "--song-id", "1", "--album", "Adorons", "--out", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["song_id"] == "1"
    assert data["metadata"]["album"] == "Adorons"
    assert data["metadata"]["title"] == "Hosanna"
    assert len(data["lyrics"]) == 2


def test_export_rejects_unknown_format(lrc_file):
    result = runner.invoke(app, ["export", str(lrc_file), "--format", "txt"])
    assert result.exit_code != 0


def test_parse_and_plain(lrc_file):
    result = runner.invoke(app, ["parse", str(lrc_file)])
    assert "events_total=2" in result.output
    assert "title=Hosanna" in result.output

    result = runner.invoke(app, ["plain", str(lrc_file)])
    assert result.output == "Père Dieu de gloire\nTon amour nous inonde\n"


def test_add_song_from_lrc_then_render(lrc_file):
    result = runner.invoke(app, ["add-song", str(lrc_file), "--title", "Hosanna", "--artist", "Ronn The Voice"])
    assert result.exit_code == 0, result.output
    song_id = _song_id(result.output)
    assert "Imported 2 lines" in result.output

    result = runner.invoke(app, ["lrc", song_id, "--format", "lrc"])
    assert result.exit_code == 0, result.output
    assert "[length:03:45]" in result.output
    assert "[00:05.50]Ton amour nous inonde" in result.output


def test_lrc_not_synced_is_not_an_error(tmp_path):
    lyrics = tmp_path / "lyrics.txt"
    lyrics.write_text("Nzambe Monene\nTango Na Yo\n", encoding="utf-8")
    song_id = _song_id(runner.invoke(app, ["add-song", str(lyrics), "--title", "Nzambe Monene", "--artist", "Moise Mbiye"]).output)

    result = runner.invoke(app, ["lrc", song_id])
    assert result.exit_code == 0
    assert "No synced lyrics yet for this song" in result.output


def test_import_without_content_fails(tmp_path):
    bad = tmp_path / "bad.lrc"
    bad.write_text("[ti:Nothing]\nno timing here\n", encoding="utf-8")
    result = runner.invoke(app, ["import", str(bad), "--song", "1"])
    assert result.exit_code == 1
    assert "No synchronizable content found" in result.output


def test_songs_json_pagination(tmp_path):
    lyrics = tmp_path / "lyrics.txt"
    lyrics.write_text("a\nb\n", encoding="utf-8")
    for title in ("One", "Two", "Three"):
        runner.invoke(app, ["add-song", str(lyrics), "--title", title, "--artist", "X", "--status", "published"])

    result = runner.invoke(app, ["songs", "--status", "published", "--limit", "2", "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert len(data["songs"]) == 2
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}


def test_sync_with_stopwatch_saves(tmp_path):
    lyrics = tmp_path / "lyrics.txt"
    lyrics.write_text("Je suis ton ami\n\nCelui qui sera toujours là\n", encoding="utf-8")
    song_id = _song_id(runner.invoke(app, ["add-song", str(lyrics), "--title", "Je Suis Ton Ami", "--artist", "Dena Mwana"]).output)

    # start, two taps, save
    result = runner.invoke(app, ["sync", song_id, "--stopwatch"], input="\n\n\ns\n")
    assert result.exit_code == 0, result.output
    assert "Synchronization saved (version 1)" in result.output

    result = runner.invoke(app, ["lrc", song_id, "--format", "json"])
    data = json.loads(result.output)
    assert [row["text"] for row in data["lyrics"]] == ["Je suis ton ami", "Celui qui sera toujours là"]
    assert data["metadata"]["source"] == "manual"


def test_sync_unknown_song():
    result = runner.invoke(app, ["sync", "missing", "--stopwatch"])
    assert result.exit_code == 1
    assert "Song missing not found" in result.output


def test_config_lang_switches_messages():
    result = runner.invoke(app, ["config", "--lang", "fr"])
    assert result.exit_code == 0
    assert "Langue définie : FR" in result.output

    result = runner.invoke(app, ["sync", "missing", "--stopwatch"])
    assert "Chanson missing introuvable" in result.output


def test_songs_search(tmp_path):
    lyrics = tmp_path / "lyrics.txt"
    lyrics.write_text("a\n", encoding="utf-8")
    runner.invoke(app, ["add-song", str(lyrics), "--title", "Hosanna", "--artist", "Ronn The Voice"])
    runner.invoke(app, ["add-song", str(lyrics), "--title", "Nzambe Monene", "--artist", "Moise Mbiye"])

    result = runner.invoke(app, ["songs", "--search", "RONN"])
    assert result.exit_code == 0, result.output
    assert "Ronn The Voice - Hosanna" in result.output
    assert "Nzambe Monene" not in result.output
    assert "Page 1/1 (1 songs)" in result.output
