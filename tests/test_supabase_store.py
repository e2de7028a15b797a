from __future__ import annotations

from typing import Any

import pytest
import requests

from lyricsync.lrc.model import LyricsSource, SyncedLine, SyncedLyricsDocument
from lyricsync.store.base import StoreError
from lyricsync.store.supabase import SupabaseStore
from lyricsync.store.types import FailureReason, Found, LoadFailed, NotFound, Saved, SaveFailed


class FakeResponse:
    def __init__(self, status_code: int = 200, data: Any = None, headers: dict[str, str] | None = None):
        self.status_code = status_code
        self._data = data
        self.headers = headers or {}
        self.text = "" if data is None else str(data)

    def json(self) -> Any:
        return self._data

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    """Replays queued responses (or exceptions) and records each request."""

    def __init__(self, *responses: FakeResponse | Exception):
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def _store(*responses) -> tuple[SupabaseStore, FakeSession]:
    session = FakeSession(*responses)
    return SupabaseStore("https://demo.supabase.co/", "anon-key", timeout_s=10.0, session=session), session


ROW = {
    "synced_lyrics": [{"time": 4.2, "text": "Celui qui sera toujours là"}, {"time": 0.0, "text": "Je suis ton ami"}],
    "source": "manual",
    "version": 3,
    "song": {"title": "Je Suis Ton Ami", "artist_name": "Dena Mwana", "album": "Souffle", "duration_seconds": 312},
}


def test_load_found_joins_song_metadata():
    store, session = _store(FakeResponse(data=[ROW]))
    res = store.load("2")
    assert isinstance(res, Found)
    assert res.version == 3
    assert res.document.lines[0] == SyncedLine(0.0, "Je suis ton ami")
    assert res.document.artist == "Dena Mwana"
    assert res.document.duration_s == 312.0

    req = session.requests[0]
    assert req["method"] == "GET"
    assert req["url"] == "https://demo.supabase.co/rest/v1/lrc_files"
    assert req["params"]["song_id"] == "eq.2"
    assert req["headers"]["apikey"] == "anon-key"
    assert req["headers"]["Authorization"] == "Bearer anon-key"
    assert req["timeout"] == 10.0


def test_load_empty_is_not_found():
    store, _ = _store(FakeResponse(data=[]))
    assert store.load("9") == NotFound("9")


def test_load_timeout_and_rejection_are_distinct():
    store, _ = _store(requests.Timeout("slow"), FakeResponse(status_code=500, data={"message": "db down"}))
    first = store.load("1")
    second = store.load("1")
    assert isinstance(first, LoadFailed) and first.reason is FailureReason.TIMEOUT
    assert isinstance(second, LoadFailed) and second.reason is FailureReason.REJECTED
    assert "HTTP 500" in second.message


def test_load_invalid_row_is_rejected():
    store, _ = _store(FakeResponse(data=[{"synced_lyrics": "garbage", "source": "manual"}]))
    res = store.load("1")
    assert isinstance(res, LoadFailed)
    assert res.reason is FailureReason.REJECTED


def test_save_upserts_with_next_version():
    store, session = _store(FakeResponse(data=[ROW]), FakeResponse(status_code=201))
    doc = SyncedLyricsDocument(lines=(SyncedLine(1.0, "a"),), source=LyricsSource.LRC_IMPORT)
    assert store.save("2", doc) == Saved("2", 4)

    post = session.requests[1]
    assert post["method"] == "POST"
    assert post["params"] == {"on_conflict": "song_id"}
    assert post["headers"]["Prefer"].startswith("resolution=merge-duplicates")
    assert post["json"]["version"] == 4
    assert post["json"]["source"] == "lrc_import"
    assert post["json"]["synced_lyrics"] == [{"time": 1.0, "text": "a"}]
    assert post["json"]["lrc_raw"] == "[00:01.00]a"


def test_save_first_version_and_failures():
    doc = SyncedLyricsDocument(lines=(SyncedLine(1.0, "a"),))

    store, _ = _store(FakeResponse(data=[]), FakeResponse(status_code=201))
    assert store.save("5", doc) == Saved("5", 1)

    store, _ = _store(FakeResponse(data=[]), requests.Timeout("slow"))
    res = store.save("5", doc)
    assert isinstance(res, SaveFailed) and res.reason is FailureReason.TIMEOUT

    store, _ = _store(FakeResponse(data=[]), FakeResponse(status_code=403, data={"message": "RLS"}))
    res = store.save("5", doc)
    assert isinstance(res, SaveFailed) and res.reason is FailureReason.REJECTED

    store, session = _store(requests.ConnectionError("offline"))
    res = store.save("5", doc)
    assert isinstance(res, SaveFailed) and res.reason is FailureReason.REJECTED
    assert len(session.requests) == 1


def test_list_songs_reads_total_from_content_range():
    rows = [{"id": "1", "title": "Hosanna", "artist_name": "Ronn The Voice", "status": "published"}]
    store, session = _store(FakeResponse(data=rows, headers={"Content-Range": "0-0/3"}))
    page = store.list_songs(status="published", page=1, limit=1)
    assert page.total == 3
    assert page.total_pages == 3
    assert page.songs[0].title == "Hosanna"
    assert session.requests[0]["params"]["status"] == "eq.published"
    assert session.requests[0]["headers"]["Prefer"] == "count=exact"


def test_get_and_add_song():
    row = {"id": "7", "title": "Hosanna", "artist_name": "Ronn The Voice", "lyrics_text": "a\nb", "status": "draft"}
    store, session = _store(FakeResponse(data=[row]), FakeResponse(data=[]), FakeResponse(status_code=201, data=[row]))
    assert store.get_song("7").lyrics_text == "a\nb"
    assert store.get_song("8") is None
    song = store.add_song(title="Hosanna", artist_name="Ronn The Voice", lyrics_text="a\nb")
    assert song.id == "7"
    assert session.requests[2]["json"][0]["slug"].startswith("hosanna-")


def test_catalogue_errors_raise_store_error():
    store, _ = _store(requests.ConnectionError("offline"))
    with pytest.raises(StoreError):
        store.list_songs()


def test_list_songs_search_filters_title_artist_and_album():
    store, session = _store(FakeResponse(data=[], headers={"Content-Range": "*/0"}))
    page = store.list_songs(status="published", search='Mbiye, "live"')
    assert page.total == 0
    params = session.requests[0]["params"]
    assert params["status"] == "eq.published"
    assert params["or"] == (
        '(title.ilike."*Mbiye, \\"live\\"*",'
        'artist_name.ilike."*Mbiye, \\"live\\"*",'
        'album.ilike."*Mbiye, \\"live\\"*")'
    )
