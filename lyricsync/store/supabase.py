from __future__ import annotations

import logging
import re
import time
from typing import Any

import requests

from lyricsync.lrc.export import export_lrc
from lyricsync.lrc.model import SyncedLyricsDocument
from lyricsync.lrc.payload import PayloadError, document_from_payload, lines_to_rows

from .base import LyricsStore, StoreError
from .types import FailureReason, Found, LoadFailed, LoadResult, NotFound, Saved, SaveFailed, SaveResult, Song, SongPage

logger = logging.getLogger(__name__)

_SONG_COLUMNS = "id,title,artist_name,album,duration_seconds,lyrics_text,status"
_LRC_COLUMNS = "synced_lyrics,source,version,song:songs(title,artist_name,album,duration_seconds)"
_SLUG_BAD = re.compile(r"[^a-zA-Z0-9]")


def _describe(e: requests.RequestException) -> str:
    resp = getattr(e, "response", None)
    if resp is not None:
        return f"HTTP {resp.status_code}: {resp.text[:200]}"
    return str(e)


def _failure(e: requests.RequestException) -> tuple[FailureReason, str]:
    if isinstance(e, requests.Timeout):
        return FailureReason.TIMEOUT, str(e)
    return FailureReason.REJECTED, _describe(e)


def _total_from_content_range(value: str | None, fallback: int) -> int:
    # "0-19/57" or "*/0"
    if value and "/" in value:
        tail = value.rsplit("/", 1)[1]
        if tail.isdigit():
            return int(tail)
    return fallback


def _search_filter(search: str) -> str:
    # double-quoted so commas and parentheses in the query stay literal
    q = search.replace("\\", "\\\\").replace('"', '\\"')
    conds = ",".join(f'{col}.ilike."*{q}*"' for col in ("title", "artist_name", "album"))
    return f"({conds})"


def _row_to_song(row: dict[str, Any]) -> Song:
    return Song(
        id=str(row.get("id")),
        title=row.get("title") or "",
        artist_name=row.get("artist_name") or "",
        album=row.get("album"),
        duration_seconds=row.get("duration_seconds"),
        lyrics_text=row.get("lyrics_text") or "",
        status=row.get("status") or "draft",
    )


class SupabaseStore(LyricsStore):
    """Supabase tables through the PostgREST API (/rest/v1)."""

    name = "supabase"

    def __init__(self, url: str, key: str, *, timeout_s: float = 10.0, session: requests.Session | None = None):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self._headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> requests.Response:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        r = self.session.request(
            method,
            f"{self.base_url}/{table}",
            params=params,
            json=json,
            headers=headers,
            timeout=self.timeout_s,
        )
        r.raise_for_status()
        return r

    def load(self, song_id: str) -> LoadResult:
        try:
            r = self._request(
                "GET",
                "lrc_files",
                params={"song_id": f"eq.{song_id}", "select": _LRC_COLUMNS, "limit": "1"},
            )
            rows = r.json()
        except requests.RequestException as e:
            reason, msg = _failure(e)
            logger.warning("supabase load failed for %s (%s): %s", song_id, reason.value, msg)
            return LoadFailed(reason, msg)
        except ValueError as e:
            return LoadFailed(FailureReason.REJECTED, f"invalid response: {e}")

        if not rows:
            return NotFound(song_id)

        row = rows[0]
        song = row.get("song") or {}
        try:
            doc = document_from_payload(
                {
                    "lyrics": row.get("synced_lyrics"),
                    "metadata": {
                        "source": row.get("source"),
                        "title": song.get("title"),
                        "artist": song.get("artist_name"),
                        "album": song.get("album"),
                        "duration_s": song.get("duration_seconds"),
                    },
                }
            )
        except PayloadError as e:
            logger.error("Stored lyrics for %s are invalid: %s", song_id, e)
            return LoadFailed(FailureReason.REJECTED, f"invalid stored lyrics: {e}")
        return Found(document=doc, version=int(row.get("version") or 1))

    def save(self, song_id: str, doc: SyncedLyricsDocument) -> SaveResult:
        prev = self.load(song_id)
        if isinstance(prev, LoadFailed):
            return SaveFailed(prev.reason, prev.message)
        version = prev.version + 1 if isinstance(prev, Found) else 1

        body = {
            "song_id": song_id,
            "synced_lyrics": lines_to_rows(doc.lines),
            "lrc_raw": export_lrc(doc),
            "source": doc.source.value,
            "version": version,
        }
        try:
            self._request(
                "POST",
                "lrc_files",
                params={"on_conflict": "song_id"},
                json=body,
                prefer="resolution=merge-duplicates,return=minimal",
            )
        except requests.RequestException as e:
            reason, msg = _failure(e)
            logger.warning("supabase save failed for %s (%s): %s", song_id, reason.value, msg)
            return SaveFailed(reason, msg)
        logger.info("Saved %d lines for song %s (version %s)", len(doc.lines), song_id, version)
        return Saved(song_id=song_id, version=version)

    def get_song(self, song_id: str) -> Song | None:
        try:
            r = self._request("GET", "songs", params={"id": f"eq.{song_id}", "select": _SONG_COLUMNS, "limit": "1"})
            rows = r.json()
        except (requests.RequestException, ValueError) as e:
            raise StoreError(f"Failed to fetch song {song_id}: {e}") from e
        return _row_to_song(rows[0]) if rows else None

    def list_songs(
        self, *, status: str | None = None, search: str | None = None, page: int = 1, limit: int = 20
    ) -> SongPage:
        page = max(page, 1)
        params = {
            "select": _SONG_COLUMNS,
            "order": "created_at.desc",
            "offset": str((page - 1) * limit),
            "limit": str(limit),
        }
        if status:
            params["status"] = f"eq.{status}"
        if search:
            params["or"] = _search_filter(search)
        try:
            r = self._request("GET", "songs", params=params, prefer="count=exact")
            rows = r.json()
        except (requests.RequestException, ValueError) as e:
            raise StoreError(f"Failed to fetch songs: {e}") from e
        songs = tuple(_row_to_song(row) for row in rows)
        total = _total_from_content_range(r.headers.get("Content-Range"), len(songs))
        return SongPage(songs=songs, page=page, limit=limit, total=total)

    def add_song(
        self,
        *,
        title: str,
        artist_name: str,
        lyrics_text: str,
        album: str | None = None,
        duration_seconds: float | None = None,
        status: str = "draft",
    ) -> Song:
        slug = f"{_SLUG_BAD.sub('-', title).lower()}-{int(time.time() * 1000)}"
        body = {
            "title": title,
            "slug": slug,
            "artist_name": artist_name,
            "album": album,
            "duration_seconds": duration_seconds,
            "lyrics_text": lyrics_text,
            "status": status,
        }
        try:
            r = self._request("POST", "songs", json=[body], prefer="return=representation")
            rows = r.json()
        except (requests.RequestException, ValueError) as e:
            raise StoreError(f"Failed to add song: {e}") from e
        if not rows:
            raise StoreError("Failed to add song: empty response")
        return _row_to_song(rows[0])
