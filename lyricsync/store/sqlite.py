from __future__ import annotations

import json
import logging
import sqlite3
import time
import uuid
from pathlib import Path

from lyricsync.lrc.export import export_lrc
from lyricsync.lrc.model import SyncedLyricsDocument
from lyricsync.lrc.payload import PayloadError, document_from_payload, lines_to_rows, metadata_to_dict

from .base import LyricsStore, StoreError
from .types import FailureReason, Found, LoadFailed, LoadResult, NotFound, Saved, SaveFailed, SaveResult, Song, SongPage

logger = logging.getLogger(__name__)


def _failure_reason(e: sqlite3.Error) -> FailureReason:
    # busy_timeout expired while another writer held the lock
    msg = str(e).lower()
    if isinstance(e, sqlite3.OperationalError) and ("locked" in msg or "busy" in msg):
        return FailureReason.TIMEOUT
    return FailureReason.REJECTED


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def _row_to_song(row: sqlite3.Row) -> Song:
    return Song(
        id=row["id"],
        title=row["title"],
        artist_name=row["artist_name"],
        album=row["album"],
        duration_seconds=row["duration_seconds"],
        lyrics_text=row["lyrics_text"] or "",
        status=row["status"],
    )


class SqliteStore(LyricsStore):
    name = "sqlite"

    def __init__(self, db_path: Path, *, timeout_s: float = 10.0):
        self.db_path = db_path
        self.timeout_s = timeout_s
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path, timeout=self.timeout_s)
        con.row_factory = sqlite3.Row
        # SQLite lower() only folds ASCII
        con.create_function("casefold", 1, _casefold, deterministic=True)
        return con

    def _init_db(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS songs (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    artist_name TEXT NOT NULL,
                    album TEXT,
                    duration_seconds REAL,
                    lyrics_text TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'draft',
                    created_at INTEGER NOT NULL
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS lrc_files (
                    song_id TEXT PRIMARY KEY,
                    synced_lyrics TEXT NOT NULL,
                    lrc_raw TEXT,
                    metadata TEXT NOT NULL DEFAULT '{}',
                    source TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1,
                    updated_at INTEGER NOT NULL
                );
                """
            )
            con.execute("CREATE INDEX IF NOT EXISTS idx_songs_status ON songs(status);")

    def load(self, song_id: str) -> LoadResult:
        try:
            with self._connect() as con:
                row = con.execute(
                    "SELECT synced_lyrics, metadata, version FROM lrc_files WHERE song_id=?",
                    (song_id,),
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning("sqlite load failed for %s: %s", song_id, e)
            return LoadFailed(_failure_reason(e), str(e))

        if row is None:
            return NotFound(song_id)
        try:
            doc = document_from_payload(
                {"lyrics": json.loads(row["synced_lyrics"]), "metadata": json.loads(row["metadata"])}
            )
        except (json.JSONDecodeError, PayloadError) as e:
            logger.error("Stored lyrics for %s are invalid: %s", song_id, e)
            return LoadFailed(FailureReason.REJECTED, f"invalid stored lyrics: {e}")
        return Found(document=doc, version=int(row["version"]))

    def save(self, song_id: str, doc: SyncedLyricsDocument) -> SaveResult:
        now = int(time.time())
        try:
            with self._connect() as con:
                con.execute(
                    """
                    INSERT INTO lrc_files(song_id, synced_lyrics, lrc_raw, metadata, source, version, updated_at)
                    VALUES (?, ?, ?, ?, ?, 1, ?)
                    ON CONFLICT(song_id) DO UPDATE SET
                        synced_lyrics=excluded.synced_lyrics,
                        lrc_raw=excluded.lrc_raw,
                        metadata=excluded.metadata,
                        source=excluded.source,
                        version=lrc_files.version + 1,
                        updated_at=excluded.updated_at
                    """,
                    (
                        song_id,
                        json.dumps(lines_to_rows(doc.lines), ensure_ascii=False),
                        export_lrc(doc),
                        json.dumps(metadata_to_dict(doc), ensure_ascii=False),
                        doc.source.value,
                        now,
                    ),
                )
                row = con.execute("SELECT version FROM lrc_files WHERE song_id=?", (song_id,)).fetchone()
        except sqlite3.Error as e:
            logger.warning("sqlite save failed for %s: %s", song_id, e)
            return SaveFailed(_failure_reason(e), str(e))
        logger.info("Saved %d lines for song %s (version %s)", len(doc.lines), song_id, row["version"])
        return Saved(song_id=song_id, version=int(row["version"]))

    def get_song(self, song_id: str) -> Song | None:
        try:
            with self._connect() as con:
                row = con.execute("SELECT * FROM songs WHERE id=?", (song_id,)).fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return _row_to_song(row) if row is not None else None

    def list_songs(
        self, *, status: str | None = None, search: str | None = None, page: int = 1, limit: int = 20
    ) -> SongPage:
        page = max(page, 1)
        clauses: list[str] = []
        params: list[object] = []
        if status:
            clauses.append("status=?")
            params.append(status)
        if search:
            clauses.append(
                "(instr(casefold(title), ?) > 0 OR instr(casefold(artist_name), ?) > 0"
                " OR instr(casefold(album), ?) > 0)"
            )
            params.extend([search.casefold()] * 3)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            with self._connect() as con:
                total = con.execute(f"SELECT COUNT(*) FROM songs {where}", params).fetchone()[0]
                rows = con.execute(
                    f"SELECT * FROM songs {where} ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                    [*params, limit, (page - 1) * limit],
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return SongPage(songs=tuple(_row_to_song(r) for r in rows), page=page, limit=limit, total=int(total))

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
        song = Song(
            id=uuid.uuid4().hex,
            title=title,
            artist_name=artist_name,
            album=album,
            duration_seconds=duration_seconds,
            lyrics_text=lyrics_text,
            status=status,
        )
        try:
            with self._connect() as con:
                con.execute(
                    """
                    INSERT INTO songs(id, title, artist_name, album, duration_seconds, lyrics_text, status, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        song.id,
                        song.title,
                        song.artist_name,
                        song.album,
                        song.duration_seconds,
                        song.lyrics_text,
                        song.status,
                        int(time.time()),
                    ),
                )
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return song
