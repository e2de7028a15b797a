from __future__ import annotations

from lyricsync.lrc.model import SyncedLyricsDocument

from .types import LoadResult, SaveResult, Song, SongPage


class StoreError(RuntimeError):
    pass


class LyricsStore:
    """
    Persistence collaborator.

    load/save report failures as values (LoadFailed/SaveFailed) and never raise;
    the song catalogue calls raise StoreError.
    """

    name: str

    def load(self, song_id: str) -> LoadResult:
        raise NotImplementedError

    def save(self, song_id: str, doc: SyncedLyricsDocument) -> SaveResult:
        raise NotImplementedError

    def get_song(self, song_id: str) -> Song | None:
        raise NotImplementedError

    def list_songs(
        self, *, status: str | None = None, search: str | None = None, page: int = 1, limit: int = 20
    ) -> SongPage:
        """search: case-insensitive substring of title, artist or album."""
        raise NotImplementedError

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
        raise NotImplementedError
