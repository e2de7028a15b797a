from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from lyricsync.lrc.model import SyncedLyricsDocument


class FailureReason(str, Enum):
    TIMEOUT = "timeout"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Found:
    document: SyncedLyricsDocument
    version: int


@dataclass(frozen=True, slots=True)
class NotFound:
    song_id: str


@dataclass(frozen=True, slots=True)
class LoadFailed:
    reason: FailureReason
    message: str


@dataclass(frozen=True, slots=True)
class Saved:
    song_id: str
    version: int


@dataclass(frozen=True, slots=True)
class SaveFailed:
    reason: FailureReason
    message: str


LoadResult = Found | NotFound | LoadFailed
SaveResult = Saved | SaveFailed


@dataclass(frozen=True, slots=True)
class Song:
    id: str
    title: str
    artist_name: str
    album: str | None = None
    duration_seconds: float | None = None
    lyrics_text: str = ""
    status: str = "draft"

    @property
    def display(self) -> str:
        if self.artist_name and self.title:
            return f"{self.artist_name} - {self.title}"
        return self.title or self.artist_name or "Unknown song"


@dataclass(frozen=True, slots=True)
class SongPage:
    songs: tuple[Song, ...]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit > 0 else 0
