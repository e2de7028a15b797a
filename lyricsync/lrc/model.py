from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LyricsSource(str, Enum):
    AI = "ai"
    MANUAL = "manual"
    HYBRID = "hybrid"
    LRC_IMPORT = "lrc_import"


@dataclass(frozen=True, slots=True)
class SyncedLine:
    time: float  # seconds from track start
    text: str


@dataclass(frozen=True, slots=True)
class SyncedLyricsDocument:
    lines: tuple[SyncedLine, ...]
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    duration_s: float | None = None
    source: LyricsSource = LyricsSource.MANUAL

    @property
    def has_metadata(self) -> bool:
        return any(v is not None for v in (self.title, self.artist, self.album, self.duration_s))


def split_lyrics_lines(text: str) -> tuple[str, ...]:
    """Raw (unsynced) lyrics -> ordered non-blank lines."""
    return tuple(ln.strip() for ln in text.splitlines() if ln.strip())
