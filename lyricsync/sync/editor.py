from __future__ import annotations

import logging

from lyricsync.lrc.model import SyncedLyricsDocument
from lyricsync.store.base import LyricsStore
from lyricsync.store.types import SaveResult, Song

from . import session as ts
from .session import SessionState, TapSession
from .transport import PlaybackTransport

logger = logging.getLogger(__name__)


class SyncEditor:
    """
    Drives a TapSession for one song: applies the pure transitions and performs
    the playback and persistence side effects around them.
    """

    def __init__(self, song: Song, transport: PlaybackTransport, store: LyricsStore):
        self.song = song
        self.transport = transport
        self.store = store
        self.session = TapSession.from_lyrics_text(song.lyrics_text)

    @property
    def state(self) -> SessionState:
        return self.session.state

    def on_time(self, playback_time: float) -> None:
        self.session = ts.update_time(self.session, playback_time)

    def start(self) -> None:
        started = ts.start(self.session)
        self.transport.play()
        self.session = started
        logger.debug("Sync started for %s (%d lines)", self.song.id, self.session.line_count)

    def tap(self) -> None:
        if self.session.state is not SessionState.SYNCING:
            return
        self.on_time(self.transport.position())
        self.session = ts.tap(self.session)
        logger.debug("Tap %d/%d at %.2fs", self.session.current_index, self.session.line_count, self.session.playback_time)

    def undo(self) -> None:
        self.session = ts.undo(self.session)
        logger.debug("Undo, %d/%d recorded", len(self.session.recorded), self.session.line_count)

    def adjust_last(self, delta: float) -> None:
        self.session = ts.adjust_last(self.session, delta)
        logger.debug("Adjusted last line by %+.2fs", delta)

    def reset(self) -> None:
        self.session = ts.reset(self.session)
        self.transport.seek(0.0)
        self.transport.pause()
        logger.debug("Sync reset for %s", self.song.id)

    def document(self) -> SyncedLyricsDocument | None:
        return ts.finalize(
            self.session,
            title=self.song.title or None,
            artist=self.song.artist_name or None,
            album=self.song.album,
            duration_s=self.song.duration_seconds,
        )

    def save(self) -> SaveResult | None:
        """Persist the finished sync; None while lines remain untapped."""
        doc = self.document()
        if doc is None:
            return None
        return self.store.save(self.song.id, doc)
