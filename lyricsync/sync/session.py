"""
Tap-to-sync session.

A TapSession is an immutable value; every transition returns a new session.
Calling a transition outside its valid state returns the session unchanged
so a stray key press never breaks an in-progress sync.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from lyricsync.lrc.model import LyricsSource, SyncedLine, SyncedLyricsDocument, split_lyrics_lines


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    SYNCING = "syncing"
    COMPLETED = "completed"


class EmptyLyricsError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class TapSession:
    lines: tuple[str, ...]
    current_index: int = 0
    recorded: tuple[SyncedLine, ...] = ()
    playback_time: float = 0.0
    started: bool = False

    @classmethod
    def from_lyrics_text(cls, text: str) -> "TapSession":
        return cls(lines=split_lyrics_lines(text))

    @property
    def state(self) -> SessionState:
        if not self.started:
            return SessionState.NOT_STARTED
        if self.current_index >= len(self.lines):
            return SessionState.COMPLETED
        return SessionState.SYNCING

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def current_line(self) -> str | None:
        if self.current_index < len(self.lines):
            return self.lines[self.current_index]
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "lines": list(self.lines),
            "current_index": self.current_index,
            "recorded": [{"time": ln.time, "text": ln.text} for ln in self.recorded],
            "playback_time": self.playback_time,
            "started": self.started,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TapSession":
        return cls(
            lines=tuple(data["lines"]),
            current_index=int(data.get("current_index", 0)),
            recorded=tuple(SyncedLine(float(r["time"]), str(r["text"])) for r in data.get("recorded", [])),
            playback_time=float(data.get("playback_time", 0.0)),
            started=bool(data.get("started", False)),
        )


def start(session: TapSession) -> TapSession:
    if not session.lines:
        raise EmptyLyricsError("Cannot start a sync session without lyrics")
    return replace(session, current_index=0, recorded=(), started=True)


def update_time(session: TapSession, playback_time: float) -> TapSession:
    return replace(session, playback_time=max(0.0, playback_time))


def tap(session: TapSession) -> TapSession:
    if session.state is not SessionState.SYNCING:
        return session
    line = SyncedLine(time=session.playback_time, text=session.lines[session.current_index])
    return replace(
        session,
        recorded=session.recorded + (line,),
        current_index=session.current_index + 1,
    )


def undo(session: TapSession) -> TapSession:
    if not session.recorded:
        return session
    return replace(
        session,
        recorded=session.recorded[:-1],
        current_index=max(session.current_index - 1, 0),
    )


def adjust_last(session: TapSession, delta: float) -> TapSession:
    """
    Shift the newest entry by delta seconds, clamped to its predecessor (or 0).

    An entry already earlier than its predecessor (tapped after a backward
    seek) is only floored at 0.
    """
    if not session.recorded:
        return session
    last = session.recorded[-1]
    floor = 0.0
    if len(session.recorded) > 1 and session.recorded[-2].time <= last.time:
        floor = session.recorded[-2].time
    moved = SyncedLine(time=max(floor, last.time + delta), text=last.text)
    return replace(session, recorded=session.recorded[:-1] + (moved,))


def reset(session: TapSession) -> TapSession:
    return replace(session, current_index=0, recorded=(), playback_time=0.0, started=False)


def finalize(
    session: TapSession,
    *,
    title: str | None = None,
    artist: str | None = None,
    album: str | None = None,
    duration_s: float | None = None,
) -> SyncedLyricsDocument | None:
    """Recorded lines as a document, or None unless every line has been tapped."""
    if session.state is not SessionState.COMPLETED:
        return None
    # taps after a backward seek may be out of order
    lines = sorted(session.recorded, key=lambda ln: ln.time)
    return SyncedLyricsDocument(
        lines=tuple(lines),
        title=title,
        artist=artist,
        album=album,
        duration_s=duration_s,
        source=LyricsSource.MANUAL,
    )
