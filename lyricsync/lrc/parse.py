from __future__ import annotations

from dataclasses import dataclass
import re

from .model import LyricsSource, SyncedLine, SyncedLyricsDocument
from .timestamp import TIMESTAMP_PATTERN, timestamp_from_parts

_TS_RE = re.compile(TIMESTAMP_PATTERN)
_META_PREFIXES = ("[ti:", "[ar:", "[al:", "[by:", "[offset:", "[length:")
_TAG_RE = re.compile(r"^\[([a-zA-Z]+):(.*)\]$")
_LENGTH_RE = re.compile(r"^(\d+):([0-5]\d)(?:\.\d+)?$")


class LrcParseError(ValueError):
    pass


class NoSyncedLyricsError(LrcParseError):
    pass


@dataclass(frozen=True, slots=True)
class LrcParseStats:
    lines_total: int
    events_total: int
    lines_with_timestamps: int
    lines_ignored: int
    metadata_lines: int


def _is_metadata(line: str) -> bool:
    return line.lower().startswith(_META_PREFIXES)


def _parse_length(value: str) -> float | None:
    m = _LENGTH_RE.match(value)
    if not m:
        return None
    return float(int(m.group(1)) * 60 + int(m.group(2)))


def parse_lrc_with_stats(text: str) -> tuple[SyncedLyricsDocument, LrcParseStats]:
    """
    Supported:
    - [mm:ss.xx], [mm:ss.xxx]
    - multiple timestamps per line (one entry each, same text)
    - [ti:], [ar:], [al:], [length:] tags -> document metadata
    - [by:], [offset:] are recognized and dropped (offset is not applied)

    Lines without a valid timestamp or without text are skipped.
    Entries are stable-sorted by time.
    """
    if not isinstance(text, str):
        raise LrcParseError(f"LRC text must be a string, got {type(text).__name__}")

    tags: dict[str, str] = {}
    lines: list[SyncedLine] = []

    total = 0
    lines_with_ts = 0
    ignored = 0
    meta = 0

    for raw in text.splitlines():
        total += 1
        line = raw.strip()
        if not line:
            ignored += 1
            continue

        if _is_metadata(line):
            meta += 1
            tag = _TAG_RE.match(line)
            if tag:
                k = tag.group(1).lower()
                v = tag.group(2).strip()
                if v:
                    tags[k] = v
            continue

        ts = list(_TS_RE.finditer(line))
        if not ts:
            ignored += 1
            continue

        payload = line[line.rfind("]") + 1 :].strip()
        if not payload:
            ignored += 1
            continue

        lines_with_ts += 1
        for m in ts:
            t = timestamp_from_parts(m.group(1), m.group(2), m.group(3))
            lines.append(SyncedLine(time=t, text=payload))

    # list.sort is stable: equal times keep file order
    lines.sort(key=lambda ln: ln.time)

    doc = SyncedLyricsDocument(
        lines=tuple(lines),
        title=tags.get("ti"),
        artist=tags.get("ar"),
        album=tags.get("al"),
        duration_s=_parse_length(tags["length"]) if "length" in tags else None,
    )
    stats = LrcParseStats(
        lines_total=total,
        events_total=len(doc.lines),
        lines_with_timestamps=lines_with_ts,
        lines_ignored=ignored,
        metadata_lines=meta,
    )
    return doc, stats


def parse_lrc(text: str) -> SyncedLyricsDocument:
    doc, _stats = parse_lrc_with_stats(text)
    return doc


def import_lrc(text: str) -> SyncedLyricsDocument:
    """
    Parse an uploaded LRC file.

    Raises NoSyncedLyricsError when non-blank input holds no lyric entries.
    """
    doc = parse_lrc(text)
    if not doc.lines and text.strip():
        raise NoSyncedLyricsError("No synchronizable lyric lines found")
    return SyncedLyricsDocument(
        lines=doc.lines,
        title=doc.title,
        artist=doc.artist,
        album=doc.album,
        duration_s=doc.duration_s,
        source=LyricsSource.LRC_IMPORT,
    )


def looks_like_lrc(text: str) -> bool:
    return any(_TS_RE.search(ln) for ln in text.splitlines())


def extract_plain_lyrics(text: str) -> str:
    """Display-only transcript of an LRC file: timestamped lines in file order, timestamps stripped."""
    out: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or _is_metadata(line) or not _TS_RE.search(line):
            continue
        payload = line[line.rfind("]") + 1 :].strip()
        if payload:
            out.append(payload)
    return "\n".join(out)
