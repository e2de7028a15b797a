from __future__ import annotations

import json

from .model import SyncedLyricsDocument
from .payload import document_to_payload
from .timestamp import encode_timestamp

SRT_LAST_LINE_DURATION_S = 3.0


def export_json(doc: SyncedLyricsDocument, song_id: str) -> str:
    return json.dumps(document_to_payload(doc, song_id), ensure_ascii=False, indent=2)


def _fmt_length(seconds: float) -> str:
    m, s = divmod(int(seconds), 60)
    return f"{m:02d}:{s:02d}"


def export_lrc(doc: SyncedLyricsDocument, include_metadata: bool = True) -> str:
    out: list[str] = []
    if include_metadata and doc.has_metadata:
        if doc.title:
            out.append(f"[ti:{doc.title}]")
        if doc.artist:
            out.append(f"[ar:{doc.artist}]")
        if doc.album:
            out.append(f"[al:{doc.album}]")
        if doc.duration_s is not None:
            out.append(f"[length:{_fmt_length(doc.duration_s)}]")
        out.append("[by:LyricSync]")
        out.append("")

    for ln in doc.lines:
        out.append(f"{encode_timestamp(ln.time)}{ln.text}")
    return "\n".join(out)


def _fmt_srt_time(seconds: float) -> str:
    # HH:MM:SS,mmm
    ms = int(round(seconds * 1000))
    h, rem = divmod(ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(doc: SyncedLyricsDocument, last_line_duration_s: float = SRT_LAST_LINE_DURATION_S) -> str:
    """
    End time is next start time, last line ends at +last_line_duration_s.
    """
    lines = doc.lines
    if not lines:
        return ""
    out: list[str] = []
    for i, ln in enumerate(lines, start=1):
        start = ln.time
        if i < len(lines):
            end = lines[i].time
        else:
            end = start + last_line_duration_s
        out.append(str(i))
        out.append(f"{_fmt_srt_time(start)} --> {_fmt_srt_time(end)}")
        out.append(ln.text)
        out.append("")
    return "\n".join(out)


EXPORT_FORMATS = ("lrc", "srt", "json")


def export_document(doc: SyncedLyricsDocument, fmt: str, *, song_id: str = "", srt_last_line_s: float = SRT_LAST_LINE_DURATION_S) -> str:
    fmt_l = fmt.lower()
    if fmt_l == "lrc":
        return export_lrc(doc)
    if fmt_l == "srt":
        return export_srt(doc, last_line_duration_s=srt_last_line_s)
    if fmt_l == "json":
        return export_json(doc, song_id)
    raise ValueError(f"format must be one of: {', '.join(EXPORT_FORMATS)}")
