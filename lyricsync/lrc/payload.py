from __future__ import annotations

import math
from typing import Any

from .model import LyricsSource, SyncedLine, SyncedLyricsDocument


class PayloadError(ValueError):
    pass


def lines_to_rows(lines: tuple[SyncedLine, ...]) -> list[dict[str, Any]]:
    return [{"time": ln.time, "text": ln.text} for ln in lines]


def metadata_to_dict(doc: SyncedLyricsDocument) -> dict[str, Any]:
    md: dict[str, Any] = {"source": doc.source.value}
    for k in ("title", "artist", "album", "duration_s"):
        v = getattr(doc, k)
        if v is not None:
            md[k] = v
    return md


def document_to_payload(doc: SyncedLyricsDocument, song_id: str) -> dict[str, Any]:
    return {
        "song_id": song_id,
        "format": "json",
        "lyrics": lines_to_rows(doc.lines),
        "metadata": metadata_to_dict(doc),
    }


def _row_to_line(row: Any, idx: int) -> SyncedLine:
    if not isinstance(row, dict):
        raise PayloadError(f"lyrics[{idx}] must be an object")
    t = row.get("time")
    text = row.get("text")
    if isinstance(t, bool) or not isinstance(t, (int, float)) or math.isnan(t) or t < 0:
        raise PayloadError(f"lyrics[{idx}].time must be a non-negative number")
    if not isinstance(text, str) or not text.strip():
        raise PayloadError(f"lyrics[{idx}].text must be a non-empty string")
    return SyncedLine(time=float(t), text=text.strip())


def _opt_str(md: dict[str, Any], key: str) -> str | None:
    v = md.get(key)
    if v is None or v == "":
        return None
    if not isinstance(v, str):
        raise PayloadError(f"metadata.{key} must be a string")
    return v


def document_from_payload(data: Any) -> SyncedLyricsDocument:
    """
    Validate the JSON interchange structure (or a stored row of the same shape).

    Only "lyrics" is required; "metadata" defaults to a manual source.
    """
    if not isinstance(data, dict):
        raise PayloadError("payload must be an object")
    rows = data.get("lyrics")
    if not isinstance(rows, list):
        raise PayloadError("payload.lyrics must be a list")
    lines = [_row_to_line(r, i) for i, r in enumerate(rows)]
    lines.sort(key=lambda ln: ln.time)

    md = data.get("metadata")
    if md is None:
        md = {}
    if not isinstance(md, dict):
        raise PayloadError("payload.metadata must be an object")
    try:
        source = LyricsSource(md.get("source") or LyricsSource.MANUAL.value)
    except ValueError as e:
        raise PayloadError(f"unknown source: {md.get('source')!r}") from e

    duration = md.get("duration_s")
    if duration is not None and (isinstance(duration, bool) or not isinstance(duration, (int, float))):
        raise PayloadError("metadata.duration_s must be a number")

    return SyncedLyricsDocument(
        lines=tuple(lines),
        title=_opt_str(md, "title"),
        artist=_opt_str(md, "artist"),
        album=_opt_str(md, "album"),
        duration_s=float(duration) if duration is not None else None,
        source=source,
    )
