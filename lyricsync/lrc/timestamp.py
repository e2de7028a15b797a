from __future__ import annotations

import math
import re

# [mm:ss.xx] / [mm:ss.xxx]; minutes are uncapped so encoded values >= 100 min decode too
TIMESTAMP_PATTERN = r"\[(\d{2,}):([0-5]\d)\.(\d{2,3})\]"
_TS_FULL_RE = re.compile(TIMESTAMP_PATTERN)


class InvalidTimestampError(ValueError):
    pass


def encode_timestamp(seconds: float) -> str:
    """
    Seconds -> "[MM:SS.CC]".

    Rounded to hundredths before splitting so 59.999 gives [01:00.00].
    """
    if not math.isfinite(seconds) or seconds < 0:
        raise InvalidTimestampError(f"Timestamp must be finite and >= 0, got {seconds!r}")
    centis = int(round(seconds * 100))
    m, rem = divmod(centis, 6_000)
    s, cs = divmod(rem, 100)
    return f"[{m:02d}:{s:02d}.{cs:02d}]"


def timestamp_from_parts(minutes: str, seconds: str, frac: str) -> float:
    # "50" -> 0.50, "500" -> 0.500
    return int(minutes) * 60 + int(seconds) + int(frac) / (10 ** len(frac))


def decode_timestamp(text: str) -> float:
    m = _TS_FULL_RE.fullmatch(text.strip())
    if not m:
        raise InvalidTimestampError(f"Not an LRC timestamp: {text!r}")
    return timestamp_from_parts(m.group(1), m.group(2), m.group(3))
