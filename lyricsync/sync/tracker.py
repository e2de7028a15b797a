from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Sequence

from lyricsync.lrc.model import SyncedLine


def resolve_active_index(lines: Sequence[SyncedLine], current_time: float) -> int | None:
    """
    Index of the last line whose time <= current_time, or None before the first line.

    The last line stays active past its nominal end.
    """
    i = bisect_right([ln.time for ln in lines], current_time) - 1
    return i if i >= 0 else None


@dataclass(slots=True)
class LineTracker:
    """
    Efficient lookup: O(log n) via bisect + update only on change.
    Works for backward seeks, no monotonic time feed assumed.
    """

    times: list[float]
    texts: list[str]
    last_idx: int | None = None

    @classmethod
    def from_lines(cls, lines: Sequence[SyncedLine]) -> "LineTracker":
        return cls(times=[ln.time for ln in lines], texts=[ln.text for ln in lines])

    def current_index(self, now: float) -> int | None:
        i = bisect_right(self.times, now) - 1
        return i if i >= 0 else None

    def changed_index(self, now: float) -> tuple[bool, int | None]:
        """(changed, index); index is None before the first line."""
        i = self.current_index(now)
        if i != self.last_idx:
            self.last_idx = i
            return True, i
        return False, i
