from __future__ import annotations

import time
from typing import Callable, Protocol


class PlaybackTransport(Protocol):
    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    def position(self) -> float: ...


class Stopwatch:
    """
    Pausable wall clock standing in for a player, for audio played outside any
    MPRIS-capable application.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._offset = 0.0
        self._started_at: float | None = None

    @property
    def playing(self) -> bool:
        return self._started_at is not None

    def play(self) -> None:
        if self._started_at is None:
            self._started_at = self._clock()

    def pause(self) -> None:
        self._offset = self.position()
        self._started_at = None

    def seek(self, seconds: float) -> None:
        self._offset = max(0.0, seconds)
        if self._started_at is not None:
            self._started_at = self._clock()

    def position(self) -> float:
        if self._started_at is None:
            return self._offset
        return self._offset + (self._clock() - self._started_at)
