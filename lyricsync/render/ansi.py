from __future__ import annotations

import shutil
import signal
import sys
from dataclasses import dataclass
from typing import Callable

import colorama

CSI = "\x1b["


def _sgr(*codes: int) -> str:
    return CSI + ";".join(str(c) for c in codes) + "m"


@dataclass(frozen=True, slots=True)
class Theme:
    title: str = _sgr(35, 1)  # magenta bold
    current: str = _sgr(32, 1)  # green bold
    past: str = _sgr(90)  # bright black
    upcoming: str = _sgr(37)  # white
    reset: str = _sgr(0)


def visible_window(count: int, current_idx: int | None, rows: int, context_lines: int) -> tuple[int, int]:
    """[start, end) slice of lines to show, keeping context_lines above the active one."""
    start = 0 if current_idx is None else max(current_idx - context_lines, 0)
    end = min(start + rows, count)
    start = max(end - rows, 0)
    return start, end


class AnsiRenderer:
    def __init__(self, use_alt_screen: bool = True, theme: Theme | None = None):
        self.use_alt_screen = use_alt_screen
        self.theme = theme or Theme()
        self._entered = False
        self._resize_handler: Callable[..., None] | None = None
        self._last_render_args: tuple[str, list[str], int | None, int] | None = None

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit()

    def enter(self) -> None:
        if self._entered:
            return
        colorama.just_fix_windows_console()
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049h")  # alt screen
        sys.stdout.write(CSI + "?25l")  # hide cursor
        sys.stdout.write(CSI + "H" + CSI + "2J")  # home + clear
        sys.stdout.flush()
        self._entered = True

        def _on_resize(signum=None, frame=None):
            if self._last_render_args:
                self.render(*self._last_render_args)

        self._resize_handler = _on_resize
        if hasattr(signal, "SIGWINCH"):
            signal.signal(signal.SIGWINCH, _on_resize)

    def exit(self) -> None:
        if not self._entered:
            return
        if self._resize_handler and hasattr(signal, "SIGWINCH"):
            signal.signal(signal.SIGWINCH, signal.SIG_DFL)
        self._resize_handler = None
        sys.stdout.write(self.theme.reset)
        sys.stdout.write(CSI + "?25h")  # show cursor
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049l")  # normal screen
        sys.stdout.flush()
        self._entered = False
        self._last_render_args = None

    def render(
        self,
        title: str,
        lines: list[str],
        current_idx: int | None,
        context_lines: int = 2,
    ) -> None:
        self._last_render_args = (title, lines, current_idx, context_lines)

        _cols, rows = shutil.get_terminal_size(fallback=(80, 24))
        # reserve 1 line for title
        start, end = visible_window(len(lines), current_idx, max(rows - 1, 1), context_lines)

        out: list[str] = [f"{self.theme.title}♫ {title} ♫{self.theme.reset}"]
        for i in range(start, end):
            if current_idx is not None and i == current_idx:
                style = self.theme.current
            elif current_idx is not None and i < current_idx:
                style = self.theme.past
            else:
                style = self.theme.upcoming
            out.append(f"{style}{lines[i]}{self.theme.reset}")

        # move home + clear, then print full frame
        sys.stdout.write(CSI + "H" + CSI + "2J")
        sys.stdout.write("\n".join(out))
        sys.stdout.write(self.theme.reset)
        sys.stdout.flush()
