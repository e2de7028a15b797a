from __future__ import annotations

import logging
import time
from typing import Callable

from lyricsync.i18n import t
from lyricsync.lrc.model import SyncedLyricsDocument
from lyricsync.lrc.timestamp import encode_timestamp
from lyricsync.mpris.errors import PlayerUnavailable
from lyricsync.render.ansi import AnsiRenderer
from lyricsync.store.types import FailureReason, LoadFailed, Saved, SaveFailed, SaveResult
from lyricsync.sync.editor import SyncEditor
from lyricsync.sync.session import SessionState
from lyricsync.sync.tracker import LineTracker
from lyricsync.sync.transport import PlaybackTransport

logger = logging.getLogger(__name__)


def play_loop(
    doc: SyncedLyricsDocument,
    transport: PlaybackTransport,
    renderer: AnsiRenderer,
    *,
    title: str,
    tick_s: float,
    context_lines: int = 2,
    should_stop: Callable[[], bool] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Karaoke view:
    transport position -> bisect -> render on change.
    """
    tracker = LineTracker.from_lines(doc.lines)
    texts = [ln.text for ln in doc.lines]
    renderer.render(title, texts, current_idx=None, context_lines=context_lines)

    while not (should_stop and should_stop()):
        try:
            pos = transport.position()
        except PlayerUnavailable as e:
            # player briefly unavailable: keep last frame
            logger.debug("Position unavailable: %s", e)
            sleep(tick_s)
            continue

        changed, idx = tracker.changed_index(pos)
        if changed:
            renderer.render(title, texts, current_idx=idx, context_lines=context_lines)
        sleep(tick_s)


def describe_load_failure(res: LoadFailed) -> str:
    if res.reason is FailureReason.TIMEOUT:
        return t("load_failed_timeout")
    return t("load_failed_rejected", error=res.message)


def describe_save_result(res: SaveResult) -> str:
    if isinstance(res, Saved):
        return t("save_ok", version=res.version)
    if res.reason is FailureReason.TIMEOUT:
        return t("save_timeout")
    return t("save_rejected", error=res.message)


def _echo_progress(editor: SyncEditor, echo: Callable[[str], None]) -> None:
    s = editor.session
    if s.state is SessionState.SYNCING:
        echo(t("sync_next", index=s.current_index + 1, total=s.line_count, line=s.current_line or ""))
    elif s.state is SessionState.COMPLETED:
        echo(t("sync_done"))


def run_tap_sync(
    editor: SyncEditor,
    *,
    read_command: Callable[[], str],
    echo: Callable[[str], None],
    adjust_step_s: float = 0.1,
) -> SaveResult | None:
    """
    Line-driven tap-to-sync loop.

    Enter starts, then taps; u undo; + / - nudge the last line; r reset;
    s save; q quit. Returns the last save result, if any.
    """
    echo(t("sync_help"))
    echo(t("sync_press_start"))
    last_result: SaveResult | None = None

    while True:
        try:
            cmd = read_command().strip().lower()
        except EOFError:
            break

        if cmd == "q":
            break
        if cmd == "":
            try:
                if editor.state is SessionState.NOT_STARTED:
                    editor.start()
                else:
                    before = len(editor.session.recorded)
                    editor.tap()
                    if len(editor.session.recorded) > before:
                        ln = editor.session.recorded[-1]
                        echo(t("sync_tapped", time=encode_timestamp(ln.time), line=ln.text))
            except PlayerUnavailable as e:
                # taps so far are kept; the operator can press Enter again
                logger.warning("Player unavailable during sync: %s", e)
                echo(t("player_unavailable", error=str(e)))
                continue
        elif cmd == "u":
            if editor.session.recorded:
                undone = editor.session.recorded[-1]
                editor.undo()
                echo(t("sync_undone", line=undone.text))
        elif cmd in ("+", "-"):
            if editor.session.recorded:
                editor.adjust_last(adjust_step_s if cmd == "+" else -adjust_step_s)
                echo(t("sync_adjusted", time=encode_timestamp(editor.session.recorded[-1].time)))
        elif cmd == "r":
            try:
                editor.reset()
            except PlayerUnavailable as e:
                logger.warning("Player unavailable during reset: %s", e)
                echo(t("player_unavailable", error=str(e)))
            echo(t("sync_reset"))
            continue
        elif cmd == "s":
            res = editor.save()
            if res is None:
                echo(t("save_incomplete", done=editor.session.current_index, total=editor.session.line_count))
            else:
                last_result = res
                echo(describe_save_result(res))
                if isinstance(res, Saved):
                    break
                if isinstance(res, SaveFailed):
                    logger.warning("Save failed (%s): %s", res.reason.value, res.message)
            continue
        else:
            echo(t("sync_help"))
            continue

        _echo_progress(editor, echo)

    return last_result
