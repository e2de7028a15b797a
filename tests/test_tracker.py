from lyricsync.lrc.model import SyncedLine
from lyricsync.sync.tracker import LineTracker, resolve_active_index

LINES = (SyncedLine(0.0, "a"), SyncedLine(5.0, "b"), SyncedLine(10.0, "c"))


def test_resolver_boundaries():
    assert resolve_active_index(LINES, 4.9) == 0
    assert resolve_active_index(LINES, 5.0) == 1
    assert resolve_active_index(LINES, 9.99) == 1
    assert resolve_active_index(LINES, -1) is None
    assert resolve_active_index(LINES, 10) == 2
    assert resolve_active_index(LINES, 100) == 2


def test_resolver_before_first_line_and_empty():
    late_start = (SyncedLine(2.0, "x"),)
    assert resolve_active_index(late_start, 1.99) is None
    assert resolve_active_index((), 3.0) is None


def test_resolver_equal_times_picks_last():
    lines = (SyncedLine(1.0, "a"), SyncedLine(1.0, "b"), SyncedLine(2.0, "c"))
    assert resolve_active_index(lines, 1.5) == 1


def test_tracker_changed_only_on_change():
    tr = LineTracker.from_lines(LINES)
    assert tr.changed_index(0) == (True, 0)
    assert tr.changed_index(1.0) == (False, 0)
    assert tr.changed_index(4.99) == (False, 0)
    assert tr.changed_index(5.0) == (True, 1)
    assert tr.changed_index(7.5) == (False, 1)
    assert tr.changed_index(25.0) == (True, 2)


def test_tracker_follows_backward_seek():
    tr = LineTracker.from_lines(LINES)
    tr.changed_index(12.0)
    assert tr.changed_index(6.0) == (True, 1)
    assert tr.changed_index(-0.5) == (True, None)
