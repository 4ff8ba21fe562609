"""
core/timeline/synchronizer.py — Ordered panel timeline operations.

Every operation is copy-on-write: it takes a PanelList (a sorted tuple of
frozen Panels) and returns a new PanelList. Callers swap their reference;
nothing is edited in place. This keeps the sort and bounds checks in one
place instead of at every call site.

Index conventions:
    -1 means "no panel" (e.g. playback time before the first panel).
    Out-of-range indices make remove / cycle_cell / nudge a no-op. Python
    negative indexing is never applied, so -1 cannot remove the last panel.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable

from core.timeline.types import BOARD_COLS, BOARD_ROWS, CELL_STATES, Panel, PanelList

# Nudge step sizes in seconds (Shift = fine, Ctrl = coarse)
NUDGE_FINE: float = 0.05
NUDGE_DEFAULT: float = 0.1
NUDGE_COARSE: float = 0.5


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _timestamp(panel: Panel) -> float:
    return panel.timestamp


def _sorted(panels: Iterable[Panel]) -> PanelList:
    """Stable sort by timestamp; equal timestamps keep their relative order."""
    return tuple(sorted(panels, key=_timestamp))


def _in_range(panels: PanelList, index: int) -> bool:
    return 0 <= index < len(panels)


# ---------------------------------------------------------------------------
# Construction & queries
# ---------------------------------------------------------------------------


def is_sorted(panels: PanelList) -> bool:
    """True when timestamps are non-decreasing."""
    return all(a.timestamp <= b.timestamp for a, b in zip(panels, panels[1:]))


def seed(onsets: Iterable[float]) -> PanelList:
    """Create one empty-board Panel per onset timestamp.

    Detector output is already ascending, but the result is sorted anyway
    so any iterable of timestamps yields a valid timeline.

    Raises:
        ValueError: An onset is negative or not finite.
    """
    return _sorted(Panel(timestamp=t) for t in onsets)


def active_index(panels: PanelList, time: float) -> int:
    """Index of the last panel whose timestamp is <= time.

    Binary search over the sorted timestamps; same answer as scanning from
    the end for the first panel at or before `time`.

    Returns:
        The greatest i with panels[i].timestamp <= time, or -1 if none
        (empty list, or time before the first panel).
    """
    return bisect.bisect_right(panels, time, key=_timestamp) - 1


def seek_target(panels: PanelList, time: float, step: int) -> float | None:
    """Timestamp of the panel `step` positions from the active one.

    step=+1 is "next panel", step=-1 "previous panel". From before the first
    panel (active index -1), step=+1 targets panel 0.

    Returns:
        The target panel's timestamp, or None if that index does not exist.
    """
    target = active_index(panels, time) + step
    if not _in_range(panels, target):
        return None
    return panels[target].timestamp


def nudge_step(*, fine: bool = False, coarse: bool = False) -> float:
    """Nudge distance in seconds: coarse 0.5, fine 0.05, otherwise 0.1.

    Coarse wins when both modifiers are held.
    """
    if coarse:
        return NUDGE_COARSE
    if fine:
        return NUDGE_FINE
    return NUDGE_DEFAULT


# ---------------------------------------------------------------------------
# Mutations (copy-on-write)
# ---------------------------------------------------------------------------


def insert(panels: PanelList, time: float) -> PanelList:
    """Insert an empty-board Panel at `time`, after any panels with the same timestamp.

    Raises:
        ValueError: time is negative or not finite.
    """
    panel = Panel(timestamp=time)
    position = bisect.bisect_right(panels, panel.timestamp, key=_timestamp)
    return panels[:position] + (panel,) + panels[position:]


def remove(panels: PanelList, index: int) -> PanelList:
    """Remove the panel at `index`. No-op if index is -1 or out of range."""
    if not _in_range(panels, index):
        return panels
    return panels[:index] + panels[index + 1 :]


def cycle_cell(panels: PanelList, panel_index: int, row: int, col: int) -> PanelList:
    """Advance one cell of one panel's board: 0 → 1 → 2 → 0.

    No-op if panel_index is -1 or out of range.

    Raises:
        IndexError: row/col is outside the fixed board.
    """
    if not _in_range(panels, panel_index):
        return panels
    if not (0 <= row < BOARD_ROWS and 0 <= col < BOARD_COLS):
        raise IndexError(f"Cell ({row}, {col}) is outside the {BOARD_ROWS}x{BOARD_COLS} board")

    panel = panels[panel_index]
    board = [list(r) for r in panel.board]
    board[row][col] = (board[row][col] + 1) % len(CELL_STATES)
    updated = Panel(timestamp=panel.timestamp, board=tuple(tuple(r) for r in board))
    return panels[:panel_index] + (updated,) + panels[panel_index + 1 :]


def nudge(panels: PanelList, index: int, offset: float) -> PanelList:
    """Shift one panel's timestamp by `offset` seconds, clamped at 0, then re-sort.

    No-op if index is -1 or out of range.
    """
    if not _in_range(panels, index):
        return panels
    panel = panels[index]
    moved = Panel(timestamp=max(0.0, panel.timestamp + offset), board=panel.board)
    return _sorted(panels[:index] + (moved,) + panels[index + 1 :])
