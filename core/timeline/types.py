"""
core/timeline/types.py — Frozen data types for the panel timeline.

A Panel is one timed event on the timeline: a timestamp and a small
tri-state board. Boards are tuples of tuples so a Panel is hashable and
can never be edited in place — every edit produces a new Panel.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

BOARD_ROWS: int = 2
BOARD_COLS: int = 4

CELL_STATES: tuple[int, ...] = (0, 1, 2)
"""0 = blank, 1 = black, 2 = purple."""

Board = tuple[tuple[int, ...], ...]

EMPTY_BOARD: Board = tuple(tuple(0 for _ in range(BOARD_COLS)) for _ in range(BOARD_ROWS))


@dataclass(frozen=True)
class Panel:
    """A timestamped board on the timeline.

    Invariants (enforced at construction):
        timestamp is finite and >= 0
        board is exactly BOARD_ROWS × BOARD_COLS
        every cell is one of CELL_STATES
    """

    timestamp: float
    """Seconds from the start of the track."""

    board: Board = field(default=EMPTY_BOARD)
    """BOARD_ROWS rows of BOARD_COLS cell values."""

    def __post_init__(self) -> None:
        """Validate and normalize timestamp and board."""
        timestamp = float(self.timestamp) + 0.0  # normalizes -0.0
        if not math.isfinite(timestamp) or timestamp < 0:
            raise ValueError(f"Panel timestamp must be a finite value >= 0, got {self.timestamp}")

        board = tuple(tuple(int(cell) for cell in row) for row in self.board)
        if len(board) != BOARD_ROWS or any(len(row) != BOARD_COLS for row in board):
            raise ValueError(f"Panel board must be {BOARD_ROWS}x{BOARD_COLS}, got {self.board!r}")
        if any(cell not in CELL_STATES for row in board for cell in row):
            raise ValueError(f"Panel cells must be in {CELL_STATES}, got {self.board!r}")

        object.__setattr__(self, "timestamp", timestamp)
        object.__setattr__(self, "board", board)


PanelList = tuple[Panel, ...]
"""Panels sorted ascending by timestamp."""
