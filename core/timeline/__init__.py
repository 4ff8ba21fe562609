"""
core/timeline — Panel timeline: ordering, edits, and text import/export.

All functions are pure and copy-on-write: PanelList in → new PanelList out.
Thread-safe shared state lives in infrastructure/timeline_store.py.

Public API:
    Types:        Panel, PanelList, Board, EMPTY_BOARD
    Synchronizer: seed, active_index, insert, remove, cycle_cell, nudge,
                  seek_target, nudge_step, is_sorted
    Text format:  serialize, deserialize, parse_block
"""

from core.timeline.synchronizer import (
    active_index,
    cycle_cell,
    insert,
    is_sorted,
    nudge,
    nudge_step,
    remove,
    seed,
    seek_target,
)
from core.timeline.text_format import deserialize, parse_block, serialize
from core.timeline.types import EMPTY_BOARD, Board, Panel, PanelList

__all__ = [
    # Types
    "Panel",
    "PanelList",
    "Board",
    "EMPTY_BOARD",
    # Synchronizer
    "seed",
    "active_index",
    "insert",
    "remove",
    "cycle_cell",
    "nudge",
    "seek_target",
    "nudge_step",
    "is_sorted",
    # Text format
    "serialize",
    "deserialize",
    "parse_block",
]
