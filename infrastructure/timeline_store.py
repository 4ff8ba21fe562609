"""Thread-safe holder for the current panel timeline.

The timeline functions in ``core.timeline`` are pure and copy-on-write.
This store is the single place that owns the *current* PanelList when it is
shared between threads (API handlers, the analysis engine's worker). Every
read-modify-write runs under one lock, so two concurrent edits can never
both read the same list and drop each other's change.

Loads are scoped by ``load_id``: ``replace()`` with a load id older than the
one already held is ignored, so a slow analysis of an abandoned file can
never overwrite the timeline of a newer one. An import of music-map text
claims a new load id too.

Usage::

    store = TimelineStore()
    store.replace(seed(onsets), load_id=1)
    store.insert(12.5)
    index = store.active_index(current_time)
    text = store.export_text()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from core.timeline import synchronizer
from core.timeline.text_format import deserialize_with_errors, serialize
from core.timeline.types import PanelList
from infrastructure.metrics import record_import_skipped, record_timeline_mutation

logger = logging.getLogger(__name__)


class TimelineStore:
    """Lock-guarded owner of the current PanelList.

    Args:
        panels: Initial panels. Sorted on entry.
    """

    def __init__(self, panels: PanelList = ()) -> None:
        """Initialize with an optional starting timeline."""
        self._lock = threading.Lock()
        self._panels: PanelList = tuple(sorted(panels, key=lambda p: p.timestamp))
        self._load_id: int = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> PanelList:
        """Return the current PanelList. Safe to keep; it is immutable."""
        with self._lock:
            return self._panels

    @property
    def load_id(self) -> int:
        """Load id of the timeline currently held (0 = never loaded)."""
        with self._lock:
            return self._load_id

    def active_index(self, time: float) -> int:
        """Active panel index for a playback time, computed fresh on every call."""
        with self._lock:
            return synchronizer.active_index(self._panels, time)

    def export_text(self) -> str:
        """Serialize the current timeline as music-map text."""
        with self._lock:
            return serialize(self._panels)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _apply(self, operation: str, fn: Callable[..., PanelList], *args: Any) -> PanelList:
        with self._lock:
            self._panels = fn(self._panels, *args)
            panels = self._panels
        record_timeline_mutation(operation)
        return panels

    def insert(self, time: float) -> PanelList:
        """Insert an empty panel at `time`."""
        return self._apply("insert", synchronizer.insert, time)

    def remove(self, index: int) -> PanelList:
        """Remove the panel at `index` (no-op when out of range)."""
        return self._apply("remove", synchronizer.remove, index)

    def cycle_cell(self, panel_index: int, row: int, col: int) -> PanelList:
        """Advance one board cell of one panel."""
        return self._apply("cycle_cell", synchronizer.cycle_cell, panel_index, row, col)

    def nudge(self, index: int, offset: float) -> PanelList:
        """Shift one panel by `offset` seconds (clamped at 0) and re-sort."""
        return self._apply("nudge", synchronizer.nudge, index, offset)

    def replace(self, panels: PanelList, *, load_id: int | None = None) -> bool:
        """Swap in a whole new timeline.

        Args:
            panels: New panels. Sorted on entry.
            load_id: Load the panels belong to. Ignored (returns False) when
                older than the load already held. None keeps the current id.

        Returns:
            True if the timeline was replaced.
        """
        ordered = tuple(sorted(panels, key=lambda p: p.timestamp))
        with self._lock:
            if load_id is not None and load_id < self._load_id:
                logger.warning(
                    "TimelineStore: ignoring panels from stale load %d (current %d)",
                    load_id,
                    self._load_id,
                )
                return False
            if load_id is not None:
                self._load_id = load_id
            self._panels = ordered
        record_timeline_mutation("replace")
        return True

    def import_text(self, text: str, *, load_id: int | None = None) -> tuple[PanelList, int]:
        """Replace the timeline with panels parsed from music-map text.

        An import is a load of its own: it takes `load_id`, or the next id
        after the one held when None, so any analysis still running for an
        earlier load can no longer replace the imported panels.
        Malformed blocks are skipped and counted.

        Returns:
            (new panels, number of skipped blocks)

        Raises:
            ValueError: `load_id` is older than the load already held.
        """
        panels, errors = deserialize_with_errors(text)
        ordered = tuple(sorted(panels, key=lambda p: p.timestamp))
        with self._lock:
            if load_id is None:
                load_id = self._load_id + 1
            elif load_id < self._load_id:
                raise ValueError(
                    f"Import load {load_id} is older than current load {self._load_id}"
                )
            self._load_id = load_id
            self._panels = ordered
        if errors:
            logger.warning("TimelineStore: import skipped %d malformed block(s)", len(errors))
            record_import_skipped(len(errors))
        record_timeline_mutation("import")
        logger.info("TimelineStore: load=%d imported %d panel(s)", load_id, len(ordered))
        return ordered, len(errors)
