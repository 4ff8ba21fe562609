"""
api/routes/timeline.py — Panel timeline endpoints.

Endpoints:
    GET    /timeline                         — Current panels (+ active index for ?time=)
    POST   /timeline/panels                  — Insert an empty panel at a time
    DELETE /timeline/panels/{index}          — Remove a panel
    POST   /timeline/panels/{index}/cells    — Cycle one board cell
    POST   /timeline/panels/{index}/nudge    — Shift a panel in time
    GET    /timeline/export                  — Music-map text download
    POST   /timeline/import                  — Replace panels from music-map text

All edits go through the shared TimelineStore, so they are serialized
against each other and against a finishing analysis job. Out-of-range
panel indices leave the timeline unchanged.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from api.deps import get_analysis_engine, get_timeline_store
from api.schemas.timeline import (
    CycleCellRequest,
    ImportRequest,
    ImportResponse,
    InsertPanelRequest,
    NudgeRequest,
    PanelOut,
    TimelineResponse,
)
from core.timeline.types import PanelList
from infrastructure.timeline_store import TimelineStore
from ingestion.analysis_job import AnalysisEngine
from ingestion.music_map import DEFAULT_FILENAME

router = APIRouter(prefix="/timeline", tags=["timeline"])


def _timeline_response(
    store: TimelineStore,
    panels: PanelList,
    active_index: int | None = None,
) -> TimelineResponse:
    return TimelineResponse(
        load_id=store.load_id,
        panels=[PanelOut.from_panel(p) for p in panels],
        active_index=active_index,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("", response_model=TimelineResponse)
def get_timeline(
    time: float | None = Query(default=None, description="Playback time in seconds"),
    store: TimelineStore = Depends(get_timeline_store),
) -> TimelineResponse:
    """Return the current timeline.

    When ``time`` is given, ``active_index`` is the last panel whose
    timestamp is <= time (-1 before the first panel).
    """
    panels = store.snapshot()
    active = None
    if time is not None:
        active = store.active_index(time)
    return _timeline_response(store, panels, active)


@router.get("/export", response_class=PlainTextResponse)
def export_timeline(store: TimelineStore = Depends(get_timeline_store)) -> PlainTextResponse:
    """Download the timeline as music-map text."""
    return PlainTextResponse(
        content=store.export_text(),
        headers={"Content-Disposition": f'attachment; filename="{DEFAULT_FILENAME}"'},
    )


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


@router.post("/panels", response_model=TimelineResponse)
def insert_panel(
    request: InsertPanelRequest,
    store: TimelineStore = Depends(get_timeline_store),
) -> TimelineResponse:
    """Insert an empty panel at ``time`` (after any panel with the same timestamp)."""
    return _timeline_response(store, store.insert(request.time))


@router.delete("/panels/{index}", response_model=TimelineResponse)
def remove_panel(index: int, store: TimelineStore = Depends(get_timeline_store)) -> TimelineResponse:
    """Remove the panel at ``index``."""
    return _timeline_response(store, store.remove(index))


@router.post("/panels/{index}/cells", response_model=TimelineResponse)
def cycle_cell(
    index: int,
    request: CycleCellRequest,
    store: TimelineStore = Depends(get_timeline_store),
) -> TimelineResponse:
    """Advance one cell of a panel's board: 0 → 1 → 2 → 0."""
    try:
        panels = store.cycle_cell(index, request.row, request.col)
    except IndexError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _timeline_response(store, panels)


@router.post("/panels/{index}/nudge", response_model=TimelineResponse)
def nudge_panel(
    index: int,
    request: NudgeRequest,
    store: TimelineStore = Depends(get_timeline_store),
) -> TimelineResponse:
    """Shift a panel by ``offset`` seconds, clamped at 0, and re-sort."""
    return _timeline_response(store, store.nudge(index, request.offset))


@router.post("/import", response_model=ImportResponse)
def import_timeline(
    request: ImportRequest,
    engine: AnalysisEngine = Depends(get_analysis_engine),
) -> ImportResponse:
    """Replace the timeline with panels parsed from music-map text.

    The import is a new load: an analysis still running for an earlier
    file can no longer overwrite it. Malformed blocks are skipped; their
    count is returned.
    """
    panels, skipped = engine.import_text(request.text)
    return ImportResponse(
        panels=[PanelOut.from_panel(p) for p in panels],
        imported=len(panels),
        skipped_blocks=skipped,
    )
