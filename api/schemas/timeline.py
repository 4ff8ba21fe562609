"""
api/schemas/timeline.py — Pydantic request/response schemas for analysis and timeline endpoints.

Covers:
    /analyze              — AnalyzeRequest / AnalyzeJobResponse
    /timeline             — TimelineResponse
    /timeline/panels      — InsertPanelRequest, CycleCellRequest, NudgeRequest
    /timeline/import      — ImportRequest / ImportResponse
"""

from pydantic import BaseModel, Field

from core.timeline.types import BOARD_COLS, BOARD_ROWS
from core.timeline.types import Panel as PanelValue

# ---------------------------------------------------------------------------
# Shared sub-schemas
# ---------------------------------------------------------------------------


class PanelOut(BaseModel):
    """A single timeline panel."""

    timestamp: float = Field(..., ge=0.0)
    board: list[list[int]]

    @classmethod
    def from_panel(cls, panel: PanelValue) -> "PanelOut":
        """Build the response model from a core Panel."""
        return cls(timestamp=panel.timestamp, board=[list(row) for row in panel.board])


# ---------------------------------------------------------------------------
# /analyze
# ---------------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    """Start analysis of an audio file on the server filesystem."""

    file_path: str = Field(..., min_length=1)
    slice_count: int | None = Field(default=None, ge=0)


class AnalyzeJobResponse(BaseModel):
    """State of one analysis job."""

    load_id: int
    phase: str
    error_kind: str | None = None
    error_message: str | None = None
    slice_count: int | None = None
    onset_count: int | None = None
    duration_sec: float | None = None
    processing_time_ms: float | None = None
    is_current: bool = True


# ---------------------------------------------------------------------------
# /timeline
# ---------------------------------------------------------------------------


class TimelineResponse(BaseModel):
    """The current timeline, optionally with the active panel for a playback time."""

    load_id: int
    panels: list[PanelOut]
    active_index: int | None = None


class InsertPanelRequest(BaseModel):
    """Insert an empty panel at a playback time."""

    time: float = Field(..., ge=0.0, allow_inf_nan=False)


class CycleCellRequest(BaseModel):
    """Advance one board cell (0 → 1 → 2 → 0)."""

    row: int = Field(..., ge=0, lt=BOARD_ROWS)
    col: int = Field(..., ge=0, lt=BOARD_COLS)


class NudgeRequest(BaseModel):
    """Shift a panel in time. Positive = later."""

    offset: float = Field(..., allow_inf_nan=False)


class ImportRequest(BaseModel):
    """Replace the timeline with panels parsed from music-map text."""

    text: str


class ImportResponse(BaseModel):
    """Result of a music-map import."""

    panels: list[PanelOut]
    imported: int
    skipped_blocks: int
