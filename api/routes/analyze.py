"""
api/routes/analyze.py — Audio analysis endpoints.

Endpoints:
    POST /analyze            — Start analyzing an audio file (background job)
    GET  /analyze/{load_id}  — Phase and outcome of one analysis job

The file path refers to the server filesystem. Analysis runs on the
AnalysisEngine in ingestion/analysis_job.py; a successful current job seeds
the shared timeline served by api/routes/timeline.py.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_analysis_engine
from api.schemas.timeline import AnalyzeJobResponse, AnalyzeRequest
from ingestion.analysis_job import AnalysisEngine, AnalysisJob, JobPhase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze", tags=["analyze"])


def _job_response(engine: AnalysisEngine, job: AnalysisJob) -> AnalyzeJobResponse:
    phase = job.phase
    details: dict = {}
    if phase is JobPhase.SUCCEEDED:
        result = job.result()
        details = {
            "slice_count": result.slice_count,
            "onset_count": len(result.onsets),
            "duration_sec": result.duration_sec,
            "processing_time_ms": round(result.processing_time_ms, 2),
        }
    return AnalyzeJobResponse(
        load_id=job.load_id,
        phase=phase.value,
        error_kind=job.error_kind,
        error_message=job.error_message,
        is_current=engine.is_current(job),
        **details,
    )


# ---------------------------------------------------------------------------
# POST /analyze
# ---------------------------------------------------------------------------


@router.post("", response_model=AnalyzeJobResponse, status_code=202)
def start_analysis(
    request: AnalyzeRequest,
    engine: AnalysisEngine = Depends(get_analysis_engine),
) -> AnalyzeJobResponse:
    """Start loading and analyzing an audio file.

    Starting a new analysis clears the timeline and makes every earlier
    job stale. Loader failures (missing file, unsupported format, decode
    error) are reported by GET /analyze/{load_id}, not here.

    Returns:
        AnalyzeJobResponse for the new job (usually still pending).
    """
    job = engine.start_file(request.file_path, slice_count=request.slice_count)
    return _job_response(engine, job)


# ---------------------------------------------------------------------------
# GET /analyze/{load_id}
# ---------------------------------------------------------------------------


@router.get("/{load_id}", response_model=AnalyzeJobResponse)
def get_analysis(
    load_id: int,
    engine: AnalysisEngine = Depends(get_analysis_engine),
) -> AnalyzeJobResponse:
    """Return the phase of one analysis job.

    Raises:
        404: No recent job with this load id.
    """
    job = engine.get_job(load_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Unknown load id: {load_id}")
    return _job_response(engine, job)
