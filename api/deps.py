"""
FastAPI dependency providers.

Provides singletons for the shared timeline store and the analysis engine
so they are created once and reused across requests. The engine is wired
to the store, so a finished analysis seeds the timeline the routes edit.
"""

from infrastructure.timeline_store import TimelineStore
from ingestion.analysis_job import AnalysisEngine

_timeline_store: TimelineStore | None = None


def get_timeline_store() -> TimelineStore:
    """Return the process-wide ``TimelineStore`` singleton."""
    global _timeline_store  # noqa: PLW0603
    if _timeline_store is None:
        _timeline_store = TimelineStore()
    return _timeline_store


_analysis_engine: AnalysisEngine | None = None


def get_analysis_engine() -> AnalysisEngine:
    """
    Return a cached ``AnalysisEngine`` singleton.

    Reads engine settings from the environment on first call and attaches
    the shared timeline store. The engine is reused thereafter.
    """
    global _analysis_engine  # noqa: PLW0603
    if _analysis_engine is None:
        _analysis_engine = AnalysisEngine(store=get_timeline_store())
    return _analysis_engine
