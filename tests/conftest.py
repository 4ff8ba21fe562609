"""
Shared fixtures for the test suite.

Centralizes reusable test infrastructure so individual test files
don't need to repeat store/engine construction or dependency-override
boilerplate.
"""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from api.deps import get_analysis_engine, get_timeline_store
from api.main import app
from core.audio.types import SampleBuffer
from infrastructure.timeline_store import TimelineStore
from ingestion.analysis_job import AnalysisEngine
from ingestion.settings import EngineSettings

# ---------------------------------------------------------------------------
# Fake loader
# ---------------------------------------------------------------------------


class FakeLoader:
    """Deterministic audio loader — no librosa, no files.

    Returns a 2 s, 8 kHz buffer with clicks at 0.60 s and 1.00 s, or raises
    ``error`` when one is set.
    """

    def __init__(self) -> None:
        y = np.zeros(16000)
        y[4800] = 1.0
        y[8000] = 1.0
        self.buffer = SampleBuffer.from_array(y, 8000)
        self.error: Exception | None = None
        self.paths: list[str] = []

    def __call__(self, path, **kwargs) -> SampleBuffer:
        self.paths.append(str(path))
        if self.error is not None:
            raise self.error
        return self.buffer


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> EngineSettings:
    """Engine settings built directly — no environment involved."""
    return EngineSettings(max_workers=2)


@pytest.fixture()
def store() -> TimelineStore:
    """Fresh, empty timeline store."""
    return TimelineStore()


@pytest.fixture()
def fake_loader() -> FakeLoader:
    """Loader returning a two-click buffer."""
    return FakeLoader()


@pytest.fixture()
def engine(settings, store, fake_loader):
    """``AnalysisEngine`` wired to the fake loader and the test store."""
    eng = AnalysisEngine(settings=settings, loader=fake_loader, store=store)
    yield eng
    eng.shutdown()


@pytest.fixture()
def api_client(store, engine):
    """FastAPI ``TestClient`` with the store and engine dependencies overridden."""
    app.dependency_overrides[get_timeline_store] = lambda: store
    app.dependency_overrides[get_analysis_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()
