"""
ingestion/analysis_job.py — Orchestrator for the audio → timeline pipeline.

AnalysisEngine wires together everything that happens when a file is loaded:

    audio file
        │
        ├─ load_sample_buffer()    [ingestion/audio_loader.py — I/O boundary]
        │       ↓
        ├─ analyze()               [core/audio/spectrum.py — spectral snapshots]
        │       ↓
        ├─ detect_onsets()         [core/audio/onsets.py — onset timestamps]
        │       ↓
        ├─ seed()                  [core/timeline/synchronizer.py — initial panels]
        │       ↓
        └─ TimelineStore.replace() [infrastructure/timeline_store.py — if current]

Every load (an analysis or a music-map import) gets a new, increasing
``load_id``. Starting a new load makes all earlier jobs stale: they may
still finish, but their panels are never written to the store, so results
of an abandoned file cannot leak into the timeline of a newer one.

Progress is exposed as a JobPhase (pending / succeeded / failed) plus a
stable ``error_kind`` — never as a free-text status string.

Usage:
    engine = AnalysisEngine(store=TimelineStore())
    job = engine.start_file("/path/to/track.wav")
    job.wait()
    if job.phase is JobPhase.FAILED:
        print(job.error_message)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np

from core.audio.onsets import detect_onsets
from core.audio.spectrum import analyze as analyze_spectrum
from core.audio.spectrum import default_slice_count
from core.audio.types import OnsetTimestamp, SampleBuffer
from core.config import DEFAULT_ANALYSIS_CONFIG, AnalysisConfig
from core.errors import AnalysisError
from core.timeline.synchronizer import seed
from core.timeline.types import PanelList
from infrastructure.metrics import LatencyTimer, record_analysis
from infrastructure.timeline_store import TimelineStore
from ingestion.audio_loader import load_sample_buffer
from ingestion.settings import EngineSettings, load_engine_settings

logger = logging.getLogger(__name__)

# Finished jobs kept for status lookups (oldest evicted first)
_JOB_HISTORY: int = 16

ERROR_MESSAGES: dict[str, str] = {
    "file_not_found": "The audio file could not be found.",
    "unsupported_format": "This file type is not supported. Load a WAV, MP3, FLAC or OGG file.",
    "decode_failed": "The audio file could not be decoded.",
    "internal": "Audio analysis failed unexpectedly.",
}


def classify_error(exc: BaseException) -> tuple[str, str]:
    """Map an exception raised during a load to (error_kind, user_message)."""
    if isinstance(exc, AnalysisError):
        return exc.kind, exc.user_message
    if isinstance(exc, FileNotFoundError):
        kind = "file_not_found"
    elif isinstance(exc, ValueError):
        kind = "unsupported_format"
    elif isinstance(exc, RuntimeError):
        kind = "decode_failed"
    else:
        kind = "internal"
    return kind, ERROR_MESSAGES[kind]


# ---------------------------------------------------------------------------
# Result & job types
# ---------------------------------------------------------------------------


class JobPhase(Enum):
    """Lifecycle of one analysis run."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, eq=False)
class AnalysisResult:
    """Everything one load produces.

    Attributes:
        load_id:            Load this result belongs to.
        snapshots:          Spectral snapshots in slice order.
        onsets:             Detected onset times in seconds, ascending.
        panels:             Initial timeline seeded from the onsets.
        duration_sec:       Duration of the analyzed buffer.
        sample_rate:        Sample rate of the analyzed buffer.
        slice_count:        Number of snapshots requested.
        processing_time_ms: Wall-clock time of the analysis in milliseconds.
    """

    load_id: int
    snapshots: tuple[np.ndarray, ...]
    onsets: tuple[OnsetTimestamp, ...]
    panels: PanelList
    duration_sec: float
    sample_rate: int
    slice_count: int
    processing_time_ms: float = 0.0


class AnalysisJob:
    """Handle on a background analysis run.

    Wraps a Future and reports its state as a JobPhase.
    """

    def __init__(self, load_id: int, future: Future[AnalysisResult]) -> None:
        """Initialize with the load id and the future running the analysis."""
        self.load_id = load_id
        self._future = future

    @property
    def phase(self) -> JobPhase:
        """PENDING until the run ends, then SUCCEEDED or FAILED."""
        if not self._future.done():
            return JobPhase.PENDING
        if self._future.exception() is not None:
            return JobPhase.FAILED
        return JobPhase.SUCCEEDED

    def done(self) -> bool:
        """True once the run has finished, successfully or not."""
        return self._future.done()

    def wait(self, timeout: float | None = None) -> JobPhase:
        """Block until the run finishes (or timeout expires) and return the phase."""
        wait_futures([self._future], timeout=timeout)
        return self.phase

    def result(self, timeout: float | None = None) -> AnalysisResult:
        """Return the AnalysisResult, re-raising the run's exception if it failed."""
        return self._future.result(timeout=timeout)

    @property
    def error(self) -> BaseException | None:
        """The exception the run failed with, or None."""
        if not self._future.done():
            return None
        return self._future.exception()

    @property
    def error_kind(self) -> str | None:
        """Stable failure kind (e.g. "invalid_buffer"), or None if not failed."""
        exc = self.error
        return None if exc is None else classify_error(exc)[0]

    @property
    def error_message(self) -> str | None:
        """User-facing failure message, or None if not failed."""
        exc = self.error
        return None if exc is None else classify_error(exc)[1]


# ---------------------------------------------------------------------------
# AnalysisEngine
# ---------------------------------------------------------------------------


class AnalysisEngine:
    """Runs analysis for loaded files and seeds the shared timeline.

    All DSP is delegated to pure functions in `core/`. File loading is
    delegated to an injectable loader (librosa-backed by default) so tests
    can run without an audio backend.

    Args:
        config:   Analysis policy (window size, onset thresholds).
        settings: Runtime settings. None reads them from the environment.
        loader:   Callable(path, duration=..., sr=...) → SampleBuffer.
        store:    Timeline to seed on successful current loads. Optional.

    Example:
        engine = AnalysisEngine(store=store)
        job = engine.start_file("/path/to/track.wav")
        result = job.result()
        print(len(result.onsets), "onsets")
    """

    def __init__(
        self,
        config: AnalysisConfig = DEFAULT_ANALYSIS_CONFIG,
        *,
        settings: EngineSettings | None = None,
        loader: Callable[..., SampleBuffer] | None = None,
        store: TimelineStore | None = None,
    ) -> None:
        """Initialise the engine and its background executor."""
        self.config = config
        self.settings = settings if settings is not None else load_engine_settings()
        self.store = store
        self._loader = loader if loader is not None else load_sample_buffer
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="analysis")
        self._lock = threading.Lock()
        self._current_load_id = 0
        self._jobs: dict[int, AnalysisJob] = {}

    # ------------------------------------------------------------------
    # Synchronous analysis
    # ------------------------------------------------------------------

    def analyze(
        self,
        buffer: SampleBuffer,
        *,
        slice_count: int | None = None,
        load_id: int = 0,
    ) -> AnalysisResult:
        """Run the full analysis on a buffer, in the calling thread.

        Args:
            buffer:      Decoded audio.
            slice_count: Number of spectral snapshots. None = default density
                         (20 per second of audio).
            load_id:     Load id stamped on the result.

        Returns:
            AnalysisResult with snapshots, onsets, and seeded panels.

        Raises:
            InvalidBuffer: Empty or zero-duration buffer.
            InvalidSliceCount: Negative slice_count.
        """
        t_start = time.monotonic()
        slices = default_slice_count(buffer, self.config) if slice_count is None else slice_count

        snapshots = analyze_spectrum(
            buffer, slices, config=self.config, max_workers=self.settings.max_workers
        )
        onsets = detect_onsets(buffer, config=self.config)
        panels = seed(onsets)

        processing_ms = (time.monotonic() - t_start) * 1000.0
        logger.debug(
            "Analysis load=%d: %d slices, %d onsets in %.1f ms",
            load_id,
            len(snapshots),
            len(onsets),
            processing_ms,
        )
        return AnalysisResult(
            load_id=load_id,
            snapshots=tuple(snapshots),
            onsets=onsets,
            panels=panels,
            duration_sec=buffer.duration_sec,
            sample_rate=buffer.sample_rate,
            slice_count=slices,
            processing_time_ms=processing_ms,
        )

    def load(self, path: str | Path) -> SampleBuffer:
        """Decode a file with the configured loader and settings."""
        return self._loader(
            path,
            duration=self.settings.max_duration,
            sr=self.settings.target_sr,
        )

    # ------------------------------------------------------------------
    # Background jobs
    # ------------------------------------------------------------------

    def _claim_load_id(self) -> int:
        # Caller holds self._lock. Imports made directly on the store are loads too.
        held = self.store.load_id if self.store is not None else 0
        self._current_load_id = max(self._current_load_id, held) + 1
        return self._current_load_id

    @property
    def current_load_id(self) -> int:
        """Id of the most recent load, analysis or import (0 before the first)."""
        with self._lock:
            held = self.store.load_id if self.store is not None else 0
            return max(self._current_load_id, held)

    def is_current(self, job: AnalysisJob) -> bool:
        """True if no newer load has been started since `job`."""
        return job.load_id == self.current_load_id

    def get_job(self, load_id: int) -> AnalysisJob | None:
        """Look up a recent job by load id."""
        with self._lock:
            return self._jobs.get(load_id)

    def start(self, buffer: SampleBuffer, *, slice_count: int | None = None) -> AnalysisJob:
        """Start analyzing an already-decoded buffer in the background."""
        return self._submit(lambda: buffer, slice_count, source=f"<buffer {buffer.frame_count}>")

    def start_file(self, path: str | Path, *, slice_count: int | None = None) -> AnalysisJob:
        """Start loading and analyzing a file in the background.

        Loader failures (missing file, unsupported format, decode error)
        surface as a FAILED job with a distinct error_kind.
        """
        return self._submit(lambda: self.load(path), slice_count, source=str(path))

    def _submit(
        self,
        source_fn: Callable[[], SampleBuffer],
        slice_count: int | None,
        *,
        source: str,
    ) -> AnalysisJob:
        with self._lock:
            load_id = self._claim_load_id()
            # A new load starts from an empty timeline and locks out older loads
            if self.store is not None:
                self.store.replace((), load_id=load_id)
            future = self._executor.submit(self._run, load_id, source_fn, slice_count)
            job = AnalysisJob(load_id, future)
            self._jobs[load_id] = job
            for stale_id in sorted(self._jobs)[:-_JOB_HISTORY]:
                del self._jobs[stale_id]

        logger.info("Analysis load=%d started: %s", load_id, source)
        return job

    def _run(
        self,
        load_id: int,
        source_fn: Callable[[], SampleBuffer],
        slice_count: int | None,
    ) -> AnalysisResult:
        timer = LatencyTimer()
        try:
            with timer:
                buffer = source_fn()
                result = self.analyze(buffer, slice_count=slice_count, load_id=load_id)
        except Exception as exc:
            kind, _ = classify_error(exc)
            logger.error("Analysis load=%d failed [%s]: %s", load_id, kind, exc)
            record_analysis(status="failed", latency_seconds=timer.elapsed)
            raise

        latency = timer.elapsed
        # The store re-checks the load id under its own lock
        stored = load_id == self.current_load_id and (
            self.store is None or self.store.replace(result.panels, load_id=load_id)
        )
        if not stored:
            logger.warning("Analysis load=%d finished after a newer load; discarding", load_id)
            record_analysis(status="stale", latency_seconds=latency)
            return result

        record_analysis(status="succeeded", latency_seconds=latency, onsets=len(result.onsets))
        logger.info(
            "Analysis load=%d succeeded: %d onsets, %d slices",
            load_id,
            len(result.onsets),
            len(result.snapshots),
        )
        return result

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def import_text(self, text: str) -> tuple[PanelList, int]:
        """Load a timeline from music-map text instead of analyzing audio.

        The import takes a new load id, so jobs still running for earlier
        loads become stale and never overwrite the imported panels.

        Returns:
            (imported panels, number of skipped blocks)

        Raises:
            RuntimeError: The engine has no timeline store.
        """
        if self.store is None:
            raise RuntimeError("AnalysisEngine has no timeline store to import into")
        with self._lock:
            load_id = self._claim_load_id()
            panels, skipped = self.store.import_text(text, load_id=load_id)
        logger.info(
            "Import load=%d: %d panel(s), %d block(s) skipped", load_id, len(panels), skipped
        )
        return panels, skipped

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background executor."""
        self._executor.shutdown(wait=wait)
