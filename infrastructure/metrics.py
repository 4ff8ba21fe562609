"""Prometheus metrics for the music map engine.

Exposes analysis and editing activity so dashboards show how loads behave
(how long analysis takes, how many onsets a track yields, how often imports
contain broken blocks), not just generic HTTP stats.

Metrics:
    bbe_analysis_runs_total            Counter by status (succeeded/failed/stale)
    bbe_analysis_latency_seconds       Histogram of end-to-end analysis time
    bbe_onsets_detected                Histogram of onsets per analyzed track
    bbe_import_blocks_skipped_total    Counter of malformed music-map blocks skipped
    bbe_timeline_mutations_total       Counter of timeline edits by operation

Usage::

    from infrastructure.metrics import LatencyTimer, record_analysis

    with LatencyTimer() as t:
        result = engine.analyze(buffer)
    record_analysis(status="succeeded", latency_seconds=t.elapsed, onsets=len(result.onsets))
"""

from __future__ import annotations

import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

_REGISTRY = CollectorRegistry()

analysis_runs_total = Counter(
    "bbe_analysis_runs_total",
    "Analysis runs by outcome",
    ["status"],
    registry=_REGISTRY,
)

analysis_latency_seconds = Histogram(
    "bbe_analysis_latency_seconds",
    "End-to-end analysis latency in seconds (load + spectrum + onsets)",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=_REGISTRY,
)

onsets_detected = Histogram(
    "bbe_onsets_detected",
    "Number of onsets detected per analyzed track",
    buckets=[0, 10, 50, 100, 250, 500, 1000, 2500],
    registry=_REGISTRY,
)

import_blocks_skipped_total = Counter(
    "bbe_import_blocks_skipped_total",
    "Malformed music-map blocks skipped during import",
    registry=_REGISTRY,
)

timeline_mutations_total = Counter(
    "bbe_timeline_mutations_total",
    "Timeline edits by operation",
    ["operation"],
    registry=_REGISTRY,
)

logger.debug("Prometheus metrics registry initialized")


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def record_analysis(
    *,
    status: str,
    latency_seconds: float,
    onsets: int | None = None,
) -> None:
    """Record a finished analysis run.

    Args:
        status: One of "succeeded", "failed", "stale".
        latency_seconds: Wall-clock time of the run in seconds.
        onsets: Number of onsets detected. Only recorded for successful runs.
    """
    analysis_runs_total.labels(status=status).inc()
    analysis_latency_seconds.observe(latency_seconds)
    if onsets is not None:
        onsets_detected.observe(onsets)


def record_import_skipped(count: int = 1) -> None:
    """Increment the skipped-import-block counter by `count`."""
    if count > 0:
        import_blocks_skipped_total.inc(count)


def record_timeline_mutation(operation: str) -> None:
    """Increment the timeline mutation counter.

    Args:
        operation: Mutation name, e.g. "insert", "remove", "nudge".
    """
    timeline_mutations_total.labels(operation=operation).inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string).
    """
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            result = run_pipeline()
        record_analysis(status="succeeded", latency_seconds=t.elapsed)
    """

    def __init__(self) -> None:
        """Initialize timer."""
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        """Start timing."""
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        """Stop timing and record elapsed."""
        self.elapsed = time.perf_counter() - self._start
