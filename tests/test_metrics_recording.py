"""Tests for infrastructure/metrics.py — Prometheus counter recording.

Verifies that:
- All public record_*() helpers increment the correct counter
- record_analysis() observes latency and, for successes, the onset count
- LatencyTimer measures elapsed time correctly
- The analysis engine and timeline store record through these helpers

Counters are cumulative within the module registry, so every test reads
the value before and after the call and asserts on the delta.
"""

from __future__ import annotations

import time

import pytest

from infrastructure import metrics as metrics_module

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sample(name: str, **labels) -> float:
    """Read a sample from the metrics registry (0.0 if not yet created)."""
    value = metrics_module._REGISTRY.get_sample_value(name, labels)
    return value if value is not None else 0.0


# ---------------------------------------------------------------------------
# record_*() helpers
# ---------------------------------------------------------------------------


class TestRecordAnalysis:
    def test_counts_by_status(self) -> None:
        before = _sample("bbe_analysis_runs_total", status="failed")
        metrics_module.record_analysis(status="failed", latency_seconds=0.1)
        assert _sample("bbe_analysis_runs_total", status="failed") == before + 1

    def test_observes_latency(self) -> None:
        before = _sample("bbe_analysis_latency_seconds_count")
        metrics_module.record_analysis(status="succeeded", latency_seconds=0.2, onsets=3)
        assert _sample("bbe_analysis_latency_seconds_count") == before + 1

    def test_onsets_observed_only_when_given(self) -> None:
        before = _sample("bbe_onsets_detected_count")
        metrics_module.record_analysis(status="stale", latency_seconds=0.1)
        assert _sample("bbe_onsets_detected_count") == before
        metrics_module.record_analysis(status="succeeded", latency_seconds=0.1, onsets=12)
        assert _sample("bbe_onsets_detected_count") == before + 1


class TestRecordImportSkipped:
    def test_increments_by_count(self) -> None:
        before = _sample("bbe_import_blocks_skipped_total")
        metrics_module.record_import_skipped(3)
        assert _sample("bbe_import_blocks_skipped_total") == before + 3

    def test_zero_is_noop(self) -> None:
        before = _sample("bbe_import_blocks_skipped_total")
        metrics_module.record_import_skipped(0)
        assert _sample("bbe_import_blocks_skipped_total") == before


class TestRecordTimelineMutation:
    def test_labeled_by_operation(self) -> None:
        before = _sample("bbe_timeline_mutations_total", operation="nudge")
        metrics_module.record_timeline_mutation("nudge")
        metrics_module.record_timeline_mutation("nudge")
        assert _sample("bbe_timeline_mutations_total", operation="nudge") == before + 2


# ---------------------------------------------------------------------------
# Exposition
# ---------------------------------------------------------------------------


class TestMetricsResponse:
    def test_text_format(self) -> None:
        metrics_module.record_timeline_mutation("insert")
        body, content_type = metrics_module.get_metrics_response()
        assert content_type.startswith("text/plain")
        assert b"bbe_timeline_mutations_total" in body
        assert b"bbe_analysis_latency_seconds" in body


# ---------------------------------------------------------------------------
# LatencyTimer
# ---------------------------------------------------------------------------


class TestLatencyTimer:
    def test_measures_elapsed(self) -> None:
        with metrics_module.LatencyTimer() as t:
            time.sleep(0.01)
        assert t.elapsed >= 0.01

    def test_elapsed_set_on_exception(self) -> None:
        timer = metrics_module.LatencyTimer()
        with pytest.raises(RuntimeError):
            with timer:
                time.sleep(0.001)
                raise RuntimeError("boom")
        assert timer.elapsed >= 0.001


# ---------------------------------------------------------------------------
# Integration with callers
# ---------------------------------------------------------------------------


class TestCallersRecord:
    def test_store_edits_are_counted(self, store) -> None:
        before = _sample("bbe_timeline_mutations_total", operation="insert")
        store.insert(1.0)
        assert _sample("bbe_timeline_mutations_total", operation="insert") == before + 1

    def test_store_import_counts_skipped_blocks(self, store) -> None:
        before = _sample("bbe_import_blocks_skipped_total")
        store.import_text("1.00\n0000\n0000\n\nbad\n\nworse")
        assert _sample("bbe_import_blocks_skipped_total") == before + 2

    def test_engine_records_success(self, engine) -> None:
        before = _sample("bbe_analysis_runs_total", status="succeeded")
        engine.start_file("/music/track.wav").wait(timeout=10)
        assert _sample("bbe_analysis_runs_total", status="succeeded") == before + 1

    def test_engine_records_failure(self, engine, fake_loader) -> None:
        fake_loader.error = RuntimeError("Failed to decode")
        before = _sample("bbe_analysis_runs_total", status="failed")
        engine.start_file("/music/track.wav").wait(timeout=10)
        assert _sample("bbe_analysis_runs_total", status="failed") == before + 1
