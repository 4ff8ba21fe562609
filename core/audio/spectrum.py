"""
core/audio/spectrum.py — Spectral snapshot sampler.

Computes a short-window magnitude spectrum at N evenly spaced points of a
decoded buffer, for the frequency strip an editor draws under its timeline.

Design:
    - All functions are pure: (SampleBuffer, slice_count) → list of arrays.
    - Each snapshot is a direct windowed FFT on the in-memory samples; no
      offline render per slice.
    - Slices are independent, so they may be computed on a bounded thread
      pool. numpy's FFT releases the GIL, and Executor.map() returns results
      in submission order, which keeps the output in slice-index order.
    - The window is a periodic Blackman window, the same one a Web Audio
      AnalyserNode applies before its FFT.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from scipy import signal as scipy_signal

from core.audio._buffer import validated_mono
from core.audio.types import SampleBuffer, SpectralSnapshot
from core.config import DEFAULT_ANALYSIS_CONFIG, AnalysisConfig
from core.errors import InvalidSliceCount

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_EPS = 1e-12  # small value to prevent log(0)

# Byte-scaling range of a Web Audio AnalyserNode (minDecibels / maxDecibels)
DEFAULT_MIN_DB: float = -100.0
DEFAULT_MAX_DB: float = -30.0


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _extract_frame(mono: np.ndarray, start: int, size: int) -> np.ndarray:
    """Return `size` samples starting at `start`, zero-padded past the end."""
    frame = mono[start : start + size]
    if frame.size < size:
        frame = np.concatenate([frame, np.zeros(size - frame.size)])
    return frame


def _magnitude_spectrum(frame: np.ndarray, window: np.ndarray) -> np.ndarray:
    """Windowed FFT magnitude, normalized by frame length, first N/2 bins."""
    n = frame.size
    magnitudes = np.abs(np.fft.rfft(frame * window)) / n
    return magnitudes[: n // 2]


def _validate_slice_count(slice_count: int) -> None:
    if isinstance(slice_count, bool) or not isinstance(slice_count, (int, np.integer)):
        raise InvalidSliceCount(slice_count)
    if slice_count < 0:
        raise InvalidSliceCount(slice_count)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze(
    buffer: SampleBuffer,
    slice_count: int,
    *,
    config: AnalysisConfig = DEFAULT_ANALYSIS_CONFIG,
    max_workers: int | None = None,
) -> list[SpectralSnapshot]:
    """Compute `slice_count` evenly spaced spectral snapshots of a buffer.

    Slice i starts at (i / slice_count) * duration. Windows that run past
    the end of the buffer are zero-padded rather than rejected.

    Args:
        buffer:      Decoded audio. Multi-channel input is mixed to mono.
        slice_count: Number of snapshots to compute (>= 0).
        config:      Analysis configuration (window size).
        max_workers: Thread pool size. None or 1 computes slices inline.

    Returns:
        List of exactly `slice_count` float64 arrays, each of length
        config.window_size // 2, all values >= 0, in slice-index order.

    Raises:
        InvalidSliceCount: slice_count is negative or not an integer.
        InvalidBuffer: The buffer is empty or has zero duration.
    """
    _validate_slice_count(slice_count)
    mono = validated_mono(buffer)
    if slice_count == 0:
        return []

    size = config.window_size
    window = scipy_signal.get_window("blackman", size, fftbins=True)
    starts = [
        int(math.floor((i / slice_count) * buffer.duration_sec * buffer.sample_rate))
        for i in range(slice_count)
    ]

    def _snapshot(start: int) -> np.ndarray:
        return _magnitude_spectrum(_extract_frame(mono, start, size), window)

    if max_workers is None or max_workers <= 1 or slice_count == 1:
        return [_snapshot(start) for start in starts]

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="spectrum") as pool:
        return list(pool.map(_snapshot, starts))


sample_spectrum = analyze
"""Alias kept for callers that think of this step as sampling."""


def default_slice_count(
    buffer: SampleBuffer,
    config: AnalysisConfig = DEFAULT_ANALYSIS_CONFIG,
) -> int:
    """Number of slices for a buffer at the configured density.

    floor(duration * slices_per_second) — 20 snapshots per second by default.
    """
    if buffer.duration_sec <= 0:
        return 0
    return int(math.floor(buffer.duration_sec * config.slices_per_second))


def to_byte_spectrum(
    snapshot: SpectralSnapshot,
    *,
    min_db: float = DEFAULT_MIN_DB,
    max_db: float = DEFAULT_MAX_DB,
) -> np.ndarray:
    """Scale a magnitude snapshot to 0–255 bytes on a decibel axis.

    byte = 255 * (dB - min_db) / (max_db - min_db), clipped to [0, 255].

    Raises:
        ValueError: If max_db <= min_db.
    """
    if max_db <= min_db:
        raise ValueError(f"max_db ({max_db}) must be greater than min_db ({min_db})")
    db = 20.0 * np.log10(np.asarray(snapshot, dtype=np.float64) + _EPS)
    scaled = 255.0 * (db - min_db) / (max_db - min_db)
    return np.clip(np.floor(scaled), 0, 255).astype(np.uint8)


def slice_index_for_time(time: float, duration: float, slice_count: int) -> int:
    """Map a playback time to the index of the snapshot that covers it.

    Returns:
        floor(time / duration * slice_count) clipped to [0, slice_count - 1],
        or -1 when there are no slices or the duration is not positive.
    """
    if slice_count <= 0 or duration <= 0:
        return -1
    index = int(math.floor((time / duration) * slice_count))
    return max(0, min(slice_count - 1, index))
