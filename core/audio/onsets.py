"""
core/audio/onsets.py — Onset detection for seeding timeline panels.

Finds moments of sudden low-frequency energy increase (kicks, bass hits)
in a decoded buffer. These are acoustic onsets, not beats: there is no
tempo model and no meter.

Pipeline:
    1. lowpass_filter()     — 2nd-order biquad low-pass at 150 Hz
    2. short_time_energy()  — sum of squares per 10 ms hop
    3. pick_peaks()         — local maxima above 1.5 × the ±0.5 s local mean
    4. hop index → seconds  — i × 0.01
    5. debounce()           — drop onsets within 0.25 s of the last kept one

Design:
    - Pure: SampleBuffer → tuple of floats. scipy/numpy only, no I/O.
    - The filter is causal and single-pass over the whole signal, so it is
      the one sequential stage. Energy and thresholding are vectorized.
    - Biquad coefficients follow the RBJ audio-EQ cookbook with Q read as
      resonance in dB, the convention of the Web Audio BiquadFilterNode
      low-pass. With Q = 1 dB the linear Q is 10**(1/20) ≈ 1.122.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np
from scipy import signal as scipy_signal

from core.audio._buffer import validated_mono
from core.audio.types import OnsetTimestamp, SampleBuffer
from core.config import DEFAULT_ANALYSIS_CONFIG, AnalysisConfig

# ---------------------------------------------------------------------------
# Stage 1: Low-pass pre-filter
# ---------------------------------------------------------------------------


def _design_lowpass(sr: int, cutoff_hz: float, q_db: float) -> tuple[np.ndarray, np.ndarray]:
    """Compute biquad low-pass coefficients (RBJ cookbook, Q in dB).

    Args:
        sr:        Sample rate in Hz.
        cutoff_hz: Cutoff frequency in Hz. Must be below Nyquist.
        q_db:      Resonance in dB.

    Returns:
        (b, a) coefficient arrays normalized so a[0] == 1.
    """
    w0 = 2.0 * np.pi * cutoff_hz / sr
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / (2.0 * 10.0 ** (q_db / 20.0))

    b0 = (1.0 - cos_w0) / 2.0
    b1 = 1.0 - cos_w0
    b2 = (1.0 - cos_w0) / 2.0
    a0 = 1.0 + alpha
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha

    return np.array([b0, b1, b2]) / a0, np.array([1.0, a1 / a0, a2 / a0])


def lowpass_filter(
    y: np.ndarray,
    sr: int,
    *,
    cutoff_hz: float = DEFAULT_ANALYSIS_CONFIG.lowpass_cutoff_hz,
    q_db: float = DEFAULT_ANALYSIS_CONFIG.lowpass_q,
) -> np.ndarray:
    """Apply the low-pass pre-filter to a mono signal.

    A cutoff at or above Nyquist leaves nothing to remove, so the signal is
    returned unchanged (as a float64 copy).

    Returns:
        Filtered float64 array, same length as y.
    """
    y = np.asarray(y, dtype=np.float64)
    if cutoff_hz >= sr / 2.0:
        return y.copy()
    b, a = _design_lowpass(sr, cutoff_hz, q_db)
    return scipy_signal.lfilter(b, a, y)


# ---------------------------------------------------------------------------
# Stage 2: Short-time energy
# ---------------------------------------------------------------------------


def short_time_energy(y: np.ndarray, hop_size: int) -> np.ndarray:
    """Sum of squared samples over consecutive, non-overlapping hops.

    The trailing partial hop, if any, is included as its own (shorter) hop.

    Returns:
        Array of ceil(len(y) / hop_size) energies.
    """
    if hop_size < 1:
        raise ValueError(f"hop_size must be >= 1, got {hop_size}")
    y = np.asarray(y, dtype=np.float64)
    n_hops = int(math.ceil(y.size / hop_size))
    if n_hops == 0:
        return np.zeros(0)
    padded = np.zeros(n_hops * hop_size)
    padded[: y.size] = y
    return np.sum(padded.reshape(n_hops, hop_size) ** 2, axis=1)


# ---------------------------------------------------------------------------
# Stage 3: Adaptive-threshold peak picking
# ---------------------------------------------------------------------------


def local_average(energies: np.ndarray, radius: int) -> np.ndarray:
    """Mean of energies[max(0, i-radius) .. min(H-1, i+radius)] for every i.

    The window is clipped to the array bounds, so edge hops average over
    fewer values rather than over zero padding.
    """
    energies = np.asarray(energies, dtype=np.float64)
    n = energies.size
    if n == 0:
        return np.zeros(0)
    cumulative = np.concatenate([[0.0], np.cumsum(energies)])
    idx = np.arange(n)
    lo = np.maximum(0, idx - radius)
    hi = np.minimum(n - 1, idx + radius)
    return (cumulative[hi + 1] - cumulative[lo]) / (hi - lo + 1)


def pick_peaks(
    energies: np.ndarray,
    *,
    radius: int = DEFAULT_ANALYSIS_CONFIG.average_window_hops,
    multiplier: float = DEFAULT_ANALYSIS_CONFIG.threshold_multiplier,
) -> np.ndarray:
    """Indices of hops that are strict local maxima above the adaptive threshold.

    The first and last hop are never candidates (they lack a neighbour).

    Returns:
        Ascending int array of candidate hop indices.
    """
    energies = np.asarray(energies, dtype=np.float64)
    if energies.size < 3:
        return np.zeros(0, dtype=int)

    threshold = local_average(energies, radius) * multiplier
    centre = energies[1:-1]
    is_peak = (
        (centre > energies[:-2]) & (centre > energies[2:]) & (centre > threshold[1:-1])
    )
    return np.flatnonzero(is_peak) + 1


# ---------------------------------------------------------------------------
# Stage 5: Debounce
# ---------------------------------------------------------------------------


def debounce(onsets: Iterable[float], min_gap: float) -> tuple[OnsetTimestamp, ...]:
    """Drop onsets that follow the last *kept* onset by min_gap or less.

    Spacing is measured against the last onset that survived, not the last
    raw candidate, so a dense run of candidates still yields one onset every
    time the gap since the last kept one exceeds min_gap.
    """
    kept: list[float] = []
    for t in onsets:
        if not kept or t - kept[-1] > min_gap:
            kept.append(float(t))
    return tuple(kept)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def detect_onsets(
    buffer: SampleBuffer,
    *,
    config: AnalysisConfig = DEFAULT_ANALYSIS_CONFIG,
) -> tuple[OnsetTimestamp, ...]:
    """Detect low-frequency onsets in a decoded buffer.

    Args:
        buffer: Decoded audio. Multi-channel input is mixed to mono.
        config: Analysis configuration (filter, hop, threshold and debounce policy).

    Returns:
        Strictly increasing onset times in seconds, each more than
        config.min_onset_gap_seconds after its predecessor. Empty tuple for
        silence or perfectly uniform energy.

    Raises:
        InvalidBuffer: The buffer is empty or has zero duration.
    """
    mono = validated_mono(buffer)
    sr = buffer.sample_rate

    filtered = lowpass_filter(mono, sr, cutoff_hz=config.lowpass_cutoff_hz, q_db=config.lowpass_q)
    energies = short_time_energy(filtered, config.hop_size(sr))
    peaks = pick_peaks(
        energies,
        radius=config.average_window_hops,
        multiplier=config.threshold_multiplier,
    )

    raw_times = [int(i) * config.hop_seconds for i in peaks]
    return debounce(raw_times, config.min_onset_gap_seconds)
