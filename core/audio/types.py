"""
core/audio/types.py — Frozen data types for audio analysis.

All types are frozen dataclasses — immutable value objects that can be
safely passed between layers and shared across worker threads.

Design principles:
    - No I/O, no state, no side effects.
    - Invariants are documented but NOT enforced at construction time —
      validation happens at the analysis entry points (spectrum.py, onsets.py),
      which raise InvalidBuffer so callers get one error kind for bad input.
    - `SampleBuffer.samples` is copied into a read-only float64 array, so the
      buffer cannot be mutated through the object or through the caller's array.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

SpectralSnapshot = np.ndarray
"""1-D float64 array of non-negative magnitudes, one per frequency bin."""

OnsetTimestamp = float
"""Seconds from buffer start, >= 0."""


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Decoded PCM audio handed to the analysis pipeline.

    Invariants (checked by the analysis functions, not here):
        samples.size > 0
        sample_rate > 0
        duration_sec > 0
    """

    samples: np.ndarray
    """Shape (N,) for mono or (C, N) for multi-channel. Read-only float64."""

    sample_rate: int
    """Sample rate in Hz."""

    duration_sec: float
    """Duration in seconds as reported by the decoder."""

    def __post_init__(self) -> None:
        samples = np.array(self.samples, dtype=np.float64, copy=True)
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))
        object.__setattr__(self, "duration_sec", float(self.duration_sec))

    @classmethod
    def from_array(cls, y: np.ndarray, sr: int) -> SampleBuffer:
        """Build a buffer from a (y, sr) pair, deriving duration from the frame count."""
        y = np.asarray(y)
        frames = y.shape[-1] if y.ndim > 0 else 0
        duration = float(frames) / float(sr) if sr > 0 else 0.0
        return cls(samples=y, sample_rate=sr, duration_sec=duration)

    @property
    def channel_count(self) -> int:
        """Number of channels (1 for a 1-D array)."""
        return 1 if self.samples.ndim == 1 else int(self.samples.shape[0])

    @property
    def frame_count(self) -> int:
        """Samples per channel."""
        return int(self.samples.shape[-1]) if self.samples.ndim > 0 else 0

    def mono(self) -> np.ndarray:
        """Return the buffer mixed down to a 1-D mono array.

        Multi-channel input is averaged across the channel axis, the same
        speaker down-mix an offline one-channel render applies.
        """
        if self.samples.ndim == 1:
            return self.samples
        return np.mean(self.samples, axis=0)
