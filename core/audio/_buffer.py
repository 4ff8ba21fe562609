"""
core/audio/_buffer.py — Shared input validation for the analysis entry points.
"""

from __future__ import annotations

import numpy as np

from core.audio.types import SampleBuffer
from core.errors import InvalidBuffer


def validated_mono(buffer: SampleBuffer) -> np.ndarray:
    """Validate a SampleBuffer and return its mono samples.

    Raises:
        InvalidBuffer: No samples, non-positive sample rate, non-positive
            duration, or non-finite sample values.
    """
    if buffer.frame_count == 0:
        raise InvalidBuffer("Sample buffer is empty")
    if buffer.sample_rate <= 0:
        raise InvalidBuffer(f"Sample rate must be positive, got {buffer.sample_rate}")
    if not buffer.duration_sec > 0.0:
        raise InvalidBuffer(f"Duration must be positive, got {buffer.duration_sec}")

    mono = buffer.mono()
    if not np.all(np.isfinite(mono)):
        raise InvalidBuffer("Sample buffer contains NaN or infinite values")
    return mono
