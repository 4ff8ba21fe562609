"""
core/audio — Pure audio analysis module.

Provides DSP functions for extracting rhythmic and spectral structure from
a decoded buffer. All functions are pure: they take a SampleBuffer and
return structured data. No file I/O — that lives in ingestion/audio_loader.py.

Architecture note:
    scipy and numpy are pure computation libraries (no I/O, no side effects).

Public API:
    Types:      SampleBuffer, SpectralSnapshot, OnsetTimestamp
    Spectrum:   analyze, default_slice_count, to_byte_spectrum, slice_index_for_time
    Onsets:     detect_onsets
"""

from core.audio.onsets import detect_onsets
from core.audio.spectrum import (
    analyze,
    default_slice_count,
    sample_spectrum,
    slice_index_for_time,
    to_byte_spectrum,
)
from core.audio.types import OnsetTimestamp, SampleBuffer, SpectralSnapshot

__all__ = [
    # Types
    "SampleBuffer",
    "SpectralSnapshot",
    "OnsetTimestamp",
    # Spectrum
    "analyze",
    "sample_spectrum",
    "default_slice_count",
    "to_byte_spectrum",
    "slice_index_for_time",
    # Onsets
    "detect_onsets",
]
