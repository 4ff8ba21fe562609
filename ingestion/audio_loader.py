"""
ingestion/audio_loader.py — Decoder boundary for the analysis engine.

Audio files are read here and nowhere else. The engine hands a path in and
gets a SampleBuffer back; spectrum sampling and onset detection only ever
see the buffer.

Failures are raised as plain built-in exceptions so the engine can map
them to stable error kinds (see ``classify_error``):

    FileNotFoundError → "file_not_found"
    ValueError        → "unsupported_format"
    RuntimeError      → "decode_failed"

Usage:
    from ingestion.audio_loader import load_sample_buffer
    buffer = load_sample_buffer("/path/to/track.wav", sr=22050)
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from core.audio.types import SampleBuffer

logger = logging.getLogger(__name__)

# Extensions librosa / soundfile can decode
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp3", ".wav", ".flac", ".aiff", ".aif", ".ogg", ".m4a", ".opus"}
)

# Whole file: panels are seeded along the full track
DEFAULT_DURATION: float | None = None


def is_supported_audio(path: str | Path) -> bool:
    """True if the file extension is one the decoder accepts (case-insensitive)."""
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS


def _checked_path(path: str | Path) -> Path:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Audio file not found: {file_path}")
    if not is_supported_audio(file_path):
        raise ValueError(
            f"Unsupported audio format {file_path.suffix!r}. "
            f"Supported: {sorted(AUDIO_EXTENSIONS)}"
        )
    return file_path


def load_audio(
    path: str | Path,
    *,
    duration: float | None = DEFAULT_DURATION,
    sr: int | None = None,
    mono: bool = True,
) -> tuple[np.ndarray, int]:
    """Decode an audio file into (samples, sample_rate).

    Args:
        path: Audio file. See AUDIO_EXTENSIONS for accepted formats.
        duration: Seconds to decode from the start. None decodes everything.
        sr: Resample to this rate. None keeps the file's own rate.
        mono: Mix channels down. False returns shape (channels, samples).

    Raises:
        FileNotFoundError: No file at `path`.
        ValueError: Extension is not a supported audio format.
        RuntimeError: The decoder rejected the file.
    """
    import librosa  # deferred to allow testing without audio backend

    file_path = _checked_path(path)
    try:
        y, loaded_sr = librosa.load(file_path, sr=sr, mono=mono, duration=duration, offset=0.0)
    except Exception as exc:
        raise RuntimeError(f"Failed to decode audio file {file_path.name!r}: {exc}") from exc
    return y, int(loaded_sr)


def load_sample_buffer(
    path: str | Path,
    *,
    duration: float | None = DEFAULT_DURATION,
    sr: int | None = None,
    mono: bool = True,
) -> SampleBuffer:
    """Decode an audio file into an immutable SampleBuffer.

    This is the loader AnalysisEngine uses by default. Arguments and
    exceptions are those of load_audio(); the buffer's duration comes
    from the decoded frame count, not from file metadata, so a truncated
    file reports the audio it actually holds.
    """
    y, loaded_sr = load_audio(path, duration=duration, sr=sr, mono=mono)
    buffer = SampleBuffer.from_array(y, loaded_sr)
    logger.debug(
        "Decoded %s: %d frames x %d channel(s) at %d Hz (%.2f s)",
        Path(path).name,
        buffer.frame_count,
        buffer.channel_count,
        buffer.sample_rate,
        buffer.duration_sec,
    )
    return buffer
