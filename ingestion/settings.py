"""
ingestion/settings.py — Runtime settings for the analysis engine.

Read from the environment (after load_dotenv(), so a local .env file works
the same way it does for every other provider in ingestion/).

Environment variables:
    ANALYSIS_MAX_WORKERS   Thread pool size for spectral slices (default 4).
    AUDIO_MAX_DURATION     Seconds of audio to load; unset = whole file.
    AUDIO_TARGET_SR        Resample to this rate in Hz; unset = native rate.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_MAX_WORKERS: int = 4


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings for AnalysisEngine."""

    max_workers: int = DEFAULT_MAX_WORKERS
    max_duration: float | None = None
    target_sr: int | None = None

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_duration is not None and self.max_duration <= 0:
            raise ValueError(f"max_duration must be positive, got {self.max_duration}")
        if self.target_sr is not None and self.target_sr <= 0:
            raise ValueError(f"target_sr must be positive, got {self.target_sr}")


def _optional(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def load_engine_settings() -> EngineSettings:
    """Build EngineSettings from the environment.

    Raises:
        ValueError: A variable is set but not a valid number.
    """
    load_dotenv()
    max_workers = int(os.environ.get("ANALYSIS_MAX_WORKERS", str(DEFAULT_MAX_WORKERS)))
    max_duration = _optional("AUDIO_MAX_DURATION")
    target_sr = _optional("AUDIO_TARGET_SR")
    return EngineSettings(
        max_workers=max_workers,
        max_duration=float(max_duration) if max_duration is not None else None,
        target_sr=int(target_sr) if target_sr is not None else None,
    )
