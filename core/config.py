"""
Configuration dataclasses for the analysis pipeline.

These immutable config objects decouple parameter passing from function signatures,
making it easier to define standard configurations and reuse them across pipelines.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Configuration for spectral sampling and onset detection.

    Immutable configuration object that can be reused across multiple
    analyze() / detect_onsets() calls. The defaults are the fixed policy
    constants of the onset detector; changing any of them changes the
    onset set produced for a given buffer.

    Attributes:
        window_size: Samples per spectral snapshot window. Each snapshot has
            window_size // 2 magnitude bins. Defaults to 256.
        slices_per_second: Snapshot density used by default_slice_count().
            Defaults to 20 (one snapshot every 50 ms).
        lowpass_cutoff_hz: Cutoff of the low-pass pre-filter. Defaults to 150 Hz,
            which keeps kick/bass energy and drops most tonal content.
        lowpass_q: Resonance of the low-pass pre-filter, in dB. Defaults to 1.
        hop_seconds: Length of one short-time energy hop. Defaults to 10 ms.
        average_window_seconds: Radius of the local-average window used
            for the adaptive threshold. Defaults to 0.5 s (50 hops).
        threshold_multiplier: A hop must exceed local_avg * multiplier to
            count as an onset. Defaults to 1.5.
        min_onset_gap_seconds: Debounce window. A kept onset must be strictly
            more than this far after the previous kept onset. Defaults to 0.25 s.

    Example:
        >>> config = AnalysisConfig(window_size=512)
        >>> snapshots = analyze(buffer, 100, config=config)
    """

    window_size: int = 256
    slices_per_second: float = 20.0
    lowpass_cutoff_hz: float = 150.0
    lowpass_q: float = 1.0
    hop_seconds: float = 0.01
    average_window_seconds: float = 0.5
    threshold_multiplier: float = 1.5
    min_onset_gap_seconds: float = 0.25

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.window_size < 2 or self.window_size % 2 != 0:
            raise ValueError(f"window_size must be an even integer >= 2, got {self.window_size}")
        if self.slices_per_second <= 0:
            raise ValueError(f"slices_per_second must be positive, got {self.slices_per_second}")
        if self.lowpass_cutoff_hz <= 0:
            raise ValueError(f"lowpass_cutoff_hz must be positive, got {self.lowpass_cutoff_hz}")
        if self.hop_seconds <= 0:
            raise ValueError(f"hop_seconds must be positive, got {self.hop_seconds}")
        if self.average_window_seconds < self.hop_seconds:
            raise ValueError(
                f"average_window_seconds ({self.average_window_seconds}) must be "
                f">= hop_seconds ({self.hop_seconds})"
            )
        if self.threshold_multiplier <= 0:
            raise ValueError(
                f"threshold_multiplier must be positive, got {self.threshold_multiplier}"
            )
        if self.min_onset_gap_seconds < 0:
            raise ValueError(
                f"min_onset_gap_seconds must be non-negative, got {self.min_onset_gap_seconds}"
            )

    @property
    def average_window_hops(self) -> int:
        """Local-average radius in hops: floor(0.5 / 0.01) = 50 with the defaults."""
        return int(math.floor(self.average_window_seconds / self.hop_seconds))

    @property
    def bin_count(self) -> int:
        """Number of magnitude bins per spectral snapshot."""
        return self.window_size // 2

    def hop_size(self, sample_rate: int) -> int:
        """Samples per energy hop at the given sample rate (never below 1)."""
        return max(1, int(round(self.hop_seconds * sample_rate)))


# Pre-defined configurations

DEFAULT_ANALYSIS_CONFIG = AnalysisConfig()
"""Default configuration: 256-sample windows, 150 Hz low-pass, 10 ms hops."""

HIGH_RESOLUTION_CONFIG = AnalysisConfig(window_size=1024, slices_per_second=40.0)
"""Finer spectral snapshots for zoomed-in views. Onset policy is unchanged."""
