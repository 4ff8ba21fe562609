"""
Tests for core.config module.

These tests verify AnalysisConfig validation and predefined configurations.
"""

import dataclasses

import pytest

from core.config import DEFAULT_ANALYSIS_CONFIG, HIGH_RESOLUTION_CONFIG, AnalysisConfig


class TestAnalysisConfigValidation:
    """Test AnalysisConfig parameter validation."""

    def test_default_values(self) -> None:
        config = AnalysisConfig()
        assert config.window_size == 256
        assert config.lowpass_cutoff_hz == 150.0
        assert config.lowpass_q == 1.0
        assert config.hop_seconds == 0.01
        assert config.threshold_multiplier == 1.5
        assert config.min_onset_gap_seconds == 0.25

    def test_odd_window_size_raises(self) -> None:
        with pytest.raises(ValueError, match="window_size"):
            AnalysisConfig(window_size=255)

    def test_tiny_window_size_raises(self) -> None:
        with pytest.raises(ValueError, match="window_size"):
            AnalysisConfig(window_size=0)

    def test_non_positive_hop_raises(self) -> None:
        with pytest.raises(ValueError, match="hop_seconds must be positive"):
            AnalysisConfig(hop_seconds=0.0)

    def test_average_window_shorter_than_hop_raises(self) -> None:
        with pytest.raises(ValueError, match="average_window_seconds"):
            AnalysisConfig(hop_seconds=0.1, average_window_seconds=0.05)

    def test_non_positive_cutoff_raises(self) -> None:
        with pytest.raises(ValueError, match="lowpass_cutoff_hz"):
            AnalysisConfig(lowpass_cutoff_hz=0.0)

    def test_negative_gap_raises(self) -> None:
        with pytest.raises(ValueError, match="min_onset_gap_seconds"):
            AnalysisConfig(min_onset_gap_seconds=-0.1)

    def test_zero_gap_is_valid(self) -> None:
        assert AnalysisConfig(min_onset_gap_seconds=0.0).min_onset_gap_seconds == 0.0


class TestAnalysisConfigDerived:
    def test_average_window_hops(self) -> None:
        assert DEFAULT_ANALYSIS_CONFIG.average_window_hops == 50

    def test_bin_count(self) -> None:
        assert DEFAULT_ANALYSIS_CONFIG.bin_count == 128
        assert HIGH_RESOLUTION_CONFIG.bin_count == 512

    def test_hop_size_rounds(self) -> None:
        assert DEFAULT_ANALYSIS_CONFIG.hop_size(44100) == 441
        assert DEFAULT_ANALYSIS_CONFIG.hop_size(8000) == 80

    def test_hop_size_never_below_one(self) -> None:
        assert DEFAULT_ANALYSIS_CONFIG.hop_size(10) == 1


class TestAnalysisConfigImmutability:
    """Test that AnalysisConfig is frozen."""

    def test_cannot_modify(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_ANALYSIS_CONFIG.window_size = 512  # type: ignore[misc]

    def test_replace_creates_new_instance(self) -> None:
        modified = dataclasses.replace(DEFAULT_ANALYSIS_CONFIG, window_size=512)
        assert modified.window_size == 512
        assert DEFAULT_ANALYSIS_CONFIG.window_size == 256


class TestPredefinedConfigs:
    def test_high_resolution_keeps_onset_policy(self) -> None:
        assert HIGH_RESOLUTION_CONFIG.window_size == 1024
        assert HIGH_RESOLUTION_CONFIG.slices_per_second == 40.0
        assert HIGH_RESOLUTION_CONFIG.lowpass_cutoff_hz == DEFAULT_ANALYSIS_CONFIG.lowpass_cutoff_hz
        assert (
            HIGH_RESOLUTION_CONFIG.min_onset_gap_seconds
            == DEFAULT_ANALYSIS_CONFIG.min_onset_gap_seconds
        )
