"""
core/errors.py — Error kinds raised by the analysis core and the text importer.

Every analysis error carries a stable ``kind`` string and a ``user_message``
so an editing surface can show a distinct message per failure and fall back
to an empty timeline, without string-matching exception text.
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for failures that abort a whole analysis call.

    Analysis is all-or-nothing: when one of these is raised, no partial
    snapshots or onsets are returned.
    """

    kind: str = "analysis_error"
    user_message: str = "Audio analysis failed."

    def __init__(self, detail: str) -> None:
        """Initialize with a developer-facing detail string."""
        self.detail = detail
        super().__init__(detail)


class InvalidBuffer(AnalysisError):
    """Raised when the sample buffer is empty or has zero duration."""

    kind = "invalid_buffer"
    user_message = "The audio file contains no samples to analyze."


class InvalidSliceCount(AnalysisError, ValueError):
    """Raised when a negative (or non-integer) slice count is requested."""

    kind = "invalid_slice_count"
    user_message = "The requested number of spectral slices is invalid."

    def __init__(self, slice_count: object) -> None:
        """Initialize with the rejected slice count."""
        self.slice_count = slice_count
        super().__init__(f"slice_count must be a non-negative integer, got {slice_count!r}")


class MalformedImportBlock(ValueError):
    """Raised for a block of music-map text that cannot be parsed.

    Only ever recovered inside ``deserialize()``: the block is skipped and
    the import continues with the remaining blocks.

    Args:
        block_index: Zero-based position of the block in the imported text.
        reason: Why the block was rejected.
    """

    def __init__(self, block_index: int, reason: str) -> None:
        """Initialize with the block position and rejection reason."""
        self.block_index = block_index
        self.reason = reason
        super().__init__(f"Malformed block #{block_index}: {reason}")
