"""CLI script: analyze an audio file and write its music map.

Detects onsets in the track, seeds one empty panel per onset, and writes
the panels in music-map text format, ready to be opened in the editor.

Usage:
    # Analyze a track and write its music map:
    python scripts/build_music_map.py track.wav -o maps/track.txt

    # Denser spectral sampling, more worker threads:
    python scripts/build_music_map.py track.wav -o map.txt --slices 2000 --workers 8

    # Larger analysis window and 40 slices per second:
    python scripts/build_music_map.py track.wav -o map.txt --high-resolution

Environment variables read:
    ANALYSIS_MAX_WORKERS — default worker count (overridden by --workers)
    AUDIO_MAX_DURATION   — seconds of audio to load; unset = whole file
    AUDIO_TARGET_SR      — resample rate in Hz; unset = native rate
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DEFAULT_ANALYSIS_CONFIG, HIGH_RESOLUTION_CONFIG  # noqa: E402
from core.errors import AnalysisError  # noqa: E402
from ingestion.analysis_job import AnalysisEngine, classify_error  # noqa: E402
from ingestion.audio_loader import load_sample_buffer  # noqa: E402
from ingestion.music_map import DEFAULT_FILENAME, write_music_map  # noqa: E402
from ingestion.settings import load_engine_settings  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Detect onsets in an audio file and write a music-map text file."
    )
    parser.add_argument("audio", type=str, help="Audio file to analyze (WAV, MP3, FLAC, ...).")
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=DEFAULT_FILENAME,
        metavar="PATH",
        help=f"Music-map file to write (default: {DEFAULT_FILENAME}).",
    )
    parser.add_argument(
        "--slices",
        type=int,
        default=None,
        metavar="N",
        help="Number of spectral snapshots (default: 20 per second of audio).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Worker threads for spectral sampling (default: ANALYSIS_MAX_WORKERS).",
    )
    parser.add_argument(
        "--high-resolution",
        action="store_true",
        default=False,
        help="Use a 1024-sample window and 40 slices per second.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        settings = load_engine_settings()
        if args.workers is not None:
            settings = dataclasses.replace(settings, max_workers=args.workers)
    except ValueError as exc:
        logger.error("Invalid engine settings: %s", exc)
        return 1
    config = HIGH_RESOLUTION_CONFIG if args.high_resolution else DEFAULT_ANALYSIS_CONFIG

    engine = AnalysisEngine(config, settings=settings, loader=load_sample_buffer)
    try:
        buffer = engine.load(args.audio)
        result = engine.analyze(buffer, slice_count=args.slices)
    except (AnalysisError, OSError, ValueError, RuntimeError) as exc:
        kind, message = classify_error(exc)
        logger.error("%s [%s]: %s", message, kind, exc)
        return 1
    finally:
        engine.shutdown()

    logger.info(
        "Analyzed %s: %.2f s, %d slices, %d onsets in %.0f ms",
        Path(args.audio).name,
        result.duration_sec,
        result.slice_count,
        len(result.onsets),
        result.processing_time_ms,
    )

    if not result.panels:
        logger.warning("No onsets detected, nothing to write.")
        return 1

    path = write_music_map(result.panels, args.output)
    print(f"{len(result.panels)} panels written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
