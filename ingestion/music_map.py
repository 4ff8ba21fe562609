"""
ingestion/music_map.py — File I/O boundary for music-map text files.

core/timeline/text_format.py does the parsing and rendering on strings;
this module only moves those strings to and from disk (UTF-8).
"""

from __future__ import annotations

import logging
from pathlib import Path

from core.timeline.text_format import deserialize_with_errors, serialize
from core.timeline.types import PanelList

logger = logging.getLogger(__name__)

MUSIC_MAP_SUFFIX: str = ".txt"
DEFAULT_FILENAME: str = "music-map.txt"


def read_music_map(path: str | Path) -> tuple[PanelList, int]:
    """Read a music-map file.

    Returns:
        (panels sorted by timestamp, number of malformed blocks skipped)

    Raises:
        FileNotFoundError: File does not exist at the given path.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Music map not found: {file_path}")

    panels, errors = deserialize_with_errors(file_path.read_text(encoding="utf-8"))
    logger.info(
        "Read %d panel(s) from %s (%d block(s) skipped)",
        len(panels),
        file_path.name,
        len(errors),
    )
    return panels, len(errors)


def write_music_map(panels: PanelList, path: str | Path) -> Path:
    """Write panels to a music-map file, creating parent directories.

    Raises:
        ValueError: There are no panels to write.
    """
    if not panels:
        raise ValueError("No panels to export")

    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize(panels), encoding="utf-8")
    logger.info("Wrote %d panel(s) to %s", len(panels), file_path)
    return file_path
