"""
core/timeline/text_format.py — Plain-text music map import/export.

Format (one block per panel, blocks separated by a blank line)::

    12.34
    0120
    2001

    13.05
    0000
    1111

Import is best-effort: a block that cannot be parsed is skipped and the
rest of the file is still imported. Export rounds timestamps half-up to
two decimals, the same rounding as JavaScript's ``toFixed(2)``.
"""

from __future__ import annotations

import logging
import math
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext

from core.errors import MalformedImportBlock
from core.timeline.types import BOARD_COLS, BOARD_ROWS, CELL_STATES, Panel, PanelList

logger = logging.getLogger(__name__)

# Blank lines, including whitespace-only ones, separate blocks
_BLOCK_SEPARATOR = re.compile(r"\n\s*\n")
_CELL_CHARS = frozenset(str(state) for state in CELL_STATES)
_TWO_PLACES = Decimal("0.01")
# Plain decimal or exponent notation; no "_" separators, no inf/nan words
_TIMESTAMP = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def format_timestamp(timestamp: float) -> str:
    """Render a timestamp with exactly two decimals, rounding half up.

    Exact for every finite float: the decimal context grows with the
    magnitude, so large timestamps keep all their integer digits.
    """
    value = Decimal(timestamp)
    with localcontext() as ctx:
        # Integer digits, a possible carry, and two decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return str(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def serialize(panels: PanelList) -> str:
    """Render panels as music-map text.

    Returns:
        Blocks of "timestamp\\nrow1\\nrow2" joined by one blank line.
        Empty string for an empty list. No trailing newline.
    """
    blocks = []
    for panel in panels:
        rows = ["".join(str(cell) for cell in row) for row in panel.board]
        blocks.append("\n".join([format_timestamp(panel.timestamp), *rows]))
    return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _parse_row(line: str, block_index: int, row_number: int) -> tuple[int, ...]:
    if len(line) != BOARD_COLS or any(ch not in _CELL_CHARS for ch in line):
        raise MalformedImportBlock(
            block_index,
            f"row {row_number} must be {BOARD_COLS} characters from "
            f"{sorted(_CELL_CHARS)}, got {line!r}",
        )
    return tuple(int(ch) for ch in line)


def parse_block(block: str, block_index: int = 0) -> Panel:
    """Parse one block of music-map text into a Panel.

    Lines are stripped before parsing. Lines after the board rows are ignored.

    Raises:
        MalformedImportBlock: Too few lines, a timestamp that is not a finite
            non-negative number, or a row that is not 4 digits from {0,1,2}.
    """
    lines = [line.strip() for line in block.strip().split("\n")]
    if len(lines) < 1 + BOARD_ROWS:
        raise MalformedImportBlock(
            block_index, f"expected at least {1 + BOARD_ROWS} lines, got {len(lines)}"
        )

    if not _TIMESTAMP.fullmatch(lines[0]):
        raise MalformedImportBlock(block_index, f"timestamp {lines[0]!r} is not a number")
    timestamp = float(lines[0])
    if not math.isfinite(timestamp) or timestamp < 0:
        raise MalformedImportBlock(
            block_index, f"timestamp must be a finite value >= 0, got {lines[0]!r}"
        )

    board = tuple(
        _parse_row(lines[1 + r], block_index, r + 1) for r in range(BOARD_ROWS)
    )
    return Panel(timestamp=timestamp, board=board)


def split_blocks(text: str) -> list[str]:
    """Split music-map text into raw blocks on blank lines."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    if not normalized:
        return []
    return _BLOCK_SEPARATOR.split(normalized)


def deserialize_with_errors(text: str) -> tuple[PanelList, list[MalformedImportBlock]]:
    """Parse music-map text, returning the panels and the rejected blocks.

    Returns:
        (panels sorted by timestamp, one MalformedImportBlock per skipped block)
    """
    panels: list[Panel] = []
    errors: list[MalformedImportBlock] = []
    for index, block in enumerate(split_blocks(text)):
        try:
            panels.append(parse_block(block, index))
        except MalformedImportBlock as exc:
            logger.warning("Skipping music-map block: %s", exc)
            errors.append(exc)
    return tuple(sorted(panels, key=lambda p: p.timestamp)), errors


def deserialize(text: str) -> PanelList:
    """Parse music-map text into a sorted PanelList, skipping malformed blocks."""
    panels, _ = deserialize_with_errors(text)
    return panels
