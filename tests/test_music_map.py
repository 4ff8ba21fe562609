"""
Tests for ingestion/music_map.py — music-map file read/write.
"""

import pytest

from core.timeline.types import Panel
from ingestion.music_map import read_music_map, write_music_map


class TestWriteMusicMap:
    def test_writes_utf8_text(self, tmp_path):
        path = write_music_map((Panel(0.6), Panel(1.0)), tmp_path / "map.txt")
        assert path.read_text(encoding="utf-8") == "0.60\n0000\n0000\n\n1.00\n0000\n0000"

    def test_creates_parent_directories(self, tmp_path):
        path = write_music_map((Panel(1.0),), tmp_path / "maps" / "nested" / "map.txt")
        assert path.exists()

    def test_empty_timeline_raises(self, tmp_path):
        with pytest.raises(ValueError, match="No panels"):
            write_music_map((), tmp_path / "map.txt")


class TestReadMusicMap:
    def test_round_trip(self, tmp_path):
        panels = (Panel(0.6, board=((1, 2, 0, 0), (0, 0, 2, 1))), Panel(3.25))
        path = write_music_map(panels, tmp_path / "map.txt")
        loaded, skipped = read_music_map(path)
        assert loaded == panels
        assert skipped == 0

    def test_counts_skipped_blocks(self, tmp_path):
        path = tmp_path / "map.txt"
        path.write_text("1.00\n0000\n0000\n\n2.00\n0000", encoding="utf-8")
        loaded, skipped = read_music_map(path)
        assert [p.timestamp for p in loaded] == [1.0]
        assert skipped == 1

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="not found"):
            read_music_map(tmp_path / "missing.txt")
