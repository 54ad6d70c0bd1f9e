"""
Unit tests for ground-truth loading.
"""

import math
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from evaluation.ground_truth import GroundTruthProvider, GroundTruthSeries, parse_ground_truth


class TestParseGroundTruth:
    """Test ground-truth file parsing"""

    def test_one_speed_per_line(self):
        """Test parsing a well-formed file"""
        assert parse_ground_truth("2.1\n9.5\n0\n") == [2.1, 9.5, 0.0]

    def test_stops_at_first_non_numeric_token(self):
        """Test that parsing ends at the first unparsable token"""
        assert parse_ground_truth("1.5\n2.5\nend\n3.5\n") == [1.5, 2.5]

    def test_whitespace_tolerant(self):
        """Test blank lines and surrounding whitespace"""
        assert parse_ground_truth("  1.0\n\n 2e-1 \n") == [1.0, 0.2]

    def test_empty(self):
        """Test an empty file"""
        assert parse_ground_truth("") == []
        assert parse_ground_truth(" \n\n") == []

    def test_numeric_prefix_is_kept(self):
        """Test that trailing garbage after a number ends reading after that number"""
        assert parse_ground_truth("2.1\n9.5,\n3.0\n") == [2.1, 9.5]
        assert parse_ground_truth("1.5abc\n2.0\n") == [1.5]
        assert parse_ground_truth("4e\n5\n") == [4.0]

    def test_underscores_not_accepted(self):
        """Test that digit separators are not part of a number"""
        assert parse_ground_truth("1_0\n2\n") == [1.0]

    def test_number_formats(self):
        """Test signs, bare decimal points, exponents and special values"""
        speeds = parse_ground_truth("-1.5\n+.5\n3.\n2E2\ninf\n")

        assert speeds[:4] == [-1.5, 0.5, 3.0, 200.0]
        assert math.isinf(speeds[4])
        assert math.isnan(parse_ground_truth("NaN\n")[0])


class TestGroundTruthSeries:
    """Test GroundTruthSeries access"""

    def test_speed_at(self):
        """Test indexed access"""
        series = GroundTruthSeries(track_id=4, speeds=[1.0, 2.0], path="gt/track4gt.txt")

        assert len(series) == 2
        assert series.speed_at(1) == 2.0

    def test_speed_past_end(self):
        """Test that reading past the end fails loudly"""
        series = GroundTruthSeries(track_id=4, speeds=[1.0], path="gt/track4gt.txt")

        with pytest.raises(IndexError, match="track 4 has 1 entries, entry 1 requested"):
            series.speed_at(1)

        with pytest.raises(IndexError):
            series.speed_at(-1)


class TestGroundTruthProvider:
    """Test GroundTruthProvider functionality"""

    def test_path_for(self, tmp_path):
        """Test the per-track file name"""
        provider = GroundTruthProvider(tmp_path)

        assert provider.path_for(12) == tmp_path / "track12gt.txt"

    def test_custom_pattern(self, tmp_path):
        """Test a custom file name pattern"""
        (tmp_path / "gt_5.csv").write_text("4.0\n")
        provider = GroundTruthProvider(tmp_path, filename_pattern="gt_{track_id}.csv")

        assert provider.get(5).speeds == [4.0]

    def test_get(self, tmp_path):
        """Test loading a series"""
        (tmp_path / "track3gt.txt").write_text("2.1\n9.5\n")
        provider = GroundTruthProvider(tmp_path)

        series = provider.get(3)

        assert series.track_id == 3
        assert series.speeds == [2.1, 9.5]
        assert series.path == str(tmp_path / "track3gt.txt")

    def test_get_is_cached(self, tmp_path):
        """Test that each file is read once per provider"""
        gt_file = tmp_path / "track3gt.txt"
        gt_file.write_text("2.1\n")
        provider = GroundTruthProvider(tmp_path)

        first = provider.get(3)
        gt_file.write_text("7.0\n")

        assert provider.get(3) is first
        assert provider.get(3).speeds == [2.1]

    def test_missing_file(self, tmp_path):
        """Test that a missing file names the file"""
        provider = GroundTruthProvider(tmp_path)

        with pytest.raises(FileNotFoundError, match="Cannot open file: .*track99gt.txt"):
            provider.get(99)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
