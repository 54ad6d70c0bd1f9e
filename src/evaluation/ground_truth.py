"""
Ground-truth speeds, one file per track.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union


DEFAULT_FILENAME_PATTERN = "track{track_id}gt.txt"

# Longest leading floating-point literal, as read by a C "%lf" conversion
_FLOAT_PREFIX = re.compile(
    r'[-+]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?|inf(?:inity)?|nan)',
    re.IGNORECASE
)
_WHITESPACE = re.compile(r'\s*')


def parse_ground_truth(text: str) -> List[float]:
    """
    Read speeds one after another, each taken as the longest numeric
    prefix at the current position. Reading stops at the first position
    where no number starts, so "9.5," still yields 9.5 and "1_0" yields 1.0.

    Args:
        text: File contents

    Returns:
        Speeds in frame order
    """
    speeds = []
    pos = _WHITESPACE.match(text).end()

    while pos < len(text):
        match = _FLOAT_PREFIX.match(text, pos)
        if match is None:
            break
        speeds.append(float(match.group()))
        pos = _WHITESPACE.match(text, match.end()).end()

    return speeds


@dataclass
class GroundTruthSeries:
    """
    Reference speeds of one track, one per retained estimate
    """
    track_id: int
    speeds: List[float] = field(default_factory=list)
    path: str = ""

    def __len__(self) -> int:
        return len(self.speeds)

    def speed_at(self, index: int) -> float:
        """Reference speed for the index-th retained estimate"""
        if index < 0 or index >= len(self.speeds):
            raise IndexError(
                f"Ground truth for track {self.track_id} has {len(self.speeds)} entries, "
                f"entry {index} requested ({self.path})"
            )
        return self.speeds[index]


class GroundTruthProvider:
    """
    Loads ground-truth series from a folder of per-track files
    """

    def __init__(self,
                 gt_folder: Union[str, Path],
                 filename_pattern: str = DEFAULT_FILENAME_PATTERN):
        self.gt_folder = Path(gt_folder)
        self.filename_pattern = filename_pattern
        self.logger = logging.getLogger(__name__)

        self._cache: Dict[int, GroundTruthSeries] = {}

    def path_for(self, track_id: int) -> Path:
        return self.gt_folder / self.filename_pattern.format(track_id=track_id)

    def get(self, track_id: int) -> GroundTruthSeries:
        """
        Get the ground-truth velocities of a track

        Args:
            track_id: Track identifier

        Returns:
            GroundTruthSeries for the track
        """
        if track_id not in self._cache:
            self._cache[track_id] = self._load(track_id)
        return self._cache[track_id]

    def _load(self, track_id: int) -> GroundTruthSeries:
        gt_path = self.path_for(track_id)

        if not gt_path.is_file():
            raise FileNotFoundError(f"Cannot open file: {gt_path}")

        with open(gt_path, 'r') as f:
            speeds = parse_ground_truth(f.read())

        self.logger.debug(f"Loaded {len(speeds)} ground-truth speeds for track {track_id}")
        return GroundTruthSeries(track_id=track_id, speeds=speeds, path=str(gt_path))
