"""
Track store holding the recorded lidar frames of every tracked object.
Frames are read-only once loaded; the evaluation only borrows them.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import numpy as np


logger = logging.getLogger(__name__)


@dataclass
class Frame:
    """
    One timestamped lidar observation of a tracked object
    """
    timestamp: float
    points: np.ndarray  # (N, 3) geometry, optionally (N, 6) with RGB
    centroid: Optional[np.ndarray] = None

    def __post_init__(self):
        self.points = np.asarray(self.points, dtype=np.float64)
        if self.points.ndim == 1:
            self.points = self.points.reshape(-1, 3) if self.points.size else np.zeros((0, 3))

        if self.centroid is None:
            if len(self.points) == 0:
                raise ValueError("Frame has no points and no centroid")
            self.centroid = self.points[:, :3].mean(axis=0)
        else:
            self.centroid = np.asarray(self.centroid, dtype=np.float64)

        if self.centroid.shape != (3,):
            raise ValueError(f"Centroid must be a 3D position, got shape {self.centroid.shape}")

    @property
    def has_color(self) -> bool:
        """Whether the point data carries RGB columns"""
        return self.points.ndim == 2 and self.points.shape[1] >= 6


@dataclass
class Track:
    """
    Full sequence of frames observed for one tracked object
    """
    track_id: int
    frames: List[Frame] = field(default_factory=list)

    @property
    def num_estimates(self) -> int:
        """Number of velocity estimates the track yields (none for the first frame)"""
        return max(len(self.frames) - 1, 0)


class TrackStore:
    """
    Ordered collection of tracks, in the order they were recorded
    """

    def __init__(self, tracks: Optional[List[Track]] = None):
        self.tracks: List[Track] = list(tracks or [])

    def __len__(self) -> int:
        return len(self.tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self.tracks)

    def __getitem__(self, index: int) -> Track:
        return self.tracks[index]

    def total_estimates(self) -> int:
        """Number of (track, frame >= 1) slots across all tracks"""
        return sum(track.num_estimates for track in self.tracks)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrackStore':
        """
        Build a track store from its JSON document form

        Args:
            data: Dictionary with a 'tracks' list

        Returns:
            TrackStore instance
        """
        if 'tracks' not in data:
            raise ValueError("Track store is missing the 'tracks' list")

        tracks = []
        for track_data in data['tracks']:
            try:
                frames = [
                    Frame(
                        timestamp=float(frame_data['timestamp']),
                        points=frame_data.get('points', []),
                        centroid=frame_data.get('centroid')
                    )
                    for frame_data in track_data['frames']
                ]
                tracks.append(Track(track_id=int(track_data['track_id']), frames=frames))
            except KeyError as e:
                raise ValueError(f"Malformed track entry, missing field {e}") from e

        return cls(tracks)

    @classmethod
    def from_file(cls, track_file: Union[str, Path]) -> 'TrackStore':
        """
        Load a track store from a JSON file

        Args:
            track_file: Path to track store file

        Returns:
            TrackStore instance
        """
        track_path = Path(track_file)

        if not track_path.exists():
            raise FileNotFoundError(f"Track store file not found: {track_path}")

        with open(track_path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid track store file {track_path}: {e}") from e

        store = cls.from_dict(data)
        logger.debug(f"Loaded {len(store)} tracks from {track_path}")
        return store
