"""
Filter to only evaluate on objects within a given distance (in meters).
"""

from typing import Iterable

import numpy as np

from core.sensor_model import planar_distance
from core.track_store import Track


def build_distance_filter(tracks: Iterable[Track], max_distance: float) -> np.ndarray:
    """
    Build the inclusion mask over every (track, frame >= 1) slot

    Args:
        tracks: Tracks in evaluation order
        max_distance: Largest planar distance kept, inclusive

    Returns:
        Boolean array, track-major and frame-minor
    """
    if max_distance < 0:
        raise ValueError(f"Maximum distance must be non-negative, got {max_distance}")

    within = [
        planar_distance(frame.centroid) <= max_distance
        for track in tracks
        for frame in track.frames[1:]
    ]

    return np.array(within, dtype=bool)
