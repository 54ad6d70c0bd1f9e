"""
Drives a velocity estimator over every frame of every recorded track
and collects the per-frame velocity estimates with timing.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np

from core.sensor_model import SensorResolutionModel
from core.track_store import Track
from velocity.estimators import VelocityEstimator, normalize_output


@dataclass
class TrackResult:
    """
    Velocity estimates recorded for one track.
    Entry j holds the estimate computed between frames j and j+1.
    """
    track_id: int
    estimated_velocities: List[np.ndarray] = field(default_factory=list)
    ignore_frame: List[bool] = field(default_factory=list)

    def append(self, velocity: np.ndarray, ignore: bool = False):
        """Record one estimate; the ignore flags always stay in lockstep"""
        self.estimated_velocities.append(np.asarray(velocity, dtype=np.float64))
        self.ignore_frame.append(ignore)

    def __len__(self) -> int:
        return len(self.estimated_velocities)

    @property
    def num_ignored(self) -> int:
        return sum(self.ignore_frame)

    @property
    def num_kept(self) -> int:
        return len(self.ignore_frame) - self.num_ignored


@dataclass
class TrackingRun:
    """
    Output of tracking all objects with one estimator
    """
    results: List[TrackResult]
    elapsed_ms: float
    total_frames: int

    @property
    def mean_ms_per_frame(self) -> float:
        if self.total_frames == 0:
            return 0.0
        return self.elapsed_ms / self.total_frames


class TrackingHarness:
    """
    Feeds the frames of each track to an estimator, in order
    """

    def __init__(self,
                 estimator: VelocityEstimator,
                 sensor_model: Optional[SensorResolutionModel] = None):
        """
        Initialize the harness.

        Args:
            estimator: Estimator under evaluation
            sensor_model: Sensor resolution model (64-beam lidar by default)
        """
        self.estimator = estimator
        self.sensor_model = sensor_model or SensorResolutionModel()
        self.logger = logging.getLogger(__name__)

    def track(self, tracks: Iterable[Track]) -> TrackingRun:
        """
        Track all objects and store the estimated velocities.

        Args:
            tracks: Tracks to process (a TrackStore or any sequence of Track)

        Returns:
            TrackingRun holding one TrackResult per track
        """
        tracks = list(tracks)
        results = []
        total_num_frames = 0

        start_time = time.perf_counter()

        for track in tracks:
            result = self.track_object(track)
            total_num_frames += len(result)
            results.append(result)

        elapsed_ms = (time.perf_counter() - start_time) * 1000.0

        run = TrackingRun(results=results, elapsed_ms=elapsed_ms, total_frames=total_num_frames)

        self.logger.debug(f"Total time for tracking {len(tracks)} objects: {elapsed_ms:.3f} ms")
        self.logger.debug(f"Mean runtime per frame: {run.mean_ms_per_frame:.6f} ms")

        return run

    def track_object(self, track: Track) -> TrackResult:
        """Run the estimator over the frames of a single track"""
        # No residual memory from the previous track
        self.estimator.reset()

        result = TrackResult(track_id=track.track_id)

        for frame_index, frame in enumerate(track.frames):
            h_res, v_res = self.sensor_model.get_sensor_resolution(frame.centroid)

            output = normalize_output(
                self.estimator.estimate(frame.points, frame.timestamp, h_res, v_res)
            )

            # The first frame only seeds the estimator; there is no velocity yet
            if frame_index > 0:
                result.append(output.velocity)

        return result
