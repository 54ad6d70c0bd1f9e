"""
Flags velocity estimates that are structurally unreliable.

Two situations are ignored:
  - frames at the back of a spin, where half of the object was recorded at
    the beginning of a spin and the other half at the end, which shows up
    as a large jump in the heading of the centroid;
  - frames whose time difference is extremely small, because the object
    moved between the end of one spin and the beginning of the next.
Estimating the velocity for such frames is prone to errors that should
ideally be fixed before the track reaches the estimator.
"""

import logging
import math
from typing import List, Sequence

from core.track_store import Track
from tracking.tracking_harness import TrackResult


DEFAULT_MAX_HEADING_DELTA = 1.0  # radians
DEFAULT_MIN_TIME_DELTA = 0.05  # seconds


class TrackFrameClassifier:
    """
    Forward-pass state machine over the frames of one track
    """

    def __init__(self,
                 max_heading_delta: float = DEFAULT_MAX_HEADING_DELTA,
                 min_time_delta: float = DEFAULT_MIN_TIME_DELTA,
                 use_interframe_time_delta: bool = False):
        self.max_heading_delta = max_heading_delta
        self.min_time_delta = min_time_delta
        self.use_interframe_time_delta = use_interframe_time_delta

        self.prev_heading = 0.0
        self.prev_timestamp = 0.0
        self.skip_next = False

    def step(self,
             frame_index: int,
             centroid: Sequence[float],
             timestamp: float,
             ignore_frame: List[bool]):
        """
        Process the next frame of the track.

        Writes into ignore_frame[frame_index - 1] (the estimate between the
        previous frame and this one) and, after a discontinuity, also into
        ignore_frame[frame_index - 2].
        """
        heading = math.atan2(centroid[1], centroid[0])
        heading_delta = abs(heading - self.prev_heading)
        time_delta = timestamp - self.prev_timestamp

        self.prev_heading = heading
        if self.use_interframe_time_delta:
            self.prev_timestamp = timestamp

        if frame_index == 0:
            return

        if heading_delta <= self.max_heading_delta:
            if self.skip_next or time_delta < self.min_time_delta:
                ignore_frame[frame_index - 1] = True
            self.skip_next = False
        else:
            ignore_frame[frame_index - 1] = True
            self.skip_next = True
            if frame_index > 1:
                ignore_frame[frame_index - 2] = True


class BadFrameClassifier:
    """
    Marks bad frames in the results of a tracking run
    """

    def __init__(self,
                 max_heading_delta: float = DEFAULT_MAX_HEADING_DELTA,
                 min_time_delta: float = DEFAULT_MIN_TIME_DELTA,
                 use_interframe_time_delta: bool = False):
        """
        Initialize the classifier.

        Args:
            max_heading_delta: Largest heading change (radians) between frames
                that is not treated as a spin discontinuity
            min_time_delta: Smallest time difference (seconds) accepted
            use_interframe_time_delta: Measure time from the previous frame.
                When False, time is measured from zero, matching the
                published benchmark numbers.
        """
        self.max_heading_delta = max_heading_delta
        self.min_time_delta = min_time_delta
        self.use_interframe_time_delta = use_interframe_time_delta

        self.logger = logging.getLogger(__name__)

        if use_interframe_time_delta:
            self.logger.info("Using inter-frame time deltas; results differ from the benchmark baseline")

    def _new_state(self) -> TrackFrameClassifier:
        return TrackFrameClassifier(
            max_heading_delta=self.max_heading_delta,
            min_time_delta=self.min_time_delta,
            use_interframe_time_delta=self.use_interframe_time_delta
        )

    def classify_track(self, track: Track, result: TrackResult) -> TrackResult:
        """
        Flag the bad frames of one track in place

        Args:
            track: Track whose frames produced the result
            result: Estimates of that track; its ignore flags are updated

        Returns:
            The same TrackResult
        """
        if len(result.ignore_frame) != track.num_estimates:
            raise ValueError(
                f"Track {track.track_id} has {len(track.frames)} frames but "
                f"{len(result.ignore_frame)} estimates"
            )

        state = self._new_state()
        for frame_index, frame in enumerate(track.frames):
            state.step(frame_index, frame.centroid, frame.timestamp, result.ignore_frame)

        return result

    def find_bad_frames(self, tracks: Sequence[Track], results: List[TrackResult]) -> List[TrackResult]:
        """
        Flag the bad frames of every track

        Args:
            tracks: Tracks in the order they were tracked
            results: One TrackResult per track, in the same order

        Returns:
            The same list of results, with ignore flags updated
        """
        tracks = list(tracks)
        if len(tracks) != len(results):
            raise ValueError(f"Got {len(results)} results for {len(tracks)} tracks")

        for track, result in zip(tracks, results):
            self.classify_track(track, result)

        num_ignored = sum(result.num_ignored for result in results)
        num_total = sum(len(result) for result in results)
        self.logger.info(f"Ignoring {num_ignored} of {num_total} frames")

        return results
