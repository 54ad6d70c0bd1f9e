"""
Scores velocity estimates against ground-truth speeds.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from scipy import stats

from evaluation.ground_truth import GroundTruthProvider
from tracking.tracking_harness import TrackResult


@dataclass
class ErrorStatistics:
    """
    Summary of signed speed residuals (estimated - ground truth), in m/s
    """
    num_frames: int
    rms_error: float
    mean_error: float
    std_error: float
    min_error: float
    max_error: float


def compute_error_statistics(errors: Sequence[float]) -> ErrorStatistics:
    """
    Compute the root-mean-square error and summary statistics

    Args:
        errors: Signed residuals

    Returns:
        ErrorStatistics; every value is NaN when there are no residuals
    """
    errors = np.asarray(errors, dtype=np.float64)

    if errors.size == 0:
        logging.getLogger(__name__).warning("No frames to evaluate, error statistics are undefined")
        nan = float('nan')
        return ErrorStatistics(num_frames=0, rms_error=nan, mean_error=nan,
                               std_error=nan, min_error=nan, max_error=nan)

    rms_error = math.sqrt(float(np.sum(errors ** 2)) / errors.size)

    summary = stats.describe(errors, ddof=0)

    return ErrorStatistics(
        num_frames=int(summary.nobs),
        rms_error=rms_error,
        mean_error=float(summary.mean),
        std_error=math.sqrt(float(summary.variance)),
        min_error=float(summary.minmax[0]),
        max_error=float(summary.minmax[1])
    )


class FrameCounter:
    """
    Global index of the estimate slot being scored, across all tracks.
    Starts before the first slot; advance() moves to the next one.
    """

    def __init__(self):
        self.index = -1

    def advance(self) -> int:
        self.index += 1
        return self.index


class Evaluator:
    """
    Pairs non-ignored estimates with ground truth and collects residuals
    """

    def __init__(self, ground_truth: GroundTruthProvider):
        self.ground_truth = ground_truth
        self.logger = logging.getLogger(__name__)

    def evaluate_track(self,
                       result: TrackResult,
                       counter: FrameCounter,
                       errors: List[float],
                       filter_mask: Optional[np.ndarray] = None):
        """
        Append the residuals of one track to errors

        Args:
            result: Estimates of the track, with ignore flags set
            counter: Global slot counter, advanced once per estimate
            errors: Residual accumulator
            filter_mask: Optional inclusion mask indexed by the global counter
        """
        gt_series = self.ground_truth.get(result.track_id)

        skipped = 0

        for j, estimated_velocity in enumerate(result.estimated_velocities):
            frame_num = counter.advance()

            if result.ignore_frame[j]:
                skipped += 1
                continue

            if filter_mask is not None and not filter_mask[frame_num]:
                continue

            estimated_magnitude = float(np.linalg.norm(estimated_velocity))
            gt_magnitude = gt_series.speed_at(j - skipped)

            errors.append(estimated_magnitude - gt_magnitude)

    def collect_errors(self,
                       results: Sequence[TrackResult],
                       filter_mask: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Collect the residuals of all tracks

        Args:
            results: Results of a tracking run, in track order
            filter_mask: Optional inclusion mask over all estimate slots

        Returns:
            Array of signed residuals
        """
        if filter_mask is not None:
            filter_mask = np.asarray(filter_mask, dtype=bool)
            total_slots = sum(len(result) for result in results)
            if len(filter_mask) != total_slots:
                raise ValueError(
                    f"Filter has {len(filter_mask)} entries for {total_slots} estimates"
                )

        errors: List[float] = []
        counter = FrameCounter()

        for result in results:
            self.evaluate_track(result, counter, errors, filter_mask)

        return np.array(errors, dtype=np.float64)

    def evaluate(self,
                 results: Sequence[TrackResult],
                 filter_mask: Optional[np.ndarray] = None) -> ErrorStatistics:
        """Evaluate the tracking accuracy"""
        errors = self.collect_errors(results, filter_mask)
        statistics = compute_error_statistics(errors)

        self.logger.debug(
            f"Evaluated {statistics.num_frames} frames: mean error {statistics.mean_error:.4f} m/s, "
            f"std {statistics.std_error:.4f} m/s"
        )

        return statistics
