"""
Complete evaluation pipeline for lidar velocity estimators.
Tracks every recorded object with each configured estimator, discards
unreliable frames and reports the error against ground truth.
"""

import argparse
import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from core.sensor_model import SensorResolutionModel
from core.track_store import TrackStore
from evaluation.distance_filter import build_distance_filter
from evaluation.evaluator import ErrorStatistics, Evaluator
from evaluation.ground_truth import GroundTruthProvider
from tracking.bad_frames import BadFrameClassifier
from tracking.tracking_harness import TrackingHarness
from velocity.estimators import (
    EstimatorFactory, EstimatorVariant, VelocityEstimator, variants_from_config
)


# Estimators are not part of this package. Each 'factory' is a "module:callable"
# import path of an installed plugin; the defaults name the precision tracker
# bindings, which have to be installed separately.
PLUGIN_NOTE = (
    "Estimator factories are plugin import paths ('module:callable') that must "
    "point at installed estimators. Set estimators.<name>.factory in a --config "
    "file to use your own."
)

DEFAULT_CONFIG: Dict[str, Any] = {
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    },
    'sensor': {
        'horizontal_angular_res': 0.18,
        'vertical_fov': 26.8,
        'num_beams': 64
    },
    'classifier': {
        'max_heading_delta': 1.0,
        'min_time_delta': 0.05,
        'use_interframe_time_delta': False
    },
    'evaluation': {
        'max_distance': 5.0
    },
    'ground_truth': {
        'filename_pattern': 'track{track_id}gt.txt'
    },
    'estimators': {
        'kalman': {
            'factory': 'precision_tracking.tracker:create_tracker',
            'params': {'use_precision_tracker': False, 'use_color': False},
            'description': 'Tracking objects with the centroid-based Kalman filter baseline. '
                           'This method is very fast but not very accurate. Please wait...'
        },
        'precision': {
            'factory': 'precision_tracking.tracker:create_tracker',
            'params': {'use_precision_tracker': True, 'use_color': False},
            'description': 'Tracking objects with our precision tracker. '
                           'This method is accurate and fairly fast. Please wait...'
        },
        'precision_color': {
            'factory': 'precision_tracking.tracker:create_tracker',
            'params': {'use_precision_tracker': True, 'use_color': True},
            'description': 'Tracking objects with our precision tracker using color. '
                           'This method is a bit more accurate but much slower. '
                           'Please wait (will be slow)...'
        }
    }
}


@dataclass
class VariantReport:
    """
    Evaluation results for one estimator variant
    """
    variant: str
    overall: ErrorStatistics
    nearby: ErrorStatistics
    max_distance: float
    mean_ms_per_frame: float
    elapsed_ms: float
    total_frames: int


class EvaluationPipeline:
    """
    Runs every configured estimator over a track store and scores it.
    """

    def __init__(self, config: Optional[Union[str, Path, Dict[str, Any]]] = None):
        """
        Initialize the pipeline from configuration.

        Args:
            config: Configuration file path or dictionary (defaults when None)
        """
        if config is None:
            self.config = copy.deepcopy(DEFAULT_CONFIG)
        elif isinstance(config, (str, Path)):
            self.config = self.merge_with_defaults(self.load_config(config))
        else:
            self.config = self.merge_with_defaults(config)

        self._setup_logging()
        self.logger = logging.getLogger(__name__)

        self.sensor_model = SensorResolutionModel(**self.config['sensor'])
        self.classifier = BadFrameClassifier(**self.config['classifier'])
        self.max_distance = float(self.config['evaluation']['max_distance'])
        self.variants = variants_from_config(self.config['estimators'])

    @staticmethod
    def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from file"""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        with open(config_file, 'r') as f:
            if config_file.suffix.lower() == '.json':
                config = json.load(f)
            elif config_file.suffix.lower() in ['.yml', '.yaml']:
                import yaml
                config = yaml.safe_load(f)
            else:
                raise ValueError(f"Unsupported config format: {config_file.suffix}")

        if not isinstance(config, dict):
            raise ValueError(f"Configuration must be a mapping: {config_file}")

        # Validate required sections
        required_sections = ['estimators']
        for section in required_sections:
            if section not in config:
                raise ValueError(f"Missing required config section: {section}")

        return config

    @staticmethod
    def merge_with_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
        """Fill sections and keys missing from config with the defaults"""
        merged = copy.deepcopy(DEFAULT_CONFIG)

        for section, values in config.items():
            if not isinstance(values, dict):
                raise ValueError(f"Config section '{section}' must be a mapping, got {type(values).__name__}")
            if section == 'estimators':
                # Estimator lists replace the defaults wholesale
                merged[section] = copy.deepcopy(values)
            else:
                merged.setdefault(section, {}).update(values)

        return merged

    def _setup_logging(self):
        """Setup logging configuration"""
        log_config = self.config.get('logging', {})

        level = getattr(logging, log_config.get('level', 'INFO').upper())
        format_str = log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')

        logging.basicConfig(level=level, format=format_str)

    def select_variants(self, names: Optional[Sequence[str]] = None) -> List[EstimatorVariant]:
        """
        Pick the variants to run

        Args:
            names: Variant names to run, in order; all enabled variants when None

        Returns:
            List of EstimatorVariant
        """
        if not names:
            return [variant for variant in self.variants if variant.enabled]

        by_name = {variant.name: variant for variant in self.variants}
        unknown = [name for name in names if name not in by_name]
        if unknown:
            raise ValueError(
                f"Unknown estimator(s): {', '.join(unknown)}. "
                f"Available: {', '.join(by_name)}"
            )

        return [by_name[name] for name in names]

    def track_and_evaluate(self,
                           estimator: VelocityEstimator,
                           track_store: TrackStore,
                           ground_truth: GroundTruthProvider,
                           variant_name: str = "estimator",
                           distance_filter: Optional[np.ndarray] = None) -> VariantReport:
        """
        Track all objects with one estimator and evaluate the accuracy.

        Args:
            estimator: Estimator under evaluation
            track_store: Recorded tracks
            ground_truth: Provider of ground-truth speeds
            variant_name: Name used in the report
            distance_filter: Prebuilt nearby-object mask (built when None)

        Returns:
            VariantReport for the estimator
        """
        # Track all objects and store the estimated velocities
        harness = TrackingHarness(estimator, self.sensor_model)
        run = harness.track(track_store)

        print(f"Total time for tracking {len(track_store)} objects: {run.elapsed_ms:.6f} ms")
        print(f"Mean runtime per frame: {run.mean_ms_per_frame:.6f} ms")

        # Find bad frames that we want to ignore
        self.classifier.find_bad_frames(track_store.tracks, run.results)

        evaluator = Evaluator(ground_truth)

        overall = evaluator.evaluate(run.results)
        print(f"RMS error: {overall.rms_error:.6f} m/s")

        # Evaluate the tracking accuracy for nearby objects
        print(f"Evaluating only for objects within {self.max_distance:.6f} m:")
        if distance_filter is None:
            distance_filter = build_distance_filter(track_store, self.max_distance)
        nearby = evaluator.evaluate(run.results, distance_filter)
        print(f"RMS error: {nearby.rms_error:.6f} m/s")

        return VariantReport(
            variant=variant_name,
            overall=overall,
            nearby=nearby,
            max_distance=self.max_distance,
            mean_ms_per_frame=run.mean_ms_per_frame,
            elapsed_ms=run.elapsed_ms,
            total_frames=run.total_frames
        )

    def run(self,
            track_store_path: Union[str, Path],
            gt_folder: Union[str, Path],
            variant_names: Optional[Sequence[str]] = None) -> List[VariantReport]:
        """
        Main evaluation loop over all selected estimator variants.

        Args:
            track_store_path: Path to the recorded track store
            gt_folder: Folder holding one ground-truth file per track
            variant_names: Variants to run (all enabled variants when None)

        Returns:
            One VariantReport per variant that could be loaded
        """
        variants = self.select_variants(variant_names)

        print(f"Loading file: {track_store_path}")
        track_store = TrackStore.from_file(track_store_path)
        print(f"Found {len(track_store)} tracks")

        ground_truth = GroundTruthProvider(gt_folder, **self.config['ground_truth'])
        distance_filter = build_distance_filter(track_store, self.max_distance)

        print("Tracking objects - please wait...\n")

        reports = []
        for i, variant in enumerate(variants):
            if i > 0:
                print()
            print(variant.description or f"Tracking objects with {variant.name}. Please wait...")

            try:
                estimator = EstimatorFactory.create_estimator(variant)
            except (ImportError, TypeError) as e:
                self.logger.error(
                    f"Skipping estimator '{variant.name}': {e}. "
                    f"Point estimators.{variant.name}.factory at an installed estimator plugin."
                )
                continue

            reports.append(self.track_and_evaluate(
                estimator, track_store, ground_truth,
                variant_name=variant.name, distance_filter=distance_filter
            ))

        return reports


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line interface for estimator evaluation"""
    parser = argparse.ArgumentParser(
        description='Evaluate lidar velocity estimators against ground truth',
        epilog=PLUGIN_NOTE
    )
    parser.add_argument('track_store', help='Path to the recorded track store')
    parser.add_argument('gt_folder', help='Folder with one ground-truth file per track')
    parser.add_argument('--config', help='Path to config file (JSON or YAML)')
    parser.add_argument('--estimator', action='append', dest='estimators',
                        help='Estimator variant to run (repeatable, default: all enabled)')
    parser.add_argument('--max-distance', type=float, help='Distance for the nearby-object evaluation (m)')
    parser.add_argument('--log-level', help='Logging level (DEBUG, INFO, WARNING, ...)')

    args = parser.parse_args(argv)

    try:
        if args.config:
            pipeline_config: Dict[str, Any] = EvaluationPipeline.merge_with_defaults(
                EvaluationPipeline.load_config(args.config)
            )
        else:
            pipeline_config = copy.deepcopy(DEFAULT_CONFIG)

        if args.max_distance is not None:
            pipeline_config['evaluation']['max_distance'] = args.max_distance
        if args.log_level:
            pipeline_config['logging']['level'] = args.log_level

        pipeline = EvaluationPipeline(pipeline_config)
        reports = pipeline.run(args.track_store, args.gt_folder, args.estimators)

        if not reports:
            print("No estimator could be evaluated!")
            print(PLUGIN_NOTE)
            return 1

    except KeyboardInterrupt:
        print("\nEvaluation interrupted by user")
        return 0
    except FileNotFoundError as e:
        print(e)
        return 1
    except Exception as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
