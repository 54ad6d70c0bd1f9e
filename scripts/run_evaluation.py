#!/usr/bin/env python3
"""
Example script for evaluating lidar velocity estimators.
"""

import sys
import argparse
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

try:
    from pipeline.evaluation_pipeline import EvaluationPipeline, DEFAULT_CONFIG, PLUGIN_NOTE
    IMPORTS_AVAILABLE = True
except ImportError as e:
    IMPORTS_AVAILABLE = False
    print(f"Error importing components: {e}")
    print("Please install required dependencies from requirements.txt")


def main():
    """Main function for running the evaluation"""
    if not IMPORTS_AVAILABLE:
        print("Components not available. Please check installation.")
        return 1

    parser = argparse.ArgumentParser(
        description="Evaluate lidar velocity estimators against ground truth",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Evaluate every configured estimator
  python scripts/run_evaluation.py tracks.json gt/

  # Evaluate only the precision tracker with a custom config
  python scripts/run_evaluation.py tracks.json gt/ --config configs/default_config.json --estimator precision

Estimators:
  Each estimators.<name>.factory in the config is a "module:callable" import
  path of an installed estimator plugin. The default configuration names the
  precision tracker bindings (precision_tracking.tracker:create_tracker), which
  are not part of this package and must be installed or replaced.
        """
    )

    parser.add_argument('tm_file', help='Path to the recorded track store')
    parser.add_argument('gt_folder', help='Folder with one ground-truth file per track')

    parser.add_argument(
        '--config',
        help='Configuration file path (default: built-in configuration)'
    )

    parser.add_argument(
        '--estimator',
        action='append',
        help='Estimator variant to evaluate; repeat for several (default: all enabled)'
    )

    args = parser.parse_args()

    try:
        if args.config:
            config_path = Path(args.config)
            if not config_path.exists():
                print(f"Error: Configuration file not found: {config_path}")
                return 1
            pipeline = EvaluationPipeline(config_path)
        else:
            pipeline = EvaluationPipeline(DEFAULT_CONFIG)

        reports = pipeline.run(args.tm_file, args.gt_folder, args.estimator)

        if not reports:
            print("No estimator could be evaluated!")
            print(PLUGIN_NOTE)
            return 1

        print("\n" + "=" * 50)
        print("EVALUATION SUMMARY")
        print("=" * 50)
        for report in reports:
            print(f"{report.variant:<16} RMS {report.overall.rms_error:.4f} m/s | "
                  f"within {report.max_distance:g} m {report.nearby.rms_error:.4f} m/s | "
                  f"{report.mean_ms_per_frame:.2f} ms/frame")

    except KeyboardInterrupt:
        print("\nEvaluation interrupted by user")
        return 0
    except FileNotFoundError as e:
        print(e)
        return 1
    except Exception as e:
        print(f"Error during evaluation: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
