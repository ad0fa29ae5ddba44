#!/usr/bin/env python3
# scripts/run_quality_scores.py
"""
Standalone script to compute weighted quality-assessment scores.
Scores the Methods, Reporting and Total item scopes and exports tables and charts.
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path to import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.tasks.quality_scores import QualityScorePipeline, QualityScoreError, load_config


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    # matplotlib is chatty at DEBUG
    logging.getLogger('matplotlib').setLevel(logging.WARNING)


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description="Compute weighted quality scores per study and export report tables and charts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default settings from configs/quality_scores.yaml (bundled example sheet)
  python scripts/run_quality_scores.py

  # Score another copy of the workbook
  python scripts/run_quality_scores.py --input data/quality_assessment.xlsx

  # Tables only, custom output directory
  python scripts/run_quality_scores.py --output-dir my_results --no-plots

  # Verbose logging
  python scripts/run_quality_scores.py --verbose
        """
    )

    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="Path to the assessment workbook (.xlsx or .csv); overrides the config"
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Base output directory (default from config: results)"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (default: configs/quality_scores.yaml if present)"
    )

    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip chart generation"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)

    pipeline = QualityScorePipeline(config)

    try:
        result = pipeline.run(
            input_path=args.input,
            output_dir=args.output_dir,
            make_plots=False if args.no_plots else None
        )
    except (FileNotFoundError, QualityScoreError) as e:
        logger.error(f"Could not load input: {e}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("QUALITY SCORE SUMMARY")
    print("=" * 60)
    for scope, summaries in result.summaries.items():
        mean_pct = sum(s.percent_missing_excluded for s in summaries) / len(summaries)
        print(f"{scope.value:<10} {len(summaries)} studies, max score {summaries[0].max_score:.2f}, "
              f"mean % (NA excluded) {mean_pct:.2f}")
    for scope, error in result.errors.items():
        print(f"{scope.value:<10} FAILED: {error}")
    print(f"\nResults saved to: {result.results_dir}")

    if not result.succeeded:
        sys.exit(1)


if __name__ == "__main__":
    main()
