#!/usr/bin/env python3
"""
Main script for running the glacier melt pipeline.

Estimates monthly glacier melt from climate station temperatures and compares
it with observed discharge.
"""

import argparse
import logging
import sys

from glacier_melt import MeltConfig, MeltPipeline
from glacier_melt.logging_utils import setup_logging

# Under the package logger so setup_logging's handlers apply
logger = logging.getLogger('glacier_melt.cli')


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Estimate glacier melt with a degree-day model and compare it with discharge',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --config config.yaml              # Run with a configuration file
  %(prog)s --config config.yaml --ddf 6.5    # Override the degree-day factor
  %(prog)s --config config.yaml --no-plots   # Tables and report only
        """
    )
    parser.add_argument('--config', type=str,
                        help='Path to YAML configuration file (default: config.yaml in project root)')
    parser.add_argument('--ddf', type=float,
                        help='Degree-day factor in mm w.e. per °C per day (default: 5.0)')
    parser.add_argument('--output-dir', type=str,
                        help='Output directory for tables, report and plots')
    parser.add_argument('--no-plots', action='store_true',
                        help='Skip rendering charts')
    parser.add_argument('--strict', action='store_true',
                        help='Fail when the correlation cannot be computed')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the glacier melt pipeline."""
    args = parse_arguments(argv)

    config_overrides = {}
    if args.ddf is not None:
        config_overrides['degree_day_factor'] = args.ddf
    if args.output_dir:
        config_overrides['output_dir'] = args.output_dir
    if args.no_plots:
        config_overrides['make_plots'] = False

    try:
        config = MeltConfig(args.config, config_overrides)
        setup_logging(config, verbose=args.verbose)
        logger.info("=== Glacier Melt Pipeline Starting ===")
        logger.info(f"Configuration: {config}")

        result = MeltPipeline(config).run(strict=args.strict)

        if result.has_correlation:
            logger.info(f"Monthly melt/discharge correlation: {result.correlation:.4f}")
        else:
            logger.warning("Monthly melt/discharge correlation: insufficient data")
        for kind, path in result.outputs.items():
            logger.info(f"  {kind}: {path}")
        logger.info("=== Processing completed successfully ===")

    except KeyboardInterrupt:
        logger.info("Processing interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Glacier melt pipeline failed: {e}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
