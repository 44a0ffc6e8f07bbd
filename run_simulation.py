"""
Main entry point for running alpha simulations.

Pipeline:
1. Load run configuration (YAML)
2. DataRegistry - open the parquet dataset cache
3. Alphas - parse options, load signal scripts
4. Simulation - step every alpha through the calendar
5. Reports - <store_path>/<alpha>/perf.csv and summary.json
"""

import sys
import argparse
from pathlib import Path
import logging

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

sys.path.insert(0, str(Path(__file__).parent / "src"))

from alphasim import DataRegistry, Simulation, load_settings
from alphasim.config import DEFAULT_CONFIG_PATH


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run alpha signal simulations")
    parser.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Run configuration YAML. Default: {DEFAULT_CONFIG_PATH}"
    )
    parser.add_argument(
        "--alpha",
        action="append",
        default=None,
        help="Only run this alpha (repeatable). Default: every alpha in the config."
    )
    parser.add_argument(
        "--cache-path",
        type=str,
        default=None,
        help="Override data.cache_path"
    )
    parser.add_argument(
        "--store-path",
        type=str,
        default=None,
        help="Override data.store_path"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Override simulation.workers"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Run the configured simulations."""
    args = parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    logger.info("=" * 80)
    logger.info("ALPHA-SIM: Alpha Simulation")
    logger.info("=" * 80)

    dr = None
    try:
        settings = load_settings(args.config)
        if args.alpha:
            settings = settings.select(args.alpha)
        if args.cache_path:
            settings.cache_path = Path(args.cache_path)
        if args.store_path:
            settings.store_path = Path(args.store_path)
        if args.workers is not None:
            if args.workers < 1:
                raise ValueError(f"workers must be >= 1, got {args.workers}")
            settings.workers = args.workers

        dr = DataRegistry(settings.cache_path)
        dr.initialize()
        sim = Simulation.from_settings(settings, dr)
    except Exception as e:
        logger.critical(f"Fatal: {e}", exc_info=True)
        if dr is not None:
            dr.close()
        return 1

    try:
        reports = sim.run()
    finally:
        dr.close()

    logger.info(f"Completed {len(reports)} alpha(s)")
    if settings.store_path is not None:
        logger.info(f"Reports saved under {settings.store_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
