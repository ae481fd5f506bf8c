"""
Command-line entry point: run the register analysis from a configuration file.
"""

import argparse
import logging
import sys
from pathlib import Path

from .analysis.register_analysis import run_register_analysis
from .config_loader import load_config
from .exceptions import RegisterGMAError

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="register-gma",
        description="Geometric multivariate analysis of register variation",
    )
    parser.add_argument("config", type=Path, help="YAML or JSON analysis configuration")
    parser.add_argument("-o", "--output-dir", type=Path, default=None,
                        help="Override the configured output directory")
    parser.add_argument("--no-figures", action="store_true", help="Skip figure rendering")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    output = config.output
    if args.output_dir is not None:
        output = output._replace(output_dir=args.output_dir)
    if args.no_figures:
        output = output._replace(render_figures=False)
    config = config._replace(output=output)

    try:
        result = run_register_analysis(config)
    except RegisterGMAError as e:
        logger.error(f"Analysis aborted: {e}")
        return 1

    logger.info(f"Analysed {len(result.bundle.corpus)} documents; results in {output.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
