#!/usr/bin/env python3
"""
Batch runner for the surveillance pipelines.

Usage:
    python run_pipeline.py mutations                 # mutation surveillance report
    python run_pipeline.py reproduction              # reproduction number estimate
    python run_pipeline.py reproduction --config my_config.yaml
"""

import argparse
import logging
import sys

from api.exceptions import PipelineError
from pipelines import latest_estimate, run_mutation_report, run_reproduction_estimate
from utils.config import get_app_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the COVID-19 surveillance pipelines and write figures and tables.",
    )
    parser.add_argument(
        "pipeline",
        choices=["mutations", "reproduction"],
        help="Pipeline to run",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: the bundled utils/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        config = get_app_config(args.config)
        if args.pipeline == "mutations":
            report = run_mutation_report(config, config_path=args.config)
            summary = report.summary
            print(f"Genomes: {summary.n_genomes}")
            print(f"Mutations: {summary.n_mutations} at {summary.n_sites} sites "
                  f"({summary.n_synonymous_sites} S / {summary.n_nonsynonymous_sites} N)")
            print(f"Lineages: {summary.n_lineages}")
            written = list(report.figures.values())
        else:
            report = run_reproduction_estimate(config)
            latest = latest_estimate(report)
            print(f"Archive: {report.link.url} ({report.link.archive_date.isoformat()})")
            if latest:
                print(f"R on {latest['date'].isoformat()}: {latest['R']:.2f} "
                      f"({latest['lower']:.2f} - {latest['upper']:.2f})")
            written = [report.table_path] + list(report.figures.values())
    except (PipelineError, FileNotFoundError) as e:
        logger.error(f"Pipeline failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for path in written:
        print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
