#!/usr/bin/env python
"""
Weighted random sampling of lines from a delimited file.

Selects SAMPLE_COUNT records without replacement, each with probability
proportional to the value in its weight column. Records can be forced in or
out by identifier. The header (if any) and the selected lines are written to
stdout unchanged.

Usage:
    wsample data.tsv -n 100
    wsample data.tsv -n 100 --weights score --id-col name --include a b --exclude c
    wsample data.csv -n 10 -d auto --seed 7 --config sample.yaml

Exit codes: 0 success, 2 usage error, 3 I/O error, 4 parse error,
5 invalid sample count, 6 configuration error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Sequence

from dotenv import load_dotenv

from wsample.config import INVALID_WEIGHT_CHOICES, ORDER_CHOICES, load_config
from wsample.errors import SamplingError
from wsample.pipeline import SamplingRun, write_sample

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("wsample")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wsample",
        description="Command line tool for weighted random sampling of delimited lines",
    )
    parser.add_argument("file", nargs="?", default=None, help="Input file")
    parser.add_argument("-f", "--file", dest="file_opt", default=None, help="Input file")
    parser.add_argument(
        "-n", "-s", "--sample-count", type=int, default=None,
        help="The number of samples we'd like to get",
    )
    parser.add_argument("-w", "--weights", default=None, help="The column with the weights")
    parser.add_argument(
        "--id-col", default=None, help="Id column, by name or 0-based index (default: first)"
    )
    parser.add_argument(
        "--include", nargs="+", action="extend", default=None,
        help="Include these rows - named by the id column",
    )
    parser.add_argument(
        "--exclude", nargs="+", action="extend", default=None,
        help="Exclude these rows - named by the id column",
    )
    parser.add_argument("--include-file", default=None, help="File with one id to include per line")
    parser.add_argument("--exclude-file", default=None, help="File with one id to exclude per line")
    parser.add_argument(
        "-d", "--delimiter", default=None,
        help="Field delimiter: tab (default), comma, auto, or a single character",
    )
    parser.add_argument(
        "--no-header", dest="has_header", action="store_const", const=False, default=None,
        help="The input has no header row",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--order", choices=ORDER_CHOICES, default=None)
    parser.add_argument("--invalid-weight", choices=INVALID_WEIGHT_CHOICES, default=None)
    parser.add_argument("--max-sample-count", type=int, default=None)
    parser.add_argument("--config", default=None, help="YAML config file; flags override it")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-level", default=None)
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Config values given explicitly on the command line."""
    values = {
        "file": args.file_opt or args.file,
        "sample_count": args.sample_count,
        "weights": args.weights,
        "id_col": args.id_col,
        "include": args.include,
        "exclude": args.exclude,
        "include_file": args.include_file,
        "exclude_file": args.exclude_file,
        "delimiter": args.delimiter,
        "has_header": args.has_header,
        "seed": args.seed,
        "order": args.order,
        "invalid_weight": args.invalid_weight,
        "max_sample_count": args.max_sample_count,
        "log_level": "DEBUG" if args.verbose else args.log_level,
    }
    return {k: v for k, v in values.items() if v is not None}


def _setup_logging(level_name: str | None) -> None:
    level = logging.getLevelName((level_name or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logger.setLevel(level)


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.file and args.file_opt:
        parser.error("give the input file either positionally or with --file, not both")

    try:
        config = load_config(args.config, overrides=_overrides(args))
        _setup_logging(config.log_level)
        logger.debug("%s", args)
        result = SamplingRun(config).run()
        write_sample(result, sys.stdout)
    except SamplingError as exc:
        logger.debug("Aborting", exc_info=True)
        print(f"Error processing data: {exc}", file=sys.stderr)
        return exc.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
