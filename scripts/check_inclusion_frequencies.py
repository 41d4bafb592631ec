#!/usr/bin/env python
"""
Estimate how often each record of a file is selected by the weighted sampler.

Runs the sampler N_TRIALS times over the file (held in memory) and prints the
observed inclusion frequency of every id next to its share of the total
weight. With --uniform, also reports a chi-square p-value against equal
inclusion probability k/n.

Usage:
    python scripts/check_inclusion_frequencies.py data.tsv -n 5 --weights score
    python scripts/check_inclusion_frequencies.py data.tsv -n 5 --trials 5000 --uniform
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from wsample.evaluation import frequency_table, selection_counts, uniformity_pvalue
from wsample.records import RecordSource, resolve_delimiter

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Empirical inclusion frequencies per record")
    parser.add_argument("file", type=str)
    parser.add_argument("-n", "--sample-count", type=int, required=True)
    parser.add_argument("-w", "--weights", type=str, default=None)
    parser.add_argument("--id-col", type=str, default=None)
    parser.add_argument("-d", "--delimiter", type=str, default="tab")
    parser.add_argument("--no-header", action="store_true")
    parser.add_argument("--trials", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--uniform", action="store_true")
    args = parser.parse_args()

    source = RecordSource(
        args.file,
        delimiter=resolve_delimiter(args.delimiter, args.file),
        id_col=args.id_col,
        weight_col=args.weights,
        has_header=not args.no_header,
    )
    records = list(source)
    logger.info("Loaded %d records from %s", len(records), args.file)

    counts = selection_counts(records, args.sample_count, args.trials, seed=args.seed)
    frequencies = {rid: c / args.trials for rid, c in counts.items()}
    weights: dict[str, float] = {}
    for r in records:
        weights[r.id] = weights.get(r.id, 0.0) + r.weight

    table = frequency_table(frequencies, weights)
    print(table.to_string(index=False))

    if args.uniform:
        p = uniformity_pvalue(counts, args.trials, args.sample_count)
        logger.info("Chi-square p-value against uniform inclusion: %.4f", p)


if __name__ == "__main__":
    main()
