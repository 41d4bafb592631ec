"""Merge forced records with the sampler output into the final selection."""

from __future__ import annotations

import logging
from typing import Sequence

from wsample.records import Record
from wsample.reservoir.base import SampledEntry

logger = logging.getLogger(__name__)


def assemble_sample(
    forced: Sequence[Record],
    sampled: Sequence[SampledEntry],
    sample_count: int,
    order: str = "input",
) -> list[Record]:
    """Combine forced and sampled records into at most ``sample_count`` records.

    Forced records take precedence over sampled ones. When there are more
    forced records than *sample_count*, the first *sample_count* in order of
    appearance are kept and the rest are dropped with a warning. The sampled
    portion is cut to the remaining room by discarding the lowest keys first.
    Forced and sampled ids cannot overlap because forced records never reach
    the sampler.

    Args:
        forced: Forced records in order of first appearance.
        sampled: Reservoir entries in any order.
        sample_count: Requested sample size.
        order: Ordering of the sampled portion: ``"input"`` (file order) or
            ``"key"`` (descending key).

    Returns:
        Forced records followed by the retained sampled records. Fewer than
        *sample_count* records is a valid result.
    """
    if order not in ("input", "key"):
        raise ValueError(f"Unknown order: {order!r}")
    kept = list(forced[:sample_count])
    dropped = forced[sample_count:]
    if dropped:
        logger.warning(
            "%d forced record(s) exceed the sample count of %d; dropping: %s",
            len(dropped),
            sample_count,
            ", ".join(r.id for r in dropped),
        )
    room = sample_count - len(kept)
    ranked = sorted(sampled, key=lambda e: (-e.key, e.sequence))[:room]
    if order == "input":
        ranked.sort(key=lambda e: e.sequence)
    return kept + [entry.record for entry in ranked]
