"""Empirical checks of sampler behaviour.

These helpers repeat seeded sampling runs over records held in memory and
summarise how often each record was selected. They depend only on ``numpy``
and ``scipy``; :func:`frequency_table` additionally needs ``pandas``.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
from scipy.stats import chisquare

from wsample.pipeline import sample_records
from wsample.records import Record


def selection_counts(
    records: Sequence[Record],
    sample_count: int,
    n_trials: int,
    seed: int | None = None,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> dict[str, int]:
    """Count how many of *n_trials* independent runs selected each id.

    All trials share one generator seeded with *seed*, so the whole batch is
    reproducible. Ids never selected are reported with a count of 0.
    """
    if n_trials <= 0:
        raise ValueError("n_trials must be positive")
    rng = np.random.default_rng(seed)
    include = frozenset(include)
    exclude = frozenset(exclude)
    counts: Counter[str] = Counter({r.id: 0 for r in records})
    for _ in range(n_trials):
        chosen = sample_records(records, sample_count, include=include, exclude=exclude, rng=rng)
        counts.update({r.id for r in chosen})
    return dict(counts)


def estimate_inclusion_frequencies(
    records: Sequence[Record],
    sample_count: int,
    n_trials: int,
    seed: int | None = None,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> dict[str, float]:
    """Return the observed selection frequency of each id over *n_trials* runs."""
    counts = selection_counts(records, sample_count, n_trials, seed, include, exclude)
    return {rid: count / n_trials for rid, count in counts.items()}


def uniformity_pvalue(counts: Mapping[str, int] | Sequence[int], n_trials: int, sample_count: int) -> float:
    """Chi-square p-value of per-record selection counts against ``k / n`` inclusion.

    Under equal weights every record is selected with probability
    ``min(k, n) / n``; a small p-value means the counts are unlikely under
    that hypothesis.

    Args:
        counts: Per-record selection counts (mapping or sequence).
        n_trials: Number of runs the counts were accumulated over.
        sample_count: Sample size ``k`` used in each run.
    """
    observed = np.asarray(
        list(counts.values()) if isinstance(counts, Mapping) else list(counts), dtype=np.float64
    )
    n = observed.size
    if n < 2:
        return 1.0
    expected = np.full(n, n_trials * min(sample_count, n) / n, dtype=np.float64)
    return float(chisquare(observed, expected).pvalue)


def frequency_table(
    frequencies: Mapping[str, float],
    weights: Mapping[str, float] | None = None,
) -> Any:
    """Tabulate observed frequencies, optionally next to normalised weights.

    Requires ``pandas`` (install ``wsample[analysis]``).

    Returns:
        ``pandas.DataFrame`` with columns ``id`` and ``frequency`` (plus
        ``weight`` and ``weight_share`` when *weights* are given), sorted by
        descending frequency.
    """
    try:
        import pandas as pd
    except ImportError as exc:  # pragma: no cover
        raise ImportError(
            "frequency_table requires pandas. Install it with: pip install pandas"
        ) from exc

    df = pd.DataFrame({"id": list(frequencies), "frequency": list(frequencies.values())})
    if weights is not None:
        df["weight"] = df["id"].map(weights).astype(float)
        total = float(df["weight"].sum())
        df["weight_share"] = df["weight"] / total if total > 0 else 0.0
    return df.sort_values(by="frequency", ascending=False, kind="stable").reset_index(drop=True)
