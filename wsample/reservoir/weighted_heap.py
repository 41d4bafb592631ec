"""Weighted reservoir sampling without replacement (Efraimidis-Spirakis A-Res).

Each offered record gets a random key ``u ** (1 / weight)`` with
``u ~ Uniform(0, 1]``; the ``k`` records with the largest keys form a weighted
sample without replacement. Keys are kept as ``log(weight) - log(-log(u))``,
which orders identically and stays finite for tiny and huge weights alike. A record
of weight 0 gets key ``-inf`` and can only be retained while the reservoir
has free slots.

The reservoir is a bounded binary min-heap stored in a plain list (``heapq``),
so the weakest retained key is always at index 0.
"""

from __future__ import annotations

import heapq
import logging
import math
from typing import Any

import numpy as np

from wsample.errors import InvalidSampleCount
from wsample.records import Record
from wsample.reservoir.base import ReservoirSampler, SampledEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLE_COUNT = 10_000_000
DEFAULT_DRAW_BLOCK = 4096


def check_sample_count(sample_count: Any, max_sample_count: int = DEFAULT_MAX_SAMPLE_COUNT) -> int:
    """Validate a requested sample size and return it as ``int``.

    Raises:
        InvalidSampleCount: If *sample_count* is missing, not an integer,
            ``<= 0`` or larger than *max_sample_count*.
    """
    if sample_count is None:
        raise InvalidSampleCount("a sample count is required")
    if isinstance(sample_count, bool) or not isinstance(sample_count, (int, np.integer)):
        raise InvalidSampleCount(f"sample count must be an integer, got {sample_count!r}")
    if sample_count <= 0:
        raise InvalidSampleCount(f"sample count must be positive, got {sample_count}")
    if sample_count > max_sample_count:
        raise InvalidSampleCount(
            f"sample count {sample_count} exceeds the maximum of {max_sample_count}"
        )
    return int(sample_count)


def sampling_key(weight: float, u: float) -> float:
    """Return the A-Res key for *weight* given a uniform draw *u* in (0, 1].

    The key is ``log(weight) - log(-log(u))``, a monotone transform of
    ``u ** (1 / weight)`` that stays finite for every finite positive weight,
    subnormal ones included.

    Examples:
        >>> sampling_key(0.0, 0.5)
        -inf
        >>> sampling_key(1.0, 1.0)
        inf
    """
    if weight == 0.0:
        return -math.inf
    if u == 1.0:
        return math.inf
    return math.log(weight) - math.log(-math.log(u))


class WeightedHeapSampler(ReservoirSampler):
    """Single-pass weighted sampler keeping the ``sample_count`` largest keys.

    Memory is O(k) regardless of stream length and each offer costs
    O(log k).

    Attributes:
        sample_count: Reservoir capacity ``k``.
        n_seen: Number of records offered so far.
        n_evicted: Number of retained records later displaced by a larger key.
    """

    def __init__(
        self,
        sample_count: int,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        max_sample_count: int = DEFAULT_MAX_SAMPLE_COUNT,
        draw_block: int = DEFAULT_DRAW_BLOCK,
    ) -> None:
        """Initialize the sampler.

        Args:
            sample_count: Number of records to retain.
            rng: Random generator to draw from. Takes precedence over *seed*.
            seed: Seed for a fresh ``numpy`` generator when *rng* is omitted.
            max_sample_count: Upper bound accepted for *sample_count*.
            draw_block: Number of uniforms fetched from the generator at a time.
                Draws are consumed strictly in arrival order, so a fixed seed
                gives the same keys whatever the block size.

        Raises:
            InvalidSampleCount: If *sample_count* is out of range.
        """
        self.sample_count = check_sample_count(sample_count, max_sample_count)
        if draw_block <= 0:
            raise ValueError("draw_block must be positive")
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._draw_block = draw_block
        self._uniforms = np.empty(0, dtype=np.float64)
        self._cursor = 0
        self._heap: list[tuple[float, int, Record]] = []
        self.n_seen = 0
        self.n_evicted = 0

    def _next_uniform(self) -> float:
        """Return the next draw from Uniform(0, 1]."""
        if self._cursor >= self._uniforms.shape[0]:
            # Generator.random is [0, 1); flip it so log(u) stays finite.
            self._uniforms = 1.0 - self._rng.random(self._draw_block)
            self._cursor = 0
        u = float(self._uniforms[self._cursor])
        self._cursor += 1
        return u

    def offer(self, record: Record) -> bool:
        """Consider *record* for the sample.

        Returns:
            ``True`` if the record is now in the reservoir.
        """
        key = sampling_key(record.weight, self._next_uniform())
        entry = (key, self.n_seen, record)
        self.n_seen += 1

        if len(self._heap) < self.sample_count:
            heapq.heappush(self._heap, entry)
            logger.debug("pushing %s (key=%r)", record.id, key)
            return True
        if key > self._heap[0][0]:
            evicted = heapq.heapreplace(self._heap, entry)
            self.n_evicted += 1
            logger.debug("pushing %s (key=%r), removing %s", record.id, key, evicted[2].id)
            return True
        return False

    @property
    def min_key(self) -> float | None:
        """Smallest key currently retained, ``None`` while empty."""
        return self._heap[0][0] if self._heap else None

    def entries(self) -> list[SampledEntry]:
        """Return retained records by descending key (earlier arrival first on ties)."""
        ranked = sorted(self._heap, key=lambda e: (-e[0], e[1]))
        return [SampledEntry(key=k, sequence=s, record=r) for k, s, r in ranked]

    def __len__(self) -> int:
        return len(self._heap)
