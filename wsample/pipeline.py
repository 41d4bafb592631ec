"""Sampling run driver: SamplingRun plus functional helpers.

The primary API is :class:`SamplingRun`: build it from a
:class:`~wsample.config.SampleConfig`, call :meth:`SamplingRun.run` to read
the input once and get a :class:`SampleResult`, then
:func:`write_sample` to emit it.

:func:`sample_records` runs the same filter, sampler and assembler over
records already in memory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, TextIO

import numpy as np

from wsample.assembly import assemble_sample
from wsample.config import SampleConfig
from wsample.filtering import FilterStage
from wsample.records import Record, RecordSource, load_id_list, resolve_delimiter
from wsample.reservoir.weighted_heap import DEFAULT_MAX_SAMPLE_COUNT, WeightedHeapSampler

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class SampleResult:
    """Outcome of one sampling run.

    Attributes:
        records: Selected records, forced ones first.
        header: Header line to echo before the records, if the input had one.
        seed: Seed the random generator was created from.
        n_read: Records read from the input.
        n_excluded: Records dropped by id.
        n_forced: Distinct forced records.
        n_offered: Records offered to the sampler.
        n_skipped: Records skipped for an invalid weight.
        missing_includes: Included ids never found in the input.
    """

    records: list[Record]
    header: str | None = None
    seed: int | None = None
    n_read: int = 0
    n_excluded: int = 0
    n_forced: int = 0
    n_offered: int = 0
    n_skipped: int = 0
    missing_includes: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _new_seed() -> int:
    """Draw a fresh seed from OS entropy."""
    return int(np.random.SeedSequence().entropy)


def _select(
    records: Iterable[Record],
    filter_stage: FilterStage,
    sampler: WeightedHeapSampler,
    order: str,
) -> list[Record]:
    """Route *records*, feed the sampler and assemble the selection."""
    sampler.extend(filter_stage.apply(records))
    return assemble_sample(
        filter_stage.forced, sampler.entries(), sampler.sample_count, order=order
    )


# ---------------------------------------------------------------------------
# SamplingRun
# ---------------------------------------------------------------------------


class SamplingRun:
    """One pass of weighted sampling over a delimited file.

    Attributes:
        config: Validated run configuration.
        seed: Seed of the run's generator.
    """

    def __init__(self, config: SampleConfig, rng: np.random.Generator | None = None) -> None:
        """Validate *config* and set up the random generator.

        Args:
            config: Run configuration. Validated here, before any file is read.
            rng: Generator to use instead of one seeded from ``config.seed``.

        Raises:
            InvalidSampleCount: If the sample count is out of range.
            ConfigError: If another option is invalid.
        """
        self.config = config.validate()
        if rng is not None:
            self.seed = config.seed
            self._rng = rng
        else:
            self.seed = config.seed if config.seed is not None else _new_seed()
            self._rng = np.random.default_rng(self.seed)
        if config.seed is None and rng is None:
            logger.info("No seed given; using %d", self.seed)

    def _ids(self, inline: list[str], path: str | None) -> list[str]:
        ids = list(inline)
        if path:
            ids.extend(load_id_list(path))
        return ids

    def run(self) -> SampleResult:
        """Read the input once and return the selection."""
        cfg = self.config
        filter_stage = FilterStage(
            include=self._ids(cfg.include, cfg.include_file),
            exclude=self._ids(cfg.exclude, cfg.exclude_file),
        )
        source = RecordSource(
            cfg.file,
            delimiter=resolve_delimiter(cfg.delimiter, cfg.file),
            id_col=cfg.id_col,
            weight_col=cfg.weights,
            has_header=cfg.has_header,
            exempt_ids=filter_stage.exempt_ids,
            invalid_weight=cfg.invalid_weight,
        )
        sampler = WeightedHeapSampler(
            cfg.sample_count, rng=self._rng, max_sample_count=cfg.max_sample_count
        )
        logger.debug("%s", cfg)

        selected = _select(source, filter_stage, sampler, cfg.order)

        missing = filter_stage.missing_includes()
        if missing:
            logger.warning(
                "%d included id(s) not found in %s: %s", len(missing), cfg.file, ", ".join(missing)
            )
        result = SampleResult(
            records=selected,
            header=source.header,
            seed=self.seed,
            n_read=sum(filter_stage.counts.values()),
            n_excluded=filter_stage.counts["excluded"],
            n_forced=len(filter_stage.forced),
            n_offered=sampler.n_seen,
            n_skipped=source.n_skipped,
            missing_includes=missing,
        )
        logger.info(
            "Read %d records (%d excluded, %d forced, %d offered, %d skipped); selected %d of %d",
            result.n_read,
            result.n_excluded,
            result.n_forced,
            result.n_offered,
            result.n_skipped,
            len(selected),
            cfg.sample_count,
        )
        if len(selected) < cfg.sample_count:
            logger.info("Eligible population smaller than the requested sample count")
        return result


# ---------------------------------------------------------------------------
# Functional API
# ---------------------------------------------------------------------------


def sample_records(
    records: Iterable[Record],
    sample_count: int,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
    rng: np.random.Generator | None = None,
    seed: int | None = None,
    order: str = "input",
    max_sample_count: int = DEFAULT_MAX_SAMPLE_COUNT,
) -> list[Record]:
    """Weighted sample without replacement over in-memory *records*.

    Args:
        records: Records to sample from, in stream order.
        sample_count: Number of records to select.
        include: Ids that are always selected.
        exclude: Ids that are never selected; wins over *include*.
        rng: Generator to draw keys from. Takes precedence over *seed*.
        seed: Seed for a fresh generator when *rng* is omitted.
        order: ``"input"`` or ``"key"`` ordering of the sampled portion.
        max_sample_count: Upper bound accepted for *sample_count*.

    Returns:
        Forced records followed by sampled ones.
    """
    sampler = WeightedHeapSampler(
        sample_count, rng=rng, seed=seed, max_sample_count=max_sample_count
    )
    return _select(records, FilterStage(include, exclude), sampler, order)


def run_sampling(config: SampleConfig) -> SampleResult:
    """Run one sampling pass described by *config*.

    Thin wrapper around :class:`SamplingRun`.
    """
    return SamplingRun(config).run()


def write_sample(result: SampleResult, stream: TextIO) -> None:
    """Write the header (if any) and the selected payloads, one per line."""
    if result.header is not None:
        stream.write(result.header + "\n")
    for record in result.records:
        stream.write(record.payload + "\n")
    stream.flush()
