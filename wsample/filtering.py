"""Identifier-based routing of records ahead of the sampler."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Iterator

from wsample.records import Record

logger = logging.getLogger(__name__)

EXCLUDED = "excluded"
FORCED = "forced"
SAMPLED = "sampled"


class FilterStage:
    """Drop excluded records, set forced ones aside, and pass the rest through.

    An id present in both sets is excluded. Forced records keep the position
    of their id's first appearance; when an id repeats, the last occurrence
    replaces the stored record.

    Attributes:
        include: Ids that bypass sampling and are always selected.
        exclude: Ids that are never selected.
        counts: Number of records routed to each destination so far.
    """

    def __init__(self, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> None:
        self.include = frozenset(include)
        self.exclude = frozenset(exclude)
        self.counts: Counter[str] = Counter()
        self._forced: dict[str, Record] = {}
        overlap = self.include & self.exclude
        if overlap:
            logger.warning(
                "%d id(s) are both included and excluded; excluding them: %s",
                len(overlap),
                ", ".join(sorted(overlap)),
            )

    @property
    def exempt_ids(self) -> frozenset[str]:
        """Ids whose weight never influences the outcome."""
        return self.include | self.exclude

    def route(self, record: Record) -> str:
        """Return ``"excluded"``, ``"forced"`` or ``"sampled"`` for *record*."""
        if record.id in self.exclude:
            return EXCLUDED
        if record.id in self.include:
            return FORCED
        return SAMPLED

    def apply(self, records: Iterable[Record]) -> Iterator[Record]:
        """Yield the records that should reach the sampler.

        Forced records are collected into :attr:`forced` as a side effect, so
        that list is complete only once the returned iterator is exhausted.
        """
        for record in records:
            destination = self.route(record)
            self.counts[destination] += 1
            if destination == EXCLUDED:
                continue
            if destination == FORCED:
                self._forced[record.id] = record
                continue
            yield record

    @property
    def forced(self) -> list[Record]:
        """Forced records, one per id, in order of first appearance."""
        return list(self._forced.values())

    def missing_includes(self) -> list[str]:
        """Included (and not excluded) ids that have not been seen."""
        return sorted(self.include - self.exclude - set(self._forced))
