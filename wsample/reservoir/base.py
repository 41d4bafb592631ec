"""Streaming reservoir sampler interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable

from wsample.records import Record


@dataclass(frozen=True)
class SampledEntry:
    """One record retained by a reservoir, with the key it was ranked by.

    Attributes:
        key: Sampling key; larger keys are preferred.
        sequence: Zero-based arrival index of the record in the offered stream.
        record: The retained record.
    """

    key: float
    sequence: int
    record: Record


class ReservoirSampler(ABC):
    """Base interface for single-pass reservoir sampling strategies."""

    @abstractmethod
    def offer(self, record: Record) -> bool:
        """Consider one record; return ``True`` if it entered the reservoir."""

    def extend(self, records: Iterable[Record]) -> int:
        """Offer every record from *records* and return how many were offered."""
        n = 0
        for record in records:
            self.offer(record)
            n += 1
        return n

    @abstractmethod
    def entries(self) -> list[SampledEntry]:
        """Return the current reservoir contents, best key first."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of records currently held."""
