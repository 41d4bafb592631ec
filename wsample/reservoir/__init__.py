"""Reservoir samplers."""

from wsample.reservoir.base import ReservoirSampler, SampledEntry
from wsample.reservoir.weighted_heap import WeightedHeapSampler, sampling_key

__all__ = [
    "ReservoirSampler",
    "SampledEntry",
    "WeightedHeapSampler",
    "sampling_key",
]
