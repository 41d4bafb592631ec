"""wsample: weighted random sampling of lines from delimited text files.

Public API
----------
The usable surface is importable directly from ``wsample``::

    from wsample import SampleConfig, SamplingRun, run_sampling, sample_records
    from wsample.records import Record, RecordSource
    from wsample.reservoir.weighted_heap import WeightedHeapSampler
"""

from __future__ import annotations

# Result assembly
from wsample.assembly import assemble_sample

# Configuration
from wsample.config import SampleConfig, load_config

# Error taxonomy
from wsample.errors import (
    ConfigError,
    InvalidSampleCount,
    ParseError,
    SampleIOError,
    SamplingError,
)

# Filter stage
from wsample.filtering import FilterStage

# Run driver, primary and functional APIs
from wsample.pipeline import (
    SampleResult,
    SamplingRun,
    run_sampling,
    sample_records,
    write_sample,
)

# Record model
from wsample.records import Record, RecordSource

# Sampler core
from wsample.reservoir.weighted_heap import WeightedHeapSampler

__version__ = "0.1.0"

__all__ = [
    # Primary abstractions
    "Record",
    "RecordSource",
    "FilterStage",
    "WeightedHeapSampler",
    "SampleConfig",
    "SamplingRun",
    "SampleResult",
    # Functional API
    "assemble_sample",
    "load_config",
    "run_sampling",
    "sample_records",
    "write_sample",
    # Errors
    "SamplingError",
    "SampleIOError",
    "ParseError",
    "InvalidSampleCount",
    "ConfigError",
    "__version__",
]
