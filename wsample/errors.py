"""Error taxonomy for wsample.

Every failure the library reports derives from :class:`SamplingError`. Each
subclass carries the process exit code the CLI returns for it, so callers
embedding ``wsample`` can catch the base class and the CLI can map any
failure to a distinct code without a lookup table.
"""

from __future__ import annotations


class SamplingError(Exception):
    """Base class for all wsample failures."""

    exit_code: int = 1


class SampleIOError(SamplingError):
    """The input file could not be opened or read to the end."""

    exit_code = 3


class ParseError(SamplingError):
    """A line or a weight could not be parsed.

    Attributes:
        line_number: 1-based physical line in the input, when known.
    """

    exit_code = 4

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class InvalidSampleCount(SamplingError):
    """Requested sample size is non-positive or above the configured maximum."""

    exit_code = 5


class ConfigError(SamplingError):
    """Configuration file or option values are invalid."""

    exit_code = 6
