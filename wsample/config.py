"""Run-level configuration objects."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from wsample.errors import ConfigError
from wsample.records import resolve_delimiter
from wsample.reservoir.weighted_heap import DEFAULT_MAX_SAMPLE_COUNT, check_sample_count

ORDER_CHOICES = ("input", "key")
INVALID_WEIGHT_CHOICES = ("error", "skip")

# Environment fallbacks, read after ``load_dotenv`` in the CLI.
ENV_SEED = "WSAMPLE_SEED"
ENV_LOG_LEVEL = "WSAMPLE_LOG_LEVEL"


@dataclass
class SampleConfig:
    """Configuration for one sampling run.

    Attributes:
        file: Path to the delimited input file.
        sample_count: Number of records to select (``k``).
        weights: Weight column, by header name or 0-based index. ``None``
            gives every record weight 1.0.
        id_col: Identifier column, by header name or 0-based index. ``None``
            means the first column.
        include: Identifiers that are always selected.
        exclude: Identifiers that are never selected. Wins over ``include``.
        include_file: Optional file with one identifier to include per line.
        exclude_file: Optional file with one identifier to exclude per line.
        delimiter: ``tab``, ``comma``, ``auto`` or a literal one-character
            delimiter.
        has_header: Whether the first line of the input is a header row.
        seed: Seed for the random generator. ``None`` draws fresh entropy.
        order: Order of the sampled portion in the output, ``input`` (file
            order) or ``key`` (descending sampling key).
        invalid_weight: ``error`` aborts on an unparseable weight, ``skip``
            drops the record with a warning.
        max_sample_count: Upper bound accepted for ``sample_count``.
        log_level: Logging level name used by the CLI.
    """

    file: Optional[str] = None
    sample_count: Optional[int] = None
    weights: Optional[str] = None
    id_col: Optional[str] = None
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    include_file: Optional[str] = None
    exclude_file: Optional[str] = None
    delimiter: str = "tab"
    has_header: bool = True
    seed: Optional[int] = None
    order: str = "input"
    invalid_weight: str = "error"
    max_sample_count: int = DEFAULT_MAX_SAMPLE_COUNT
    log_level: Optional[str] = None

    def validate(self) -> "SampleConfig":
        """Check option values before any input is read.

        Raises:
            InvalidSampleCount: If ``sample_count`` is missing, non-positive
                or above ``max_sample_count``.
            ConfigError: If another option has an unsupported value.
        """
        check_sample_count(self.sample_count, self.max_sample_count)
        if not self.file:
            raise ConfigError("an input file is required")
        if self.order not in ORDER_CHOICES:
            raise ConfigError(f"order must be one of {ORDER_CHOICES}, got {self.order!r}")
        if self.invalid_weight not in INVALID_WEIGHT_CHOICES:
            raise ConfigError(
                f"invalid_weight must be one of {INVALID_WEIGHT_CHOICES}, "
                f"got {self.invalid_weight!r}"
            )
        if not self.delimiter:
            raise ConfigError("delimiter must not be empty")
        if self.delimiter.lower() != "auto":
            resolve_delimiter(self.delimiter)
        return self


def _env_defaults() -> dict[str, Any]:
    """Collect defaults supplied through ``WSAMPLE_*`` environment variables."""
    values: dict[str, Any] = {}
    seed = os.environ.get(ENV_SEED)
    if seed:
        try:
            values["seed"] = int(seed)
        except ValueError as exc:
            raise ConfigError(f"{ENV_SEED} must be an integer, got {seed!r}") from exc
    level = os.environ.get(ENV_LOG_LEVEL)
    if level:
        values["log_level"] = level
    return values


def load_config(
    path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    use_env: bool = True,
) -> SampleConfig:
    """Build a :class:`SampleConfig` from defaults, environment, file and overrides.

    Later sources win: dataclass defaults, then ``WSAMPLE_*`` environment
    variables, then the YAML file at *path*, then *overrides* (typically the
    command-line flags that were actually given).

    Raises:
        ConfigError: If the file is missing or unreadable, has unknown keys,
            or a value cannot be converted to the field's type.
    """
    layers = [OmegaConf.structured(SampleConfig)]
    if use_env:
        layers.append(OmegaConf.create(_env_defaults()))
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Missing config: {path}")
        try:
            layers.append(OmegaConf.load(path))
        except (OSError, OmegaConfBaseException) as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if overrides:
        layers.append(OmegaConf.create(dict(overrides)))
    try:
        merged = OmegaConf.merge(*layers)
        return OmegaConf.to_object(merged)
    except OmegaConfBaseException as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
