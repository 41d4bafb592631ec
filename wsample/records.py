"""Record model and the lazy record source over delimited text files."""

from __future__ import annotations

import csv
import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from wsample.errors import ConfigError, ParseError, SampleIOError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal constants
# ---------------------------------------------------------------------------

_DELIMITER_ALIASES: Dict[str, str] = {
    "tab": "\t",
    "\\t": "\t",
    "comma": ",",
    "semicolon": ";",
    "pipe": "|",
    "space": " ",
}

# Plain decimal or scientific notation; no padding, underscores or inf/nan.
_WEIGHT_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

_SNIFF_CANDIDATES = ("\t", ",", ";", "|")

_EXTENSION_DELIMITERS: Dict[str, str] = {
    ".csv": ",",
    ".tsv": "\t",
    ".tab": "\t",
}

# ---------------------------------------------------------------------------
# Record model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Record:
    """One parsed input line.

    Attributes:
        id: Value of the identifier column.
        weight: Non-negative, finite sampling weight.
        payload: The original line without its line terminator.
        line_number: 1-based physical line number in the input (0 when the
            record was not read from a file).
    """

    id: str
    weight: float
    payload: str
    line_number: int = 0

    def __post_init__(self) -> None:
        if not math.isfinite(self.weight) or self.weight < 0.0:
            raise ValueError(f"weight must be finite and >= 0, got {self.weight!r}")


# ---------------------------------------------------------------------------
# Delimiters and id lists
# ---------------------------------------------------------------------------


def sniff_delimiter(path: str | Path) -> str:
    """Guess the delimiter of *path* from its extension or its first line.

    Falls back to a tab when nothing better can be inferred.
    """
    path = Path(path)
    by_extension = _EXTENSION_DELIMITERS.get(path.suffix.lower())
    if by_extension is not None:
        return by_extension
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            first = next((line for line in handle if line.strip()), "")
    except (OSError, UnicodeDecodeError) as exc:
        raise SampleIOError(f"Cannot read {path}: {exc}") from exc
    counts = {c: first.count(c) for c in _SNIFF_CANDIDATES}
    best = max(_SNIFF_CANDIDATES, key=lambda c: counts[c])
    return best if counts[best] > 0 else "\t"


def resolve_delimiter(option: str, path: str | Path | None = None) -> str:
    """Turn a delimiter option (alias, literal or ``auto``) into one character.

    Raises:
        ConfigError: If *option* does not name a single-character delimiter, or
            is ``auto`` without a *path* to inspect.
    """
    if option.lower() == "auto":
        if path is None:
            raise ConfigError("delimiter 'auto' needs an input path")
        return sniff_delimiter(path)
    delimiter = _DELIMITER_ALIASES.get(option.lower(), option)
    if len(delimiter) != 1:
        raise ConfigError(f"delimiter must be a single character, got {option!r}")
    return delimiter


def load_id_list(path: str | Path) -> List[str]:
    """Read identifiers from *path*, one per line; blank and ``#`` lines are ignored."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            ids = [line.strip() for line in handle]
    except (OSError, UnicodeDecodeError) as exc:
        raise SampleIOError(f"Cannot read id list {path}: {exc}") from exc
    return [i for i in ids if i and not i.startswith("#")]


# ---------------------------------------------------------------------------
# Record source
# ---------------------------------------------------------------------------


def resolve_column(
    selector: str | int,
    header_fields: Optional[List[str]],
    n_fields: int,
) -> int:
    """Resolve a column selector to a 0-based index.

    A selector is matched against the header names first and then read as a
    0-based index.

    Raises:
        ParseError: If the column is not in the header and is not a valid index.
    """
    name = str(selector)
    if header_fields is not None and name in header_fields:
        return header_fields.index(name)
    try:
        index = int(name)
    except ValueError:
        raise ParseError(f"Column '{name}' not found.") from None
    if not 0 <= index < n_fields:
        raise ParseError(f"Column index {index} out of range for {n_fields} fields.")
    return index


class RecordSource:
    """Lazy, forward-only sequence of :class:`Record` parsed from a delimited file.

    Each iteration re-opens and re-reads the file. Lines are split one at a
    time, so quoted fields may contain the delimiter but a record never spans
    lines. Blank lines are skipped.

    Attributes:
        path: Input file.
        delimiter: Single-character field delimiter.
        header: Raw header line, set once iteration has read it.
        header_fields: Split header, set alongside ``header``.
        n_skipped: Records dropped for an invalid weight under ``invalid_weight="skip"``.
    """

    def __init__(
        self,
        path: str | Path,
        delimiter: str = "\t",
        id_col: str | int | None = None,
        weight_col: str | int | None = None,
        has_header: bool = True,
        exempt_ids: Iterable[str] = (),
        invalid_weight: str = "error",
        encoding: str = "utf-8",
    ) -> None:
        """Initialize the source.

        Args:
            path: Input file path.
            delimiter: Single-character field delimiter.
            id_col: Identifier column (header name or 0-based index); the
                first column when omitted.
            weight_col: Weight column (header name or 0-based index); every
                weight is 1.0 when omitted.
            has_header: Whether the first non-blank line is a header row.
            exempt_ids: Ids whose weight is never used (forced in or out).
                Their weight is not validated; an unparseable one becomes 0.0.
            invalid_weight: ``"error"`` raises :class:`ParseError` on an
                invalid weight, ``"skip"`` drops the record with a warning.
            encoding: Text encoding of the input.
        """
        if len(delimiter) != 1:
            raise ValueError(f"delimiter must be a single character, got {delimiter!r}")
        if invalid_weight not in ("error", "skip"):
            raise ValueError(f"invalid_weight must be 'error' or 'skip', got {invalid_weight!r}")
        self.path = Path(path)
        self.delimiter = delimiter
        self.id_col = id_col
        self.weight_col = weight_col
        self.has_header = has_header
        self.exempt_ids = frozenset(exempt_ids)
        self.invalid_weight = invalid_weight
        self.encoding = encoding
        self.header: Optional[str] = None
        self.header_fields: Optional[List[str]] = None
        self.n_skipped = 0

    def __iter__(self) -> Iterator[Record]:
        try:
            with self.path.open("r", encoding=self.encoding, newline="") as handle:
                yield from self._parse(handle)
        except UnicodeDecodeError as exc:
            raise SampleIOError(f"Cannot decode {self.path}: {exc}") from exc
        except OSError as exc:
            raise SampleIOError(f"Cannot read {self.path}: {exc.strerror or exc}") from exc

    def _split(self, payload: str, line_number: int) -> List[str]:
        """Split one line into fields."""
        if '"' not in payload:
            return payload.split(self.delimiter)
        try:
            return next(csv.reader([payload], delimiter=self.delimiter, strict=True))
        except csv.Error as exc:
            raise ParseError(f"malformed quoting: {exc}", line_number) from exc

    def _parse_weight(self, text: str, record_id: str, line_number: int) -> Optional[float]:
        """Return the weight for a record, or ``None`` if it should be skipped."""
        weight = float(text) if _WEIGHT_PATTERN.fullmatch(text) else math.nan
        if math.isfinite(weight) and weight >= 0.0:
            return weight
        if record_id in self.exempt_ids:
            logger.debug("Ignoring invalid weight %r for forced id %r", text, record_id)
            return 0.0
        message = f"invalid weight {text!r} for record {record_id!r}"
        if self.invalid_weight == "skip":
            logger.warning("Skipping line %d: %s", line_number, message)
            return None
        raise ParseError(message, line_number)

    def _parse(self, lines: Iterable[str]) -> Iterator[Record]:
        self.n_skipped = 0
        expected: Optional[int] = None
        id_idx = 0
        weight_idx: Optional[int] = None

        for line_number, raw in enumerate(lines, start=1):
            payload = raw.rstrip("\r\n")
            if not payload.strip():
                continue
            fields = self._split(payload, line_number)

            if expected is None:
                expected = len(fields)
                header_fields = fields if self.has_header else None
                if self.id_col is not None:
                    id_idx = resolve_column(self.id_col, header_fields, expected)
                if self.weight_col is not None:
                    weight_idx = resolve_column(self.weight_col, header_fields, expected)
                logger.debug("id column %d, weight column %s", id_idx, weight_idx)
                if self.has_header:
                    self.header = payload
                    self.header_fields = fields
                    continue

            if len(fields) != expected:
                raise ParseError(f"expected {expected} fields, found {len(fields)}", line_number)

            record_id = fields[id_idx]
            if weight_idx is None:
                weight: Optional[float] = 1.0
            else:
                weight = self._parse_weight(fields[weight_idx], record_id, line_number)
                if weight is None:
                    self.n_skipped += 1
                    continue
            yield Record(id=record_id, weight=weight, payload=payload, line_number=line_number)
