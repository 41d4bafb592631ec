"""Tests for the record model and the delimited record source."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from wsample.errors import ConfigError, ParseError, SampleIOError
from wsample.records import (
    Record,
    RecordSource,
    load_id_list,
    resolve_column,
    resolve_delimiter,
    sniff_delimiter,
)


def _write(tmp_path: Path, text: str, name: str = "data.tsv") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_record_rejects_negative_weight() -> None:
    with pytest.raises(ValueError):
        Record(id="a", weight=-1.0, payload="a\t-1")


def test_record_rejects_nan_weight() -> None:
    with pytest.raises(ValueError):
        Record(id="a", weight=float("nan"), payload="a\tnan")


def test_source_reads_named_columns(tmp_path: Path) -> None:
    """Header names select the id and weight columns; payload is kept verbatim."""
    path = _write(tmp_path, "note\tname\tscore\nx\ta\t1.5\ny\tb\t2\n")
    source = RecordSource(path, id_col="name", weight_col="score")
    records = list(source)
    assert [r.id for r in records] == ["a", "b"]
    assert [r.weight for r in records] == [1.5, 2.0]
    assert records[0].payload == "x\ta\t1.5"
    assert [r.line_number for r in records] == [2, 3]
    assert source.header == "note\tname\tscore"
    assert source.header_fields == ["note", "name", "score"]


def test_source_reads_indexed_columns(tmp_path: Path) -> None:
    path = _write(tmp_path, "note\tname\tscore\nx\ta\t3\n")
    records = list(RecordSource(path, id_col="1", weight_col=2))
    assert records[0].id == "a"
    assert records[0].weight == 3.0


def test_source_defaults_to_first_column_and_unit_weight(tmp_path: Path) -> None:
    path = _write(tmp_path, "id\tvalue\na\tfoo\nb\tbar\n")
    records = list(RecordSource(path))
    assert [r.id for r in records] == ["a", "b"]
    assert all(r.weight == 1.0 for r in records)


def test_source_without_header(tmp_path: Path) -> None:
    path = _write(tmp_path, "a\t1\nb\t4\n")
    source = RecordSource(path, weight_col="1", has_header=False)
    records = list(source)
    assert [r.id for r in records] == ["a", "b"]
    assert [r.weight for r in records] == [1.0, 4.0]
    assert source.header is None


def test_source_unknown_column_raises(tmp_path: Path) -> None:
    path = _write(tmp_path, "id\tweight\na\t1\n")
    with pytest.raises(ParseError, match="not found"):
        list(RecordSource(path, weight_col="score"))


def test_resolve_column_out_of_range() -> None:
    with pytest.raises(ParseError):
        resolve_column("5", ["id", "weight"], 2)


def test_source_field_count_mismatch_raises(tmp_path: Path) -> None:
    path = _write(tmp_path, "id\tweight\na\t1\nb\t2\textra\n")
    with pytest.raises(ParseError) as excinfo:
        list(RecordSource(path, weight_col="weight"))
    assert excinfo.value.line_number == 3


def test_source_non_numeric_weight_raises(tmp_path: Path) -> None:
    path = _write(tmp_path, "id\tweight\na\t1\nb\theavy\n")
    with pytest.raises(ParseError, match="invalid weight"):
        list(RecordSource(path, weight_col="weight"))


def test_source_negative_weight_raises(tmp_path: Path) -> None:
    path = _write(tmp_path, "id\tweight\na\t-2\n")
    with pytest.raises(ParseError):
        list(RecordSource(path, weight_col="weight"))


def test_source_exempt_id_tolerates_bad_weight(tmp_path: Path) -> None:
    """Ids whose weight is never used do not fail on an unparseable weight."""
    path = _write(tmp_path, "id\tweight\na\t1\nb\theavy\n")
    records = list(RecordSource(path, weight_col="weight", exempt_ids={"b"}))
    assert [r.id for r in records] == ["a", "b"]
    assert records[1].weight == 0.0


def test_source_skip_mode_drops_bad_weight(tmp_path: Path, caplog) -> None:
    path = _write(tmp_path, "id\tweight\na\t1\nb\theavy\nc\t2\n")
    source = RecordSource(path, weight_col="weight", invalid_weight="skip")
    with caplog.at_level(logging.WARNING, logger="wsample"):
        records = list(source)
    assert [r.id for r in records] == ["a", "c"]
    assert source.n_skipped == 1
    assert "Skipping line 3" in caplog.text


def test_source_missing_file_raises_io_error(tmp_path: Path) -> None:
    with pytest.raises(SampleIOError):
        list(RecordSource(tmp_path / "missing.tsv"))


def test_source_strips_crlf_and_skips_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "data.tsv"
    path.write_bytes(b"id\tweight\r\na\t1\r\n\r\nb\t2\r\n")
    records = list(RecordSource(path, weight_col="weight"))
    assert [r.payload for r in records] == ["a\t1", "b\t2"]


def test_source_honours_quoted_delimiters(tmp_path: Path) -> None:
    path = _write(tmp_path, 'id,note,w\na,"x,y",2\n', name="data.csv")
    records = list(RecordSource(path, delimiter=",", weight_col="w"))
    assert records[0].weight == 2.0
    assert records[0].payload == 'a,"x,y",2'


def test_source_is_restartable(tmp_path: Path) -> None:
    path = _write(tmp_path, "id\tweight\na\t1\nb\t2\n")
    source = RecordSource(path, weight_col="weight")
    assert list(source) == list(source)


def test_source_rejects_multichar_delimiter(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        RecordSource(tmp_path / "x.tsv", delimiter="::")


def test_resolve_delimiter_aliases(tmp_path: Path) -> None:
    assert resolve_delimiter("tab") == "\t"
    assert resolve_delimiter("comma") == ","
    assert resolve_delimiter(";") == ";"
    assert resolve_delimiter("auto", tmp_path / "data.csv") == ","
    with pytest.raises(ConfigError):
        resolve_delimiter("ab")
    with pytest.raises(ConfigError):
        resolve_delimiter("auto")


def test_sniff_delimiter_from_first_line(tmp_path: Path) -> None:
    assert sniff_delimiter(_write(tmp_path, "id|weight\na|1\n", name="data.txt")) == "|"
    assert sniff_delimiter(_write(tmp_path, "single\n", name="plain.txt")) == "\t"


def test_load_id_list_skips_blank_and_comment_lines(tmp_path: Path) -> None:
    path = _write(tmp_path, "# ids\na\n\n  b  \n", name="ids.txt")
    assert load_id_list(path) == ["a", "b"]


def test_load_id_list_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SampleIOError):
        load_id_list(tmp_path / "nope.txt")


@pytest.mark.parametrize("text", ["1_000", " 2", "2 ", "0x10", "1e400", "+inf"])
def test_source_rejects_non_decimal_weights(tmp_path: Path, text: str) -> None:
    path = _write(tmp_path, f"id\tweight\na\t{text}\n")
    with pytest.raises(ParseError, match="invalid weight"):
        list(RecordSource(path, weight_col="weight"))


@pytest.mark.parametrize(
    "text, expected",
    [("3", 3.0), ("0.5", 0.5), (".5", 0.5), ("2.", 2.0), ("1e-3", 0.001), ("+4", 4.0)],
)
def test_source_accepts_decimal_weights(tmp_path: Path, text: str, expected: float) -> None:
    path = _write(tmp_path, f"id\tweight\na\t{text}\n")
    assert list(RecordSource(path, weight_col="weight"))[0].weight == expected
