"""Tests for the sampling run driver."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import numpy as np
import pytest

from wsample.config import SampleConfig
from wsample.errors import InvalidSampleCount, ParseError
from wsample.pipeline import SamplingRun, run_sampling, sample_records, write_sample
from wsample.records import Record


def _write_tsv(tmp_path: Path, rows: list[tuple[str, str]], header: bool = True) -> Path:
    lines = ["id\tweight"] if header else []
    lines += [f"{rid}\t{w}" for rid, w in rows]
    path = tmp_path / "data.tsv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def ten_rows(tmp_path: Path) -> Path:
    return _write_tsv(tmp_path, [(f"r{i}", str(i + 1)) for i in range(10)])


def _cfg(path: Path, **kwargs) -> SampleConfig:
    kwargs.setdefault("seed", 1)
    return SampleConfig(file=str(path), weights="weight", **kwargs)


def test_small_population_returns_everything(tmp_path: Path) -> None:
    path = _write_tsv(tmp_path, [("a", "1"), ("b", "1"), ("c", "1")])
    result = run_sampling(_cfg(path, sample_count=5))
    assert [r.id for r in result.records] == ["a", "b", "c"]
    assert result.header == "id\tweight"


@pytest.mark.parametrize("k, expected", [(5, 5), (8, 8), (20, 8)])
def test_output_size_is_min_of_k_and_eligible(ten_rows: Path, k: int, expected: int) -> None:
    result = run_sampling(_cfg(ten_rows, sample_count=k, exclude=["r0", "r1"]))
    assert len(result.records) == expected
    assert {"r0", "r1"}.isdisjoint(r.id for r in result.records)
    assert result.n_excluded == 2


def test_id_in_both_sets_is_absent(ten_rows: Path) -> None:
    result = run_sampling(_cfg(ten_rows, sample_count=10, include=["r3"], exclude=["r3"]))
    assert "r3" not in {r.id for r in result.records}


def test_forced_zero_weight_record_is_selected(tmp_path: Path) -> None:
    rows = [(f"r{i}", "100") for i in range(10)] + [("zero", "0")]
    path = _write_tsv(tmp_path, rows)
    result = run_sampling(_cfg(path, sample_count=3, include=["zero"]))
    ids = [r.id for r in result.records]
    assert ids[0] == "zero"
    assert len(ids) == 3


def test_zero_weight_not_selected_naturally(tmp_path: Path) -> None:
    rows = [("a", "1"), ("zero", "0"), ("b", "2"), ("c", "3")]
    result = run_sampling(_cfg(_write_tsv(tmp_path, rows), sample_count=3))
    assert [r.id for r in result.records] == ["a", "b", "c"]


def test_bad_weight_on_filtered_records_is_tolerated(tmp_path: Path) -> None:
    rows = [("a", "1"), ("gone", "oops"), ("kept", "n/a"), ("b", "2")]
    path = _write_tsv(tmp_path, rows)
    result = run_sampling(_cfg(path, sample_count=3, include=["kept"], exclude=["gone"]))
    assert [r.id for r in result.records] == ["kept", "a", "b"]


def test_bad_weight_on_sampled_record_aborts(tmp_path: Path) -> None:
    path = _write_tsv(tmp_path, [("a", "1"), ("b", "oops")])
    with pytest.raises(ParseError):
        run_sampling(_cfg(path, sample_count=1))


def test_bad_weight_skip_mode(tmp_path: Path) -> None:
    path = _write_tsv(tmp_path, [("a", "1"), ("b", "oops"), ("c", "1")])
    result = run_sampling(_cfg(path, sample_count=5, invalid_weight="skip"))
    assert [r.id for r in result.records] == ["a", "c"]
    assert result.n_skipped == 1


def test_sample_count_checked_before_reading(tmp_path: Path) -> None:
    cfg = SampleConfig(file=str(tmp_path / "missing.tsv"), sample_count=0)
    with pytest.raises(InvalidSampleCount):
        SamplingRun(cfg)


def test_same_seed_same_output(ten_rows: Path) -> None:
    first = run_sampling(_cfg(ten_rows, sample_count=4, seed=77))
    second = run_sampling(_cfg(ten_rows, sample_count=4, seed=77))
    assert first.records == second.records


def test_fresh_seed_is_reported(ten_rows: Path, caplog) -> None:
    cfg = SampleConfig(file=str(ten_rows), sample_count=2)
    with caplog.at_level(logging.INFO, logger="wsample"):
        result = run_sampling(cfg)
    assert isinstance(result.seed, int)
    assert f"using {result.seed}" in caplog.text


def test_missing_includes_are_reported(ten_rows: Path) -> None:
    result = run_sampling(_cfg(ten_rows, sample_count=2, include=["r1", "nope"]))
    assert result.missing_includes == ["nope"]
    assert result.n_forced == 1


def test_id_lists_from_files(ten_rows: Path, tmp_path: Path) -> None:
    inc = tmp_path / "inc.txt"
    inc.write_text("r9\n", encoding="utf-8")
    exc = tmp_path / "exc.txt"
    exc.write_text("# drop\nr0\n", encoding="utf-8")
    result = run_sampling(
        _cfg(ten_rows, sample_count=10, include_file=str(inc), exclude_file=str(exc))
    )
    ids = [r.id for r in result.records]
    assert ids[0] == "r9"
    assert "r0" not in ids
    assert len(ids) == 9


def test_injected_generator(ten_rows: Path) -> None:
    a = SamplingRun(_cfg(ten_rows, sample_count=3), rng=np.random.default_rng(5)).run()
    b = SamplingRun(_cfg(ten_rows, sample_count=3, seed=5)).run()
    assert a.records == b.records


def test_write_sample_emits_header_and_payloads(tmp_path: Path) -> None:
    path = _write_tsv(tmp_path, [("a", "1"), ("b", "2")])
    result = run_sampling(_cfg(path, sample_count=2))
    buffer = io.StringIO()
    write_sample(result, buffer)
    assert buffer.getvalue() == "id\tweight\na\t1\nb\t2\n"


def test_sample_records_in_memory() -> None:
    records = [Record(id=c, weight=1.0, payload=c) for c in "abcdef"]
    out = sample_records(records, 3, include=["f"], exclude=["a"], seed=0)
    ids = [r.id for r in out]
    assert ids[0] == "f"
    assert len(ids) == 3
    assert "a" not in ids
