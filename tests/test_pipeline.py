"""Tests for the directory pipeline."""
from __future__ import annotations

import pytest

from bidtabs.pipeline.orchestrator import Pipeline
from tests.mocks import data as mock_data


@pytest.fixture()
def bid_dir(tmp_path):
    (tmp_path / "HARRIS.TXT").write_text(mock_data.SAMPLE_BID_TAB, encoding="utf-8")
    (tmp_path / "partial.txt").write_text("COUNTY TRAVIS\n", encoding="utf-8")
    (tmp_path / "broken.TXT").write_bytes(b"COUNTY \xff\xfe")
    (tmp_path / "notes.md").write_text("COUNTY IGNORED\n", encoding="utf-8")
    nested = tmp_path / "2023"
    nested.mkdir()
    (nested / "SEAL.TXT").write_text(
        mock_data.make_bid_tab_text(county="BRAZOS", date="11/02/23"),
        encoding="utf-8",
    )
    return tmp_path


def test_pipeline_requires_existing_dir(tmp_path):
    with pytest.raises(ValueError):
        Pipeline(tmp_path / "missing")


def test_discover_files_only_text_files(bid_dir):
    names = [p.name for p in Pipeline(bid_dir).discover_files()]
    assert sorted(names) == ["HARRIS.TXT", "SEAL.TXT", "broken.TXT", "partial.txt"]


def test_discover_files_respects_pattern(bid_dir):
    names = [p.name for p in Pipeline(bid_dir, pattern="*").discover_files()]
    assert "SEAL.TXT" not in names


def test_process_directory_isolates_failures(bid_dir):
    pipeline = Pipeline(bid_dir)
    results = pipeline.process_directory()
    by_name = {r.filename: r for r in results}

    assert by_name["HARRIS.TXT"].status == "success"
    assert by_name["SEAL.TXT"].status == "success"
    assert by_name["partial.txt"].status == "partial"
    assert by_name["broken.TXT"].status == "failed"
    assert by_name["broken.TXT"].file_path.endswith("broken.TXT")

    assert sorted(r.county for r in pipeline.records) == ["BRAZOS", "HARRIS", "TRAVIS"]
    assert [f.filename for f in pipeline.failures] == ["broken.TXT"]


def test_record_ids_unique_across_batch(bid_dir):
    pipeline = Pipeline(bid_dir)
    pipeline.process_directory()
    record_ids = [r.id for r in pipeline.records]
    assert len(record_ids) == len(set(record_ids))


def test_get_summary(bid_dir):
    pipeline = Pipeline(bid_dir)
    pipeline.process_directory()
    summary = pipeline.get_summary()

    assert summary["total_files"] == 4
    assert summary["successful"] == 2
    assert summary["partial"] == 1
    assert summary["failed"] == 1
    assert summary["success_rate"] == "75.0%"


def test_get_summary_empty(tmp_path):
    pipeline = Pipeline(tmp_path)
    pipeline.process_directory()
    assert pipeline.get_summary()["success_rate"] == "0%"
    assert pipeline.records == []
