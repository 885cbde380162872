"""Unit tests for snapshot export."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from bidtabs.pipeline.aggregation import summarize
from bidtabs.transformers.export_formatter import (
    build_snapshot,
    dump_snapshot,
    parse_snapshot,
    write_snapshot,
)

EXPORTED_AT = datetime(2024, 3, 20, 15, 30, tzinfo=timezone.utc)


def test_build_snapshot_composes_statistics(portfolio):
    snapshot = build_snapshot(portfolio, generated_at=EXPORTED_AT)

    assert snapshot.bids == portfolio
    assert snapshot.statistics == summarize(portfolio)
    assert snapshot.exported_at == EXPORTED_AT
    assert snapshot.total_projects == 3


def test_build_snapshot_stamps_utc_time():
    snapshot = build_snapshot([])

    assert snapshot.exported_at.tzinfo is not None
    assert snapshot.total_projects == 0
    assert snapshot.statistics.bidder_stats == []


def test_dump_snapshot_uses_external_field_names(portfolio):
    document = json.loads(dump_snapshot(build_snapshot(portfolio, generated_at=EXPORTED_AT)))

    assert set(document) == {"bids", "statistics", "exportedAt", "totalProjects"}
    assert document["totalProjects"] == 3
    assert document["exportedAt"].startswith("2024-03-20T15:30:00")

    bid = document["bids"][0]
    assert bid["projectType"] == "BRIDGE REPAIR"
    assert bid["contractNumber"] == "CSJ-100"
    assert bid["lowestBid"] == "950000.00"
    assert bid["diffFromEstimate"] == "-5.00"

    ledger = document["statistics"]["bidderStats"]
    assert ledger[0]["name"] == "Acme Construction"
    assert ledger[0]["winCount"] == 2
    assert "avgBidAmount" in ledger[0]


def test_snapshot_round_trip(portfolio):
    snapshot = build_snapshot(portfolio, generated_at=EXPORTED_AT)
    restored = parse_snapshot(dump_snapshot(snapshot))

    assert [r.model_dump() for r in restored.bids] == [r.model_dump() for r in portfolio]
    assert restored.statistics.model_dump() == snapshot.statistics.model_dump()
    assert restored.exported_at == EXPORTED_AT
    assert restored.total_projects == 3


def test_parse_snapshot_recomputes_derived_fields(portfolio):
    document = json.loads(dump_snapshot(build_snapshot(portfolio, generated_at=EXPORTED_AT)))
    document["bids"][0]["lowestBid"] = "1.00"

    restored = parse_snapshot(json.dumps(document))
    assert str(restored.bids[0].lowest_bid) == "950000.00"


def test_parse_snapshot_rejects_bad_document():
    with pytest.raises(ValidationError):
        parse_snapshot('{"bids": "nope"}')


def test_parse_snapshot_rejects_negative_amount(portfolio):
    document = json.loads(dump_snapshot(build_snapshot(portfolio, generated_at=EXPORTED_AT)))
    document["bids"][0]["bidders"][0]["amount"] = "-1.00"

    with pytest.raises(ValidationError):
        parse_snapshot(json.dumps(document))


def test_write_snapshot_to_directory_uses_dated_name(tmp_path, portfolio):
    path = write_snapshot(build_snapshot(portfolio, generated_at=EXPORTED_AT), tmp_path)

    assert path == tmp_path / "txbids-export-2024-03-20.json"
    assert parse_snapshot(path.read_text(encoding="utf-8")).total_projects == 3


def test_write_snapshot_creates_parent_dirs(tmp_path, portfolio):
    target = tmp_path / "exports" / "nested" / "bids.json"
    path = write_snapshot(build_snapshot(portfolio, generated_at=EXPORTED_AT), target)

    assert path == target
    assert target.exists()
