"""Unit tests for business rule validation."""
from __future__ import annotations

from tests.mocks import data as mock_data


def test_validate_derived_fields_consistent(validator):
    is_valid, message = validator.validate_derived_fields(mock_data.make_record())
    assert is_valid is True
    assert "validated" in message


def test_validate_completeness_reports_defaulted_fields(validator, parser):
    record = parser.parse(mock_data.make_bid_tab_text(county=None, estimate=None), "x.TXT")
    is_valid, message = validator.validate_completeness(record)
    assert is_valid is False
    assert "county" in message
    assert "engineer_estimate" in message


def test_validate_completeness_ok(validator, parser, sample_text):
    is_valid, _ = validator.validate_completeness(parser.parse(sample_text, "x.TXT"))
    assert is_valid is True


def test_validate_bidders_present(validator):
    is_valid, message = validator.validate_bidders_present(mock_data.make_record(bids=[]))
    assert is_valid is False
    assert "No bidders" in message


def test_validate_bidder_outliers_detected(validator):
    record = mock_data.make_record(bids=[
        ("A", "100.00"),
        ("B", "105.00"),
        ("C", "110.00"),
        ("D", "5000.00"),
        ("E", "115.00"),
    ])
    is_valid, message = validator.validate_bidder_outliers(record)
    assert is_valid is False
    assert "Outlier" in message
    assert "D=" in message


def test_validate_bidder_outliers_insufficient_data(validator):
    record = mock_data.make_record(bids=[("A", "100.00"), ("B", "105.00"), ("C", "110.00")])
    is_valid, message = validator.validate_bidder_outliers(record)
    assert is_valid is True
    assert "Insufficient" in message


def test_validate_bidder_outliers_none(validator):
    record = mock_data.make_record(bids=[
        ("A", "100.00"), ("B", "104.00"), ("C", "108.00"), ("D", "112.00"),
    ])
    is_valid, _ = validator.validate_bidder_outliers(record)
    assert is_valid is True


def test_validate_all_success(validator):
    record = mock_data.make_record()
    report = validator.validate_all(record)
    assert report["valid"] is True
    assert report["record_id"] == record.id
    assert "validations" in report
    assert "messages" in report


def test_validate_all_flags_empty_record(validator, parser):
    report = validator.validate_all(parser.parse("", "empty.TXT"))
    assert report["valid"] is False
    assert report["validations"]["bidders_present"][0] is False
    assert report["validations"]["derived_fields"][0] is True
