"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.mocks import data as mock_data  # noqa: E402


@pytest.fixture()
def parser():
    from bidtabs.extractors.bid_file_parser import BidFileParser

    return BidFileParser(clock=lambda: 1710460800.0)


@pytest.fixture()
def validator():
    from bidtabs.validators.business_rules import RecordValidator

    return RecordValidator()


@pytest.fixture()
def sample_text():
    return mock_data.SAMPLE_BID_TAB


@pytest.fixture()
def portfolio():
    return mock_data.make_portfolio()
