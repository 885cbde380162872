"""Pydantic models for bid records, statistics and export snapshots."""
import datetime as dt
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

UNKNOWN = "Unknown"
ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")


def percent_diff(value: Decimal, base: Decimal) -> Optional[Decimal]:
    """Signed percentage of ``value`` relative to ``base``, two decimal places.

    Returns None when ``base`` is zero.
    """
    if base == 0:
        return None
    return ((value - base) / base * 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class SnapshotModel(BaseModel):
    """Immutable model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Bidder(SnapshotModel):
    """One bid submitted by one company on one contract."""

    number: str
    name: str
    amount: Decimal

    @field_validator("amount")
    def validate_amount(cls, v):
        """Ensure bid amount is not negative."""
        if v < 0:
            raise ValueError("Bid amount must not be negative")
        return v


class BidRecord(SnapshotModel):
    """One parsed bid tabulation (one contract)."""

    id: str
    filename: str
    county: str = UNKNOWN
    project_type: str = UNKNOWN
    date: str = UNKNOWN
    contract_number: str = UNKNOWN
    engineer_estimate: Decimal = ZERO
    bidders: List[Bidder] = Field(default_factory=list)
    defaulted_fields: List[str] = Field(default_factory=list)

    @field_validator("engineer_estimate")
    def validate_estimate(cls, v):
        """Ensure engineer estimate is not negative."""
        if v < 0:
            raise ValueError("Engineer estimate must not be negative")
        return v

    @computed_field(alias="lowestBid")
    @property
    def lowest_bid(self) -> Decimal:
        if not self.bidders:
            return ZERO
        return min(bidder.amount for bidder in self.bidders)

    @computed_field(alias="diffFromEstimate")
    @property
    def diff_from_estimate(self) -> Decimal:
        diff = percent_diff(self.lowest_bid, self.engineer_estimate)
        return ZERO if diff is None else diff

    @property
    def bid_date(self) -> Optional[dt.date]:
        """Bid date as a calendar date, or None when unknown."""
        if self.date == UNKNOWN:
            return None
        try:
            return dt.date.fromisoformat(self.date)
        except ValueError:
            return None


class ParseFailure(SnapshotModel):
    """Input that could not be read as text at all."""

    filename: str
    error: str


class ParseResult(SnapshotModel):
    """Outcome envelope for parsing one file."""

    filename: str
    file_path: Optional[str] = None
    status: str  # success, partial, failed
    record: Optional[BidRecord] = None
    failure: Optional[ParseFailure] = None
    defaulted_fields: List[str] = Field(default_factory=list)
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    processing_time: Optional[float] = None


class BidderLedgerEntry(SnapshotModel):
    """Win/loss history of one bidder across many records."""

    name: str
    bid_count: int = 0
    win_count: int = 0
    total_bid_amount: Decimal = ZERO
    avg_bid_amount: Decimal = ZERO


class PortfolioStatistics(SnapshotModel):
    """Cross-record aggregates. The default instance is the empty portfolio."""

    avg_engineer_estimate: Decimal = ZERO
    avg_lowest_bid: Decimal = ZERO
    avg_diff_from_estimate: Decimal = ZERO
    total_estimate_value: Decimal = ZERO
    total_bid_value: Decimal = ZERO
    total_bidders: int = 0
    counties_covered: List[str] = Field(default_factory=list)
    project_types: List[str] = Field(default_factory=list)
    bidder_stats: List[BidderLedgerEntry] = Field(default_factory=list)


class RankedBid(SnapshotModel):
    """A bidder placed in amount order within its record."""

    rank: int
    number: str
    name: str
    amount: Decimal
    is_lowest: bool = False
    diff_from_lowest: Optional[Decimal] = None
    diff_from_estimate: Optional[Decimal] = None


class ProjectStatistics(SnapshotModel):
    """Bid spread statistics for a single record."""

    record_id: str
    bid_count: int = 0
    average_bid: Decimal = ZERO
    median_bid: Decimal = ZERO
    bid_range: Decimal = ZERO
    bid_dispersion: Decimal = ZERO
    ranked_bids: List[RankedBid] = Field(default_factory=list)


class ExportSnapshot(SnapshotModel):
    """Portable snapshot of records plus their statistics."""

    bids: List[BidRecord] = Field(default_factory=list)
    statistics: PortfolioStatistics = Field(default_factory=PortfolioStatistics)
    exported_at: dt.datetime
    total_projects: int = 0


class SortKey(Enum):
    """Record fields the table can be ordered by."""
    DATE = "date"
    COUNTY = "county"
    PROJECT_TYPE = "projectType"
    CONTRACT_NUMBER = "contractNumber"
    ENGINEER_ESTIMATE = "engineerEstimate"
    LOWEST_BID = "lowestBid"
    DIFF_FROM_ESTIMATE = "diffFromEstimate"


class SortDirection(Enum):
    """Sort direction."""
    ASC = "asc"
    DESC = "desc"


class FilterCriteria(SnapshotModel):
    """Optional substring filters; blank values are inactive."""

    county: Optional[str] = None
    project_type: Optional[str] = None
    contract_number: Optional[str] = None
    bidder_name: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any(
            [self.county, self.project_type, self.contract_number, self.bidder_name]
        )
