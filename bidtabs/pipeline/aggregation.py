"""Portfolio and per-project statistics over bid records."""
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

import structlog

from bidtabs.models.schemas import (
    TWO_PLACES,
    ZERO,
    BidderLedgerEntry,
    BidRecord,
    PortfolioStatistics,
    ProjectStatistics,
    RankedBid,
    percent_diff,
)

logger = structlog.get_logger()


def build_bidder_ledger(records: Iterable[BidRecord]) -> List[BidderLedgerEntry]:
    """Accumulate bid and win counts per bidder name.

    A bid is a win when it equals its record's lowest bid, so tied low
    bidders each get a win. Ordered by wins, then bids, both descending;
    remaining ties keep first-seen order.
    """
    tallies: Dict[str, Dict] = {}

    for record in records:
        lowest = record.lowest_bid
        for bidder in record.bidders:
            tally = tallies.setdefault(
                bidder.name,
                {"bid_count": 0, "win_count": 0, "total_bid_amount": ZERO},
            )
            tally["bid_count"] += 1
            tally["total_bid_amount"] += bidder.amount
            if bidder.amount == lowest:
                tally["win_count"] += 1

    ledger = [
        BidderLedgerEntry(
            name=name,
            bid_count=tally["bid_count"],
            win_count=tally["win_count"],
            total_bid_amount=tally["total_bid_amount"],
            avg_bid_amount=tally["total_bid_amount"] / tally["bid_count"],
        )
        for name, tally in tallies.items()
    ]
    ledger.sort(key=lambda entry: (-entry.win_count, -entry.bid_count))
    return ledger


def summarize(records: Iterable[BidRecord]) -> PortfolioStatistics:
    """Compute portfolio statistics.

    The average difference from estimate is the plain mean of each
    record's own percentage, not a dollar-weighted figure.
    """
    records = list(records)
    if not records:
        return PortfolioStatistics()

    count = Decimal(len(records))
    total_estimate = sum((r.engineer_estimate for r in records), ZERO)
    total_bid = sum((r.lowest_bid for r in records), ZERO)
    total_diff = sum((r.diff_from_estimate for r in records), ZERO)

    statistics = PortfolioStatistics(
        avg_engineer_estimate=total_estimate / count,
        avg_lowest_bid=total_bid / count,
        avg_diff_from_estimate=total_diff / count,
        total_estimate_value=total_estimate,
        total_bid_value=total_bid,
        total_bidders=sum(len(r.bidders) for r in records),
        counties_covered=sorted({r.county for r in records}),
        project_types=sorted({r.project_type for r in records}),
        bidder_stats=build_bidder_ledger(records),
    )

    logger.debug(
        "Portfolio summarized",
        projects=len(records),
        bidders=statistics.total_bidders,
        ledger_entries=len(statistics.bidder_stats),
    )
    return statistics


def project_statistics(record: BidRecord) -> ProjectStatistics:
    """Spread of bids on one record.

    The median takes the lower middle bid on even counts. Range and
    dispersion stay zero with fewer than two bids.
    """
    bid_count = len(record.bidders)
    if bid_count == 0:
        return ProjectStatistics(record_id=record.id)

    ordered = sorted(record.bidders, key=lambda b: b.amount)
    amounts = [b.amount for b in ordered]
    average = sum(amounts, ZERO) / bid_count
    median = amounts[(bid_count - 1) // 2]

    bid_range = ZERO
    dispersion = ZERO
    if bid_count > 1:
        bid_range = amounts[-1] - amounts[0]
        if average != 0:
            dispersion = (bid_range / average * 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    lowest = record.lowest_bid
    ranked = [
        RankedBid(
            rank=idx,
            number=bidder.number,
            name=bidder.name,
            amount=bidder.amount,
            is_lowest=bidder.amount == lowest,
            diff_from_lowest=percent_diff(bidder.amount, lowest),
            diff_from_estimate=percent_diff(bidder.amount, record.engineer_estimate),
        )
        for idx, bidder in enumerate(ordered, start=1)
    ]

    return ProjectStatistics(
        record_id=record.id,
        bid_count=bid_count,
        average_bid=average,
        median_bid=median,
        bid_range=bid_range,
        bid_dispersion=dispersion,
        ranked_bids=ranked,
    )
