"""Filtering and ordering of bid records for display."""
from functools import lru_cache
from typing import Iterable, List, Optional, Union

import structlog
from pyuca import Collator

from bidtabs.models.schemas import BidRecord, FilterCriteria, SortDirection, SortKey

logger = structlog.get_logger()

NUMERIC_KEYS = {
    SortKey.ENGINEER_ESTIMATE: "engineer_estimate",
    SortKey.LOWEST_BID: "lowest_bid",
    SortKey.DIFF_FROM_ESTIMATE: "diff_from_estimate",
}

TEXT_KEYS = {
    SortKey.COUNTY: "county",
    SortKey.PROJECT_TYPE: "project_type",
    SortKey.CONTRACT_NUMBER: "contract_number",
}


def _contains(value: str, needle: str) -> bool:
    return needle.lower() in value.lower()


def apply_filters(records: Iterable[BidRecord], criteria: Optional[FilterCriteria] = None) -> List[BidRecord]:
    """Keep records matching every active criterion, in input order.

    County, project type and bidder name match case-insensitively;
    contract number matches case-sensitively.
    """
    result = list(records)
    if criteria is None or criteria.is_empty:
        return result

    if criteria.county:
        result = [r for r in result if _contains(r.county, criteria.county)]

    if criteria.project_type:
        result = [r for r in result if _contains(r.project_type, criteria.project_type)]

    if criteria.contract_number:
        result = [r for r in result if criteria.contract_number in r.contract_number]

    if criteria.bidder_name:
        result = [
            r for r in result
            if any(_contains(b.name, criteria.bidder_name) for b in r.bidders)
        ]

    return result


@lru_cache(maxsize=None)
def _collator() -> Collator:
    # loading the collation table is slow; do it once, on first text sort
    return Collator()


def _text_key(value: str):
    """Unicode collation key: letters compare regardless of case first,
    then lowercase before uppercase. Control characters are ignored.

    The raw value breaks ties between strings that collate equal.
    """
    return (_collator().sort_key(value), value)


def sort_records(
    records: Iterable[BidRecord],
    sort_key: Union[SortKey, str] = SortKey.DATE,
    direction: Union[SortDirection, str] = SortDirection.DESC,
) -> List[BidRecord]:
    """Stable sort by one key.

    Records with an unknown date always go last, in input order,
    whichever the direction.
    """
    sort_key = SortKey(sort_key)
    reverse = SortDirection(direction) is SortDirection.DESC
    records = list(records)

    if sort_key is SortKey.DATE:
        dated = [r for r in records if r.bid_date is not None]
        undated = [r for r in records if r.bid_date is None]
        return sorted(dated, key=lambda r: r.bid_date, reverse=reverse) + undated

    if sort_key in NUMERIC_KEYS:
        attr = NUMERIC_KEYS[sort_key]
        return sorted(records, key=lambda r: getattr(r, attr), reverse=reverse)

    attr = TEXT_KEYS[sort_key]
    return sorted(records, key=lambda r: _text_key(getattr(r, attr)), reverse=reverse)


def filter_and_sort(
    records: Iterable[BidRecord],
    criteria: Optional[FilterCriteria] = None,
    sort_key: Union[SortKey, str] = SortKey.DATE,
    direction: Union[SortDirection, str] = SortDirection.DESC,
) -> List[BidRecord]:
    """Filter then sort a snapshot of records. The input is not modified."""
    snapshot = list(records)
    filtered = apply_filters(snapshot, criteria)
    ordered = sort_records(filtered, sort_key, direction)
    logger.debug(
        "Records filtered",
        total=len(snapshot),
        matched=len(ordered),
        sort_key=SortKey(sort_key).value,
        direction=SortDirection(direction).value,
    )
    return ordered


def find_record(records: Iterable[BidRecord], record_id: str) -> Optional[BidRecord]:
    """Look up a record by id."""
    for record in records:
        if record.id == record_id:
            return record
    return None
