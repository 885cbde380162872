"""Data validation using business rules."""
from decimal import Decimal
from typing import Dict, List, Tuple

import structlog

from bidtabs.models.schemas import ZERO, BidRecord

logger = structlog.get_logger()


class RecordValidator:
    """Validate parsed bid records against business rules.

    Every rule returns an ``(is_valid, message)`` tuple; none of them raise.
    """

    def validate_derived_fields(self, record: BidRecord) -> Tuple[bool, str]:
        """Check lowest bid and percentage difference against their inputs.

        Args:
            record: Parsed record

        Returns:
            (is_valid, message) tuple
        """
        expected_lowest = min((b.amount for b in record.bidders), default=ZERO)
        if record.lowest_bid != expected_lowest:
            return False, f"Lowest bid mismatch: {record.lowest_bid} != {expected_lowest}"

        if record.engineer_estimate == 0 and record.diff_from_estimate != 0:
            return False, "Difference from estimate set without an estimate"

        return True, "Derived fields validated"

    def validate_completeness(self, record: BidRecord) -> Tuple[bool, str]:
        """Report metadata fields that fell back to their defaults."""
        if record.defaulted_fields:
            return False, f"Missing fields: {', '.join(record.defaulted_fields)}"
        return True, "All metadata fields found"

    def validate_bidders_present(self, record: BidRecord) -> Tuple[bool, str]:
        if not record.bidders:
            return False, "No bidders found"
        return True, f"{len(record.bidders)} bidders found"

    def validate_bidder_outliers(self, record: BidRecord) -> Tuple[bool, str]:
        """Flag bids outside the 1.5 IQR fences.

        Needs at least four bids to say anything.
        """
        amounts = sorted(b.amount for b in record.bidders)
        if len(amounts) < 4:
            return True, "Insufficient bids for outlier check"

        q1 = self._quartile(amounts, Decimal("0.25"))
        q3 = self._quartile(amounts, Decimal("0.75"))
        fence = (q3 - q1) * Decimal("1.5")
        low, high = q1 - fence, q3 + fence

        outliers = [
            f"{b.name}=${b.amount}" for b in record.bidders
            if b.amount < low or b.amount > high
        ]
        if outliers:
            return False, f"Outlier bids: {'; '.join(outliers)}"
        return True, "No outlier bids"

    @staticmethod
    def _quartile(values: List[Decimal], q: Decimal) -> Decimal:
        # linear interpolation between closest ranks
        pos = (len(values) - 1) * q
        lower = int(pos)
        upper = min(lower + 1, len(values) - 1)
        return values[lower] + (values[upper] - values[lower]) * (pos - lower)

    def validate_all(self, record: BidRecord) -> Dict:
        """Run all validation rules.

        Args:
            record: Parsed record

        Returns:
            Validation report dictionary
        """
        validations = {
            "derived_fields": self.validate_derived_fields(record),
            "completeness": self.validate_completeness(record),
            "bidders_present": self.validate_bidders_present(record),
            "bidder_outliers": self.validate_bidder_outliers(record),
        }

        all_valid = all(result[0] for result in validations.values())

        messages = {
            rule: msg
            for rule, (valid, msg) in validations.items()
        }

        report = {
            "valid": all_valid,
            "validations": validations,
            "messages": messages,
            "record_id": record.id,
            "filename": record.filename,
        }

        if not all_valid:
            logger.warning(
                "Validation failed",
                file=record.filename,
                failed_rules=[k for k, (v, _) in validations.items() if not v],
            )

        return report
