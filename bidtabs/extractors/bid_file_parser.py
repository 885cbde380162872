"""Parser for plain-text bid tabulation files."""
import re
import threading
import time
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional, Union

from bidtabs.models.schemas import UNKNOWN, ZERO, Bidder, BidRecord, ParseFailure

from .base_extractor import BaseExtractor

DATE_LINE = re.compile(r"\bDATE\b")
DATE_PATTERN = re.compile(r"DATE\s+(\d{2})/(\d{2})/(\d{2})")
CONTRACT_MARKER = "CONTRACT NUMBER"
ESTIMATE_MARKER = "*****ESTIMATE*****"
ESTIMATE_PATTERN = re.compile(r"\$([0-9,]+\.\d{2})")
AMOUNT_PATTERN = re.compile(r"[0-9]+(?:\.[0-9]+)?|\.[0-9]+")
LEADING_TYPE = re.compile(r"^TYPE(?:\s+|$)")
BIDDER_TOKEN = "BIDDER"


class BidFileParser(BaseExtractor):
    """Extract a BidRecord from one bid tabulation text file.

    Each field is located independently by keyword. A missing or malformed
    field falls back to its default and is listed in
    ``BidRecord.defaulted_fields``; nothing here raises for odd input.
    """

    def __init__(self, encoding: str = "utf-8", clock: Optional[Callable[[], float]] = None):
        super().__init__(encoding=encoding)
        self._clock = clock or time.time
        self._last_stamp = 0
        self._stamp_lock = threading.Lock()

    def extract(self, text: str, filename: str) -> BidRecord:
        """Extract structured data from bid tab text.

        Returns:
            BidRecord with defaults substituted for missing fields
        """
        lines = text.split("\n")

        found = {
            "county": self._extract_county(lines),
            "project_type": self._extract_project_type(lines),
            "date": self._extract_date(lines),
            "contract_number": self._extract_contract_number(lines),
            "engineer_estimate": self._extract_estimate(lines),
        }
        defaults = {
            "county": UNKNOWN,
            "project_type": UNKNOWN,
            "date": UNKNOWN,
            "contract_number": UNKNOWN,
            "engineer_estimate": ZERO,
        }
        defaulted = [name for name, value in found.items() if value is None]
        values = {
            name: defaults[name] if value is None else value
            for name, value in found.items()
        }

        return BidRecord(
            id=self._make_id(filename),
            filename=filename,
            bidders=self._extract_bidders(lines),
            defaulted_fields=defaulted,
            **values,
        )

    def _make_id(self, filename: str) -> str:
        """Build ``<filename>-<epoch ms>``, bumping the stamp to stay unique."""
        stamp = int(self._clock() * 1000)
        with self._stamp_lock:
            if stamp <= self._last_stamp:
                stamp = self._last_stamp + 1
            self._last_stamp = stamp
        return f"{filename}-{stamp}"

    @staticmethod
    def _first_line(lines: List[str], predicate: Callable[[str], bool]) -> Optional[str]:
        for line in lines:
            if predicate(line):
                return line
        return None

    def _extract_county(self, lines: List[str]) -> Optional[str]:
        """Token following the first COUNTY token."""
        line = self._first_line(lines, lambda l: "COUNTY" in l.split())
        if line is None:
            return None
        tokens = line.split()
        idx = tokens.index("COUNTY")
        if idx + 1 >= len(tokens):
            return None
        return tokens[idx + 1]

    def _extract_project_type(self, lines: List[str]) -> Optional[str]:
        """First TYPE line, with the leading TYPE token removed."""
        line = self._first_line(lines, lambda l: "TYPE" in l.split())
        if line is None:
            return None
        value = LEADING_TYPE.sub("", line.strip()).strip()
        return value or None

    def _extract_date(self, lines: List[str]) -> Optional[str]:
        """ISO date from ``DATE MM/DD/YY``; the year is read as 20YY."""
        line = self._first_line(lines, lambda l: DATE_LINE.search(l) is not None)
        if line is None:
            return None
        match = DATE_PATTERN.search(line)
        if not match:
            return None
        month, day, year = (int(part) for part in match.groups())
        try:
            return date(2000 + year, month, day).isoformat()
        except ValueError:
            return None

    def _extract_contract_number(self, lines: List[str]) -> Optional[str]:
        """Last token on the first CONTRACT NUMBER line."""
        line = self._first_line(lines, lambda l: CONTRACT_MARKER in l)
        if line is None:
            return None
        stripped = line.strip()
        if stripped.endswith(CONTRACT_MARKER):
            return None
        return stripped.split()[-1]

    def _extract_estimate(self, lines: List[str]) -> Optional[Decimal]:
        """Dollar amount on the first estimate marker line."""
        line = self._first_line(lines, lambda l: ESTIMATE_MARKER in l)
        if line is None:
            return None
        match = ESTIMATE_PATTERN.search(line)
        if not match:
            return None
        return self._parse_amount(match.group(1))

    def _extract_bidders(self, lines: List[str]) -> List[Bidder]:
        """Bidders from every ``BIDDER ... $amount name`` line, in file order."""
        bidders: List[Bidder] = []
        for line in lines:
            parts = line.split()
            if not parts or parts[0] != BIDDER_TOKEN or "$" not in line:
                continue

            amount_idx = next(
                (i for i, part in enumerate(parts) if part.startswith("$")),
                None,
            )
            if not amount_idx:
                continue

            amount = self._parse_amount(parts[amount_idx])
            if amount is None:
                continue

            bidders.append(Bidder(
                number=parts[0][len(BIDDER_TOKEN):] + parts[1],
                name=" ".join(parts[amount_idx + 1:]),
                amount=amount,
            ))
        return bidders

    @staticmethod
    def _parse_amount(value: str) -> Optional[Decimal]:
        """Parse a currency string, stripping ``$`` and thousands separators.

        Only the leading numeric run counts, so footnote marks such as
        ``$950,000.00*`` keep their amount.
        """
        cleaned = value.replace("$", "").replace(",", "").strip()
        match = AMOUNT_PATTERN.match(cleaned)
        if not match:
            return None
        return Decimal(match.group(0))


_default_parser = BidFileParser()


def parse_bid_file(content: Union[str, bytes], filename: str) -> Union[BidRecord, ParseFailure]:
    """Parse one bid tabulation file.

    Args:
        content: File text, or raw bytes decoded as UTF-8
        filename: Source file name, used for the record id

    Returns:
        BidRecord, or ParseFailure when bytes cannot be decoded
    """
    return _default_parser.parse(content, filename)
