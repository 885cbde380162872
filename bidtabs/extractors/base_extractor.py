"""Base extractor interface."""
import time
from abc import ABC, abstractmethod
from typing import Optional, Union

import structlog

from bidtabs.models.schemas import BidRecord, ParseFailure, ParseResult

logger = structlog.get_logger()

# Fields whose presence drives the confidence score
SCORED_FIELDS = (
    "county",
    "project_type",
    "date",
    "contract_number",
    "engineer_estimate",
    "bidders",
)


class BaseExtractor(ABC):
    """Base class for bid tabulation text extractors."""

    def __init__(self, encoding: str = "utf-8"):
        """Initialize extractor.

        Args:
            encoding: Encoding used when raw bytes are handed in
        """
        self.encoding = encoding
        self.extraction_method = self.__class__.__name__

    def decode(self, content: Union[str, bytes]) -> str:
        """Return content as text, decoding bytes strictly.

        Raises:
            UnicodeDecodeError: if bytes are not valid in the configured encoding
        """
        if isinstance(content, str):
            return content
        return bytes(content).decode(self.encoding)

    @abstractmethod
    def extract(self, text: str, filename: str) -> BidRecord:
        """Extract a record from decoded text.

        This method must be implemented by subclasses and must not raise
        for missing fields.
        """
        pass

    def parse(self, content: Union[str, bytes], filename: str) -> Union[BidRecord, ParseFailure]:
        """Parse one file's content into a record, or a failure if it is not text."""
        try:
            text = self.decode(content)
        except (UnicodeDecodeError, LookupError) as e:
            logger.warning(
                "Failed to decode bid file",
                file=filename,
                encoding=self.encoding,
                error=str(e),
            )
            return ParseFailure(filename=filename, error=f"Cannot decode as {self.encoding}: {e}")
        return self.extract(text, filename)

    def run_extraction(
        self,
        content: Union[str, bytes],
        filename: str,
        file_path: Optional[str] = None,
    ) -> ParseResult:
        """Run the parse with timing and error handling.

        Returns:
            ParseResult with status success, partial or failed
        """
        start_time = time.time()
        logger.info("Starting extraction", file=filename, method=self.extraction_method)

        try:
            outcome = self.parse(content, filename)
        except Exception as e:
            processing_time = time.time() - start_time
            logger.error(
                "Extraction failed",
                file=filename,
                method=self.extraction_method,
                error=str(e),
                processing_time=f"{processing_time:.2f}s",
            )
            return ParseResult(
                filename=filename,
                file_path=file_path,
                status="failed",
                failure=ParseFailure(filename=filename, error=str(e)),
                processing_time=processing_time,
            )

        processing_time = time.time() - start_time

        if isinstance(outcome, ParseFailure):
            return ParseResult(
                filename=filename,
                file_path=file_path,
                status="failed",
                failure=outcome,
                processing_time=processing_time,
            )

        status = "success"
        if outcome.defaulted_fields or not outcome.bidders:
            status = "partial"

        logger.info(
            "Extraction completed",
            file=filename,
            method=self.extraction_method,
            status=status,
            bidders=len(outcome.bidders),
            processing_time=f"{processing_time:.2f}s",
        )

        return ParseResult(
            filename=filename,
            file_path=file_path,
            status=status,
            record=outcome,
            defaulted_fields=list(outcome.defaulted_fields),
            confidence_score=self.calculate_confidence_score(outcome),
            processing_time=processing_time,
        )

    def calculate_confidence_score(self, record: BidRecord) -> float:
        """Calculate confidence score based on completeness of the record.

        Returns:
            Share of scored fields that were found, between 0 and 1
        """
        found = 0
        for field in SCORED_FIELDS:
            if field == "bidders":
                found += 1 if record.bidders else 0
            elif field not in record.defaulted_fields:
                found += 1
        return found / len(SCORED_FIELDS)
