"""Batch pipeline: discover bid tab text files and parse them."""
import time
from pathlib import Path
from typing import Dict, List, Optional
from uuid import uuid4

import structlog

from bidtabs.extractors.bid_file_parser import BidFileParser
from bidtabs.models.schemas import BidRecord, ParseFailure, ParseResult

logger = structlog.get_logger()

BID_FILE_SUFFIX = ".txt"


class Pipeline:
    """Parse every bid tab file under a directory."""

    def __init__(
        self,
        source_dir: str | Path,
        pattern: str = "**/*",
        encoding: str = "utf-8",
        parser: Optional[BidFileParser] = None,
    ):
        """Initialize pipeline.

        Args:
            source_dir: Directory containing bid tab text files
            pattern: Glob pattern relative to source_dir
            encoding: Text encoding of the files
            parser: Parser instance to use (a fresh one by default)
        """
        self.source_dir = Path(source_dir)
        self.pattern = pattern
        self.parser = parser or BidFileParser(encoding=encoding)
        self.results: List[ParseResult] = []
        self.run_id = uuid4().hex

        if not self.source_dir.exists():
            raise ValueError(f"Source directory does not exist: {self.source_dir}")

    def discover_files(self) -> List[Path]:
        """Find bid tab files (``.txt`` in any case) matching the pattern.

        Returns:
            Sorted list of file paths
        """
        files = sorted(
            path for path in self.source_dir.glob(self.pattern)
            if path.is_file() and path.suffix.lower() == BID_FILE_SUFFIX
        )
        logger.info("Discovered bid files", count=len(files), source_dir=str(self.source_dir))
        return files

    def process_file(self, path: Path) -> ParseResult:
        """Read and parse one file. Read errors become a failed result."""
        start_time = time.time()
        try:
            content = path.read_bytes()
        except OSError as e:
            processing_time = time.time() - start_time
            logger.error("Failed to read file", file=path.name, error=str(e))
            return ParseResult(
                filename=path.name,
                file_path=str(path),
                status="failed",
                failure=ParseFailure(filename=path.name, error=str(e)),
                processing_time=processing_time,
            )

        return self.parser.run_extraction(content, path.name, file_path=str(path))

    def process_directory(self) -> List[ParseResult]:
        """Process all discovered files; one bad file never stops the batch.

        Returns:
            List of per-file results
        """
        results = [self.process_file(path) for path in self.discover_files()]
        self.results = results

        summary = self.get_summary()
        logger.info(
            "Pipeline completed",
            run_id=self.run_id,
            total=summary["total_files"],
            successful=summary["successful"],
            partial=summary["partial"],
            failed=summary["failed"],
        )
        return results

    @property
    def records(self) -> List[BidRecord]:
        """Records from every file that parsed."""
        return [r.record for r in self.results if r.record is not None]

    @property
    def failures(self) -> List[ParseFailure]:
        return [r.failure for r in self.results if r.failure is not None]

    def get_summary(self) -> Dict:
        """Get pipeline execution summary.

        Returns:
            Dictionary with summary statistics
        """
        total = len(self.results)
        successful = sum(1 for r in self.results if r.status == "success")
        partial = sum(1 for r in self.results if r.status == "partial")
        failed = sum(1 for r in self.results if r.status == "failed")

        return {
            "run_id": self.run_id,
            "total_files": total,
            "successful": successful,
            "partial": partial,
            "failed": failed,
            "success_rate": f"{((successful + partial) / total * 100):.1f}%" if total > 0 else "0%",
        }
