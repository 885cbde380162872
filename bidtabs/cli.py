"""Command line entry point: parse a directory of bid tabs and report."""
import argparse
from typing import List, Optional

import structlog

from bidtabs.config import Settings
from bidtabs.logging_config import configure_logging
from bidtabs.models.schemas import (
    BidRecord,
    FilterCriteria,
    PortfolioStatistics,
    SortDirection,
    SortKey,
)
from bidtabs.pipeline.aggregation import summarize
from bidtabs.pipeline.filter_sort import filter_and_sort
from bidtabs.pipeline.orchestrator import Pipeline
from bidtabs.transformers.export_formatter import build_snapshot, write_snapshot
from bidtabs.validators.business_rules import RecordValidator

logger = structlog.get_logger()


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Aggregate plain-text bid tabulation files"
    )
    parser.add_argument(
        "source_dir",
        nargs="?",
        default=settings.source_dir,
        help="Directory containing bid tab .TXT files (default: BIDTABS_SOURCE_DIR)"
    )
    parser.add_argument(
        "--pattern",
        default=settings.file_pattern,
        help=f"Glob pattern for bid files (default: {settings.file_pattern})"
    )
    parser.add_argument("--county", help="Filter by county (substring, any case)")
    parser.add_argument("--project-type", help="Filter by project type (substring, any case)")
    parser.add_argument("--contract-number", help="Filter by contract number (substring)")
    parser.add_argument("--bidder", help="Filter by any bidder name (substring, any case)")
    parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=settings.sort_key.value,
        help="Sort key"
    )
    parser.add_argument(
        "--direction",
        choices=[d.value for d in SortDirection],
        default=settings.sort_direction.value,
        help="Sort direction"
    )
    parser.add_argument(
        "--output",
        default=settings.export_path,
        help="Write a JSON snapshot of all parsed records to this file or directory"
    )
    parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Only print summary statistics"
    )
    parser.add_argument(
        "--top-bidders",
        type=int,
        default=10,
        help="Number of ledger entries to print (default: 10)"
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Run business rule checks on each record"
    )
    parser.add_argument(
        "--log-format",
        choices=["console", "json"],
        default=settings.log_format,
        help="Log renderer"
    )
    return parser


def print_records(records: List[BidRecord]) -> None:
    print(f"{'Date':<11} {'County':<14} {'Contract #':<16} {'Estimate':>16} {'Lowest Bid':>16} {'% Diff':>8}  Project Type")
    print("-" * 100)
    for record in records:
        print(
            f"{record.date:<11} {record.county:<14} {record.contract_number:<16} "
            f"{record.engineer_estimate:>16,.2f} {record.lowest_bid:>16,.2f} "
            f"{record.diff_from_estimate:>7.2f}%  {record.project_type}"
        )


def print_statistics(statistics: PortfolioStatistics, total_projects: int, top_bidders: int) -> None:
    print("\n" + "=" * 60)
    print("PORTFOLIO STATISTICS")
    print("=" * 60)
    print(f"Total projects: {total_projects}")
    print(f"Total bids submitted: {statistics.total_bidders}")
    print(f"Avg engineer estimate: ${statistics.avg_engineer_estimate:,.2f}")
    print(f"Avg lowest bid: ${statistics.avg_lowest_bid:,.2f}")
    print(f"Avg % difference: {statistics.avg_diff_from_estimate:.2f}%")
    print(f"Counties: {', '.join(statistics.counties_covered)}")
    print(f"Project types: {', '.join(statistics.project_types)}")

    if statistics.bidder_stats and top_bidders > 0:
        print("\nTop bidders (by wins):")
        for entry in statistics.bidder_stats[:top_bidders]:
            print(
                f"  {entry.name}: {entry.win_count}/{entry.bid_count} wins, "
                f"avg ${entry.avg_bid_amount:,.2f}"
            )
    print("=" * 60 + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.error("Invalid configuration", error=str(e))
        print(f"Invalid configuration: {e}")
        return 1

    args = build_parser(settings).parse_args(argv)
    configure_logging(args.log_format, settings.log_level)

    if not args.source_dir:
        print("No source directory given (argument or BIDTABS_SOURCE_DIR)")
        return 2

    try:
        pipeline = Pipeline(args.source_dir, pattern=args.pattern, encoding=settings.encoding)
    except ValueError as e:
        logger.error("Cannot start pipeline", error=str(e))
        print(str(e))
        return 1

    pipeline.process_directory()
    summary = pipeline.get_summary()
    records = pipeline.records

    print("\n" + "=" * 60)
    print("PIPELINE EXECUTION SUMMARY")
    print("=" * 60)
    print(f"Total files processed: {summary['total_files']}")
    print(f"Successful: {summary['successful']}")
    print(f"Partial: {summary['partial']}")
    print(f"Failed: {summary['failed']}")
    print(f"Success rate: {summary['success_rate']}")
    for failure in pipeline.failures:
        print(f"  {failure.filename}: {failure.error}")
    print("=" * 60 + "\n")

    if args.validate:
        validator = RecordValidator()
        for record in records:
            report = validator.validate_all(record)
            if not report["valid"]:
                failed = [rule for rule, (valid, _) in report["validations"].items() if not valid]
                print(f"{record.filename}: " + "; ".join(report["messages"][rule] for rule in failed))

    if not args.summary_only:
        criteria = FilterCriteria(
            county=args.county,
            project_type=args.project_type,
            contract_number=args.contract_number,
            bidder_name=args.bidder,
        )
        shown = filter_and_sort(records, criteria, args.sort, args.direction)
        print(f"Bid Results ({len(shown)} of {len(records)})")
        print_records(shown)

    print_statistics(summarize(records), len(records), args.top_bidders)

    if args.output:
        path = write_snapshot(build_snapshot(records), args.output)
        print(f"Snapshot saved to: {path}")

    return 0
