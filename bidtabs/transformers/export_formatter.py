"""Assemble records and statistics into a portable JSON snapshot."""
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

import structlog

from bidtabs.models.schemas import BidRecord, ExportSnapshot
from bidtabs.pipeline.aggregation import summarize

logger = structlog.get_logger()


def build_snapshot(
    records: Iterable[BidRecord],
    generated_at: Optional[datetime] = None,
) -> ExportSnapshot:
    """Bundle records with their portfolio statistics and a UTC timestamp."""
    records = list(records)
    return ExportSnapshot(
        bids=records,
        statistics=summarize(records),
        exported_at=generated_at or datetime.now(timezone.utc),
        total_projects=len(records),
    )


def dump_snapshot(snapshot: ExportSnapshot, indent: Optional[int] = 2) -> str:
    """Render a snapshot as JSON using the camelCase field names."""
    return snapshot.model_dump_json(by_alias=True, indent=indent)


def parse_snapshot(text: str | bytes) -> ExportSnapshot:
    """Load a snapshot back from JSON.

    Derived fields in the document are ignored and recomputed.

    Raises:
        pydantic.ValidationError: if the document does not match the snapshot shape
    """
    return ExportSnapshot.model_validate_json(text)


def default_export_filename(when: datetime) -> str:
    return f"txbids-export-{when.date().isoformat()}.json"


def write_snapshot(snapshot: ExportSnapshot, path: str | Path) -> Path:
    """Write the snapshot JSON to ``path``.

    A directory path gets the default dated filename inside it.
    """
    output_path = Path(path)
    if output_path.is_dir():
        output_path = output_path / default_export_filename(snapshot.exported_at)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(dump_snapshot(snapshot))

    logger.info(
        "Snapshot written",
        path=str(output_path),
        projects=snapshot.total_projects,
    )
    return output_path
