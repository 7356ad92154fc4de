"""
Import plan service.

Builds one FileImportPlan per uploaded spreadsheet: the preview shown to
the operator before commit (row counts, capped validation errors, column
mapping). The plan keeps the raw rows so commit can re-parse them against
the job's subgroup catalog.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
import time
import uuid
import structlog

from config import settings
from models.inventory_item import ColumnMapping
from parsers.spreadsheet_parser import decode_spreadsheet, FileSource, SpreadsheetGrid
from parsers.header_mapper import map_headers
from parsers.row_parser import parse_row, CandidateRecord
from parsers.row_validator import validate_record, RowValidationError
from services.category_normalizer import SubgroupCatalog

logger = structlog.get_logger(__name__)


@dataclass
class FileImportPlan:
    """Preview statistics and raw rows for one uploaded file."""
    file_name: str
    headers: list[str]
    rows: list[list[Any]]
    column_mapping: ColumnMapping
    total_rows: int
    valid_count: int
    invalid_count: int
    errors: list[RowValidationError] = field(default_factory=list)
    error_total: int = 0
    plan_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def mapped_columns(self) -> dict[str, str]:
        """Header text → field name for every mapped column."""
        return {
            self.headers[index] if index < len(self.headers) else str(index): canonical.value
            for index, canonical in sorted(self.column_mapping.items())
        }

    @property
    def errors_truncated(self) -> bool:
        """True if more problems exist than the error list shows."""
        return len(self.errors) < self.error_total


def build_file_plan(
    grid: SpreadsheetGrid,
    max_errors_per_file: Optional[int] = None,
    max_errors_per_row: Optional[int] = None,
) -> FileImportPlan:
    """
    Map headers, parse and validate every row of one file.

    Counts are exact; only the error detail list is capped (earliest
    errors kept).

    Args:
        grid: Decoded spreadsheet
        max_errors_per_file: Cap on the error list (default from settings)
        max_errors_per_row: Cap on errors kept per row (default from settings)

    Returns:
        FileImportPlan

    Raises:
        UnrecognizedSchemaError: If no header maps to a field
    """
    if max_errors_per_file is None:
        max_errors_per_file = settings.import_max_errors_per_file
    if max_errors_per_row is None:
        max_errors_per_row = settings.import_max_errors_per_row

    mapping = map_headers(grid.headers, file_name=grid.file_name)

    errors: list[RowValidationError] = []
    valid_count = 0
    invalid_count = 0
    error_total = 0

    for row_index, row in enumerate(grid.rows):
        record = parse_row(row, mapping, row_index)
        row_errors = validate_record(record)

        if not row_errors:
            valid_count += 1
            continue

        invalid_count += 1
        error_total += len(row_errors)
        room = max_errors_per_file - len(errors)
        if room > 0:
            errors.extend(row_errors[:min(max_errors_per_row, room)])

    plan = FileImportPlan(
        file_name=grid.file_name,
        headers=grid.headers,
        rows=grid.rows,
        column_mapping=mapping,
        total_rows=grid.row_count,
        valid_count=valid_count,
        invalid_count=invalid_count,
        errors=errors,
        error_total=error_total,
    )

    logger.info(
        "file_plan_built",
        file_name=plan.file_name,
        plan_id=plan.plan_id,
        total_rows=plan.total_rows,
        valid=plan.valid_count,
        invalid=plan.invalid_count,
        errors_shown=len(plan.errors)
    )

    return plan


def load_file_plan(file: FileSource, file_name: str) -> FileImportPlan:
    """
    Decode a spreadsheet and build its plan.

    Raises:
        SpreadsheetParseError: If the file cannot be read
        EmptyFileError: If the file has no data rows
        UnrecognizedSchemaError: If no header maps to a field
    """
    grid = decode_spreadsheet(file, file_name)
    return build_file_plan(grid)


def rebuild_records(
    plan: FileImportPlan,
    subgroups: SubgroupCatalog,
    timestamp_ms: Optional[int] = None,
) -> list[CandidateRecord]:
    """
    Re-parse every row of a plan for commit.

    Subgroups resolve against the job's shared catalog, so parse order
    across files decides which spelling becomes canonical.

    Args:
        plan: Plan built at upload time
        subgroups: Job-scoped subgroup catalog (mutated)
        timestamp_ms: Timestamp for synthesized codes (defaults to now)

    Returns:
        One CandidateRecord per data row, including non-importable ones
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    return [
        parse_row(row, plan.column_mapping, row_index, subgroups=subgroups, timestamp_ms=timestamp_ms)
        for row_index, row in enumerate(plan.rows)
    ]
