"""
Advisory validation for parsed inventory rows.

Errors are shown to the operator before commit. They never remove a row
from the import: only rows without both code and name are dropped, and
that happens at commit time, not here.
"""

from dataclasses import dataclass
from typing import Any

from models.inventory_item import CanonicalField
from parsers.row_parser import CandidateRecord, is_blank_cell, parse_number

MAX_CODE_LENGTH = 100
MAX_NAME_LENGTH = 255
MAX_BARCODE_LENGTH = 50


@dataclass
class RowValidationError:
    """Single field-level problem found in a row."""
    row: int
    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "row": self.row,
            "field": self.field,
            "message": self.message,
            "value": None if self.value is None else str(self.value),
        }


def validate_record(record: CandidateRecord) -> list[RowValidationError]:
    """
    Validate one parsed row.

    Numeric checks re-parse the raw cell from record.source, because the
    parser has already replaced bad input with defaults.

    Args:
        record: Parsed row

    Returns:
        All problems found, in rule order (may be empty)
    """
    errors: list[RowValidationError] = []
    row = record.row_number

    # Required text
    if not record.code.strip():
        errors.append(RowValidationError(row, "code", "Code is required", record.code))
    elif len(record.code) > MAX_CODE_LENGTH:
        errors.append(RowValidationError(
            row, "code", f"Code too long (max {MAX_CODE_LENGTH} characters)", record.code
        ))

    if not record.name.strip():
        errors.append(RowValidationError(row, "name", "Name is required", record.name))
    elif len(record.name) > MAX_NAME_LENGTH:
        errors.append(RowValidationError(
            row, "name", f"Name too long (max {MAX_NAME_LENGTH} characters)", record.name
        ))

    # Numeric
    for canonical, message in (
        (CanonicalField.COST_PRICE, "Invalid cost price"),
        (CanonicalField.SALE_PRICE, "Invalid sale price"),
    ):
        raw = record.source.get(canonical.value)
        if is_blank_cell(raw):
            continue
        parsed = parse_number(raw)
        if parsed is None or parsed < 0:
            errors.append(RowValidationError(row, canonical.value, message, raw))

    raw_stock = record.source.get(CanonicalField.STOCK_CURRENT.value)
    if not is_blank_cell(raw_stock) and parse_number(raw_stock) is None:
        errors.append(RowValidationError(
            row, CanonicalField.STOCK_CURRENT.value, "Invalid stock quantity", raw_stock
        ))

    # Optional, but bounded when present
    if record.barcode and len(record.barcode) > MAX_BARCODE_LENGTH:
        errors.append(RowValidationError(
            row, "barcode", f"Barcode too long (max {MAX_BARCODE_LENGTH} characters)", record.barcode
        ))

    return errors
