"""
Row parser for inventory spreadsheets.

Turns one raw row (list of cells) plus the file's column mapping into a
typed CandidateRecord. Coercion is lenient: bad numbers fall back to
defaults here, and the validator reports the bad input separately.
"""

from dataclasses import dataclass, field
import math
import numbers
import re
import time
from typing import Any, Optional, Sequence, TYPE_CHECKING

from models.inventory_item import (
    CanonicalField,
    ColumnMapping,
    FieldKind,
    FIELD_KINDS,
    NON_NEGATIVE_FIELDS,
    DEFAULT_UNIT,
)

if TYPE_CHECKING:
    from services.category_normalizer import SubgroupCatalog

_NUMBER_CHARS = re.compile(r"[^\d,.\-]")


@dataclass
class CandidateRecord:
    """Parsed inventory row ready for upsert."""
    row_index: int
    code: str = ""
    barcode: Optional[str] = None
    name: str = ""
    group: Optional[str] = None
    subgroup: Optional[str] = None
    reference: Optional[str] = None
    brand: Optional[str] = None
    cost_price: float = 0.0
    sale_price: float = 0.0
    promo_price: Optional[float] = None
    stock_current: float = 0.0
    stock_min: float = 0.0
    stock_max: float = 0.0
    tax_code: Optional[str] = None
    unit: Optional[str] = None
    gross_weight: Optional[float] = None
    net_weight: Optional[float] = None
    location: Optional[str] = None
    balance: Optional[float] = None
    # Raw cell per mapped field, before coercion
    source: dict[str, Any] = field(default_factory=dict)
    code_synthesized: bool = False

    @property
    def row_number(self) -> int:
        """Spreadsheet row number (header is row 1)."""
        return self.row_index + 2

    @property
    def is_importable(self) -> bool:
        """Rows need both a code and a name to reach the catalog."""
        return bool(self.code) and bool(self.name)

    def to_catalog_row(self) -> dict:
        """Convert to the dict sent to the catalog upsert."""
        row = {f.value: getattr(self, f.value) for f in CanonicalField}
        if not row[CanonicalField.UNIT.value]:
            row[CanonicalField.UNIT.value] = DEFAULT_UNIT
        return row


# ===================
# CELL COERCION
# ===================

def is_blank_cell(value: Any) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def is_blank_row(row: Sequence[Any]) -> bool:
    """True if every cell in the row is blank."""
    return all(is_blank_cell(cell) for cell in row)


def cell_to_text(value: Any) -> str:
    """
    Render a cell as trimmed text.

    Integral floats from spreadsheets render without the ".0" so codes and
    barcodes survive: 7891234567890.0 → "7891234567890".
    """
    if is_blank_cell(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, numbers.Real) and not isinstance(value, numbers.Integral):
        as_float = float(value)
        if as_float.is_integer():
            return str(int(as_float))
        return str(as_float)
    return str(value).strip()


def _resolve_separators(text: str) -> str:
    """
    Turn a cleaned numeric string into Python float syntax.

    "1.234,56" → "1234.56", "1,234.56" → "1234.56", "12,5" → "12.5",
    "1.234.567" → "1234567".
    """
    has_comma = "," in text
    has_dot = "." in text

    if has_comma and has_dot:
        # Right-most separator is the decimal one
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if has_comma:
        if text.count(",") > 1:
            return text.replace(",", "")
        return text.replace(",", ".")
    if text.count(".") > 1:
        return text.replace(".", "")
    return text


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a cell as a number.

    Strips everything except digits, comma, dot and minus, then resolves
    decimal/thousands separators.

    Returns:
        Float value, or None if the cell is blank or not a number
    """
    if is_blank_cell(value) or isinstance(value, bool):
        return None

    if isinstance(value, numbers.Number):
        try:
            result = float(value)
        except (TypeError, ValueError):
            return None
        return None if math.isnan(result) or math.isinf(result) else result

    cleaned = _NUMBER_CHARS.sub("", str(value))
    if not cleaned:
        return None

    try:
        result = float(_resolve_separators(cleaned))
    except ValueError:
        return None

    return None if math.isinf(result) else result


def coerce_required_number(value: Any, non_negative: bool = False) -> float:
    """Parse a number, defaulting to 0 when blank, invalid or disallowed."""
    parsed = parse_number(value)
    if parsed is None:
        return 0.0
    if non_negative and parsed < 0:
        return 0.0
    return parsed


def coerce_optional_number(value: Any) -> Optional[float]:
    """Parse a number, keeping None when blank or invalid."""
    return parse_number(value)


# ===================
# ROW PARSING
# ===================

def synthesize_code(row_index: int, timestamp_ms: Optional[int] = None) -> str:
    """Generate a placeholder code for rows that only carry a name."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"AUTO_{row_index + 1}_{timestamp_ms}"


def parse_row(
    row: Sequence[Any],
    mapping: ColumnMapping,
    row_index: int,
    subgroups: Optional["SubgroupCatalog"] = None,
    timestamp_ms: Optional[int] = None,
) -> CandidateRecord:
    """
    Parse one spreadsheet row.

    Args:
        row: Cell values in column order (may be shorter than the header)
        mapping: Column index → field for this file
        row_index: 0-based data row index (first row after the header is 0)
        subgroups: Shared subgroup catalog; when omitted subgroups are only
                   trimmed and uppercased
        timestamp_ms: Timestamp for synthesized codes (defaults to now)

    Returns:
        CandidateRecord with every field coerced
    """
    record = CandidateRecord(row_index=row_index)

    for column, canonical in mapping.items():
        value = row[column] if column < len(row) else None
        record.source[canonical.value] = value
        kind = FIELD_KINDS[canonical]

        if kind == FieldKind.REQUIRED_NUMERIC:
            coerced = coerce_required_number(
                value,
                non_negative=canonical in NON_NEGATIVE_FIELDS
            )
        elif kind == FieldKind.OPTIONAL_NUMERIC:
            coerced = coerce_optional_number(value)
        elif canonical == CanonicalField.SUBGROUP:
            coerced = _coerce_subgroup(value, subgroups)
        elif kind == FieldKind.REQUIRED_TEXT:
            coerced = cell_to_text(value)
        else:
            coerced = cell_to_text(value) or None

        setattr(record, canonical.value, coerced)

    if not record.code and record.name:
        record.code = synthesize_code(row_index, timestamp_ms)
        record.code_synthesized = True

    return record


def _coerce_subgroup(
    value: Any,
    subgroups: Optional["SubgroupCatalog"]
) -> Optional[str]:
    text = cell_to_text(value)
    if not text:
        return None
    if subgroups is None:
        return text.upper()
    return subgroups.resolve(text)
