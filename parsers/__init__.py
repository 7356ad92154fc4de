"""
Spreadsheet parsing module.

Decoding, header mapping, row coercion and advisory validation for
inventory imports.
"""

from parsers.spreadsheet_parser import (
    decode_spreadsheet,
    SpreadsheetGrid,
)
from parsers.header_mapper import map_headers, FIELD_KEYWORDS
from parsers.row_parser import (
    parse_row,
    parse_number,
    CandidateRecord,
)
from parsers.row_validator import validate_record, RowValidationError

__all__ = [
    "decode_spreadsheet",
    "SpreadsheetGrid",
    "map_headers",
    "FIELD_KEYWORDS",
    "parse_row",
    "parse_number",
    "CandidateRecord",
    "validate_record",
    "RowValidationError",
]
