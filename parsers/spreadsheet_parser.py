"""
Spreadsheet decoder for inventory uploads.

Reads CSV or Excel files into a header row plus data rows of raw cells.
Only the first sheet of a workbook is read. Column meaning is not decided
here; see parsers.header_mapper.
"""

from dataclasses import dataclass, field
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any, Union
import structlog

import pandas as pd

from exceptions import SpreadsheetParseError, EmptyFileError
from parsers.row_parser import is_blank_row, cell_to_text

logger = structlog.get_logger(__name__)

CSV_EXTENSIONS = {".csv", ".txt"}
EXCEL_EXTENSIONS = {".xlsx", ".xlsm", ".xls"}
CSV_ENCODINGS = ("utf-8-sig", "latin-1")
CSV_DELIMITERS = (";", ",", "\t", "|")

FileSource = Union[str, Path, bytes, BytesIO]


@dataclass
class SpreadsheetGrid:
    """Decoded spreadsheet: header cells plus non-blank data rows."""
    file_name: str
    headers: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def decode_spreadsheet(file: FileSource, file_name: str) -> SpreadsheetGrid:
    """
    Decode a spreadsheet file into a grid.

    Args:
        file: File path, raw bytes or file-like object
        file_name: Original file name (extension selects the reader)

    Returns:
        SpreadsheetGrid with trimmed headers and raw data cells

    Raises:
        SpreadsheetParseError: If the file cannot be read
        EmptyFileError: If there is no header plus at least one data row
    """
    logger.info("decoding_spreadsheet", file_name=file_name)

    if isinstance(file, bytes):
        if not file.strip():
            raise EmptyFileError(file_name=file_name)
        file = BytesIO(file)

    extension = Path(file_name).suffix.lower()

    try:
        if extension in CSV_EXTENSIONS:
            df = _read_csv(file)
        elif extension in EXCEL_EXTENSIONS:
            engine = "openpyxl" if extension != ".xls" else None
            df = pd.read_excel(file, sheet_name=0, header=None, dtype=object, engine=engine)
        else:
            raise SpreadsheetParseError(
                file_name=file_name,
                message=f"Unsupported file type: {extension or 'none'}",
                details={"supported": sorted(CSV_EXTENSIONS | EXCEL_EXTENSIONS)}
            )
    except SpreadsheetParseError:
        raise
    except pd.errors.EmptyDataError:
        raise EmptyFileError(file_name=file_name)
    except Exception as e:
        logger.error("spreadsheet_read_failed", file_name=file_name, error=str(e))
        raise SpreadsheetParseError(
            file_name=file_name,
            details={"original_error": str(e)}
        ) from e

    grid = _to_grid(df, file_name)

    logger.info(
        "spreadsheet_decoded",
        file_name=file_name,
        columns=len(grid.headers),
        rows=grid.row_count
    )

    return grid


def _read_csv(file: Union[str, Path, BytesIO]) -> pd.DataFrame:
    """Read CSV as text cells; UTF-8 first, then Latin-1."""
    raw = file.getvalue() if isinstance(file, BytesIO) else Path(file).read_bytes()

    text = None
    for encoding in CSV_ENCODINGS:
        try:
            text = raw.decode(encoding)
            break
        except UnicodeDecodeError:
            continue

    return pd.read_csv(
        StringIO(text),
        header=None,
        dtype=str,
        keep_default_na=False,
        sep=infer_delimiter(text),
    )


def infer_delimiter(text: str) -> str:
    """Most frequent delimiter in the header line; comma when there is none."""
    first_line = text.splitlines()[0] if text.strip() else ""
    counts = [(delimiter, first_line.count(delimiter)) for delimiter in CSV_DELIMITERS]
    delimiter, count = max(counts, key=lambda item: item[1])
    return delimiter if count > 0 else ","


def _to_grid(df: pd.DataFrame, file_name: str) -> SpreadsheetGrid:
    """Split a header-less DataFrame into header and non-blank data rows."""
    all_rows = df.astype(object).where(pd.notna(df), None).values.tolist()

    if len(all_rows) < 2:
        raise EmptyFileError(file_name=file_name, row_count=len(all_rows))

    headers = [cell_to_text(cell) for cell in all_rows[0]]
    rows = [row for row in all_rows[1:] if not is_blank_row(row)]

    if not rows:
        raise EmptyFileError(file_name=file_name, row_count=1)

    return SpreadsheetGrid(file_name=file_name, headers=headers, rows=rows)
