"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Spreadsheet
    SpreadsheetParseError,
    EmptyFileError,
    UnrecognizedSchemaError,

    # Import
    ChunkCommitError,
    ImportPlanNotFoundError,
    ImportJobStateError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Spreadsheet
    "SpreadsheetParseError",
    "EmptyFileError",
    "UnrecognizedSchemaError",

    # Import
    "ChunkCommitError",
    "ImportPlanNotFoundError",
    "ImportJobStateError",
]
