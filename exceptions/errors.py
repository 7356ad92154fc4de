"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict so
routes can return a uniform error envelope.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "UNRECOGNIZED_SCHEMA")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with current state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# SPREADSHEET ERRORS
# ===================

class SpreadsheetParseError(ValidationError):
    """Spreadsheet file could not be decoded."""

    def __init__(
        self,
        file_name: str,
        message: str = "Failed to read spreadsheet",
        details: Optional[dict] = None
    ):
        super().__init__(
            code="SPREADSHEET_PARSE_ERROR",
            message=message,
            details={"file_name": file_name, **(details or {})}
        )


class EmptyFileError(ValidationError):
    """File has no header plus data rows."""

    def __init__(self, file_name: str, row_count: int = 0):
        super().__init__(
            code="EMPTY_FILE",
            message="File must contain a header row and at least one data row",
            details={"file_name": file_name, "row_count": row_count}
        )


class UnrecognizedSchemaError(ValidationError):
    """No header matched any inventory field."""

    def __init__(self, headers: list[str], file_name: Optional[str] = None):
        super().__init__(
            code="UNRECOGNIZED_SCHEMA",
            message="No column could be matched to an inventory field",
            details={"file_name": file_name, "headers": headers}
        )


# ===================
# IMPORT ERRORS
# ===================

class ChunkCommitError(DatabaseError):
    """A batch upsert call failed; the whole chunk counts as errors."""

    def __init__(self, chunk_index: int, record_count: int, message: str):
        super().__init__(
            operation="upsert",
            message=message,
            details={"chunk": chunk_index, "record_count": record_count}
        )
        self.chunk_index = chunk_index
        self.record_count = record_count


class ImportPlanNotFoundError(NotFoundError):
    """Uploaded plan expired or never existed."""

    def __init__(self, plan_id: str):
        super().__init__(
            resource="Import plan",
            identifier=plan_id,
            code="IMPORT_PLAN_NOT_FOUND"
        )


class ImportJobStateError(ConflictError):
    """Import job cannot perform the requested transition."""

    def __init__(self, current_state: str, action: str):
        super().__init__(
            code="IMPORT_JOB_STATE",
            message=f"Cannot {action} while import job is {current_state}",
            details={"state": current_state, "action": action}
        )
