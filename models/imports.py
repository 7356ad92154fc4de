"""
Inventory import API models.

Response shapes for upload previews, job progress and the final summary.
"""

from datetime import datetime
from typing import Optional, Literal
from pydantic import Field

from models.base import BaseSchema


# ===================
# UPLOAD PREVIEW
# ===================

class RowErrorResponse(BaseSchema):
    """One advisory validation problem."""
    row: int = Field(..., ge=2, description="Spreadsheet row number (header is row 1)")
    field: str
    message: str
    value: Optional[str] = None


class ImportPlanResponse(BaseSchema):
    """Preview of one accepted file."""
    plan_id: str
    file_name: str
    total_rows: int = Field(..., ge=0)
    valid_count: int = Field(..., ge=0)
    invalid_count: int = Field(..., ge=0)
    errors: list[RowErrorResponse] = Field(default_factory=list)
    errors_truncated: bool = False
    mapped_columns: dict[str, str] = Field(
        default_factory=dict,
        description="Header text → inventory field"
    )
    created_at: datetime

    @classmethod
    def from_plan(cls, plan) -> "ImportPlanResponse":
        """Build from a FileImportPlan."""
        return cls(
            plan_id=plan.plan_id,
            file_name=plan.file_name,
            total_rows=plan.total_rows,
            valid_count=plan.valid_count,
            invalid_count=plan.invalid_count,
            errors=[RowErrorResponse(**e.to_dict()) for e in plan.errors],
            errors_truncated=plan.errors_truncated,
            mapped_columns=plan.mapped_columns,
            created_at=plan.created_at,
        )


class RejectedFileResponse(BaseSchema):
    """File refused at upload."""
    file_name: str
    code: str
    reason: str


class ImportUploadResponse(BaseSchema):
    """Result of uploading one or more spreadsheets."""
    plans: list[ImportPlanResponse] = Field(default_factory=list)
    rejected: list[RejectedFileResponse] = Field(default_factory=list)
    total_rows: int = 0
    valid_count: int = 0
    invalid_count: int = 0

    @classmethod
    def from_results(cls, plans: list, rejected: list) -> "ImportUploadResponse":
        previews = [ImportPlanResponse.from_plan(p) for p in plans]
        return cls(
            plans=previews,
            rejected=[
                RejectedFileResponse(file_name=r.file_name, code=r.code, reason=r.reason)
                for r in rejected
            ],
            total_rows=sum(p.total_rows for p in previews),
            valid_count=sum(p.valid_count for p in previews),
            invalid_count=sum(p.invalid_count for p in previews),
        )


# ===================
# JOB STATUS
# ===================

class ImportProgressResponse(BaseSchema):
    current: int = 0
    total: int = 0
    inserted: int = 0
    updated: int = 0
    errors: int = 0
    current_file: str = ""
    percent: float = Field(0.0, ge=0, le=100)

    @classmethod
    def from_progress(cls, progress) -> "ImportProgressResponse":
        percent = 0.0
        if progress.total > 0:
            percent = round(min(progress.current / progress.total, 1.0) * 100, 1)
        return cls(
            current=progress.current,
            total=progress.total,
            inserted=progress.inserted,
            updated=progress.updated,
            errors=progress.errors,
            current_file=progress.current_file,
            percent=percent,
        )


class ImportSummaryResponse(BaseSchema):
    files_processed: int
    total_inserted: int
    total_updated: int
    total_errors: int
    rejected_files: list[RejectedFileResponse] = Field(default_factory=list)
    stopped: bool = False

    @classmethod
    def from_summary(cls, summary) -> "ImportSummaryResponse":
        return cls(
            files_processed=summary.files_processed,
            total_inserted=summary.total_inserted,
            total_updated=summary.total_updated,
            total_errors=summary.total_errors,
            rejected_files=[
                RejectedFileResponse(file_name=r.file_name, code=r.code, reason=r.reason)
                for r in summary.rejected_files
            ],
            stopped=summary.stopped,
        )


class ImportStatusResponse(BaseSchema):
    """Current import job state, polled by the client."""
    state: Literal["idle", "queued", "running", "completed"]
    progress: ImportProgressResponse
    summary: Optional[ImportSummaryResponse] = None
    stop_requested: bool = False
