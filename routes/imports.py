"""
Inventory import API routes.

Two-step flow: upload files for a preview, then commit every pending
plan as one background job and poll its progress.
"""

from fastapi import APIRouter, BackgroundTasks, UploadFile, File
from fastapi.responses import JSONResponse
import structlog

from config import settings
from models.imports import (
    ImportPlanResponse,
    ImportUploadResponse,
    ImportProgressResponse,
    ImportSummaryResponse,
    ImportStatusResponse,
)
from services.catalog_service import get_catalog_service
from services.import_coordinator import ImportCoordinator, ImportState
from services.import_plan_service import load_file_plan
from services import plan_cache_service as plan_cache
from exceptions import (
    AppError,
    ValidationError,
    ImportJobStateError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

BUSY_STATES = (ImportState.QUEUED, ImportState.RUNNING)


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# UPLOAD / PLANS
# ===================

@router.post("/files", response_model=ImportUploadResponse)
async def upload_files(files: list[UploadFile] = File(...)):
    """
    Upload one or more spreadsheets for preview.

    Each file is decoded, mapped and validated independently. Files that
    cannot be used are listed under `rejected`; the rest become pending
    plans. Re-uploading a file name replaces its plan.
    """
    logger.info("import_upload_started", files=len(files))

    try:
        accepted = []
        rejected = []

        for upload in files:
            file_name = upload.filename or "upload"
            content = await upload.read()

            if len(content) > settings.max_upload_size_bytes:
                rejected.append(plan_cache.record_rejection(
                    file_name,
                    "FILE_TOO_LARGE",
                    f"File exceeds {settings.import_max_upload_size_mb} MB"
                ))
                continue

            try:
                plan = load_file_plan(content, file_name)
            except AppError as e:
                rejected.append(plan_cache.record_rejection(file_name, e.code, e.message))
                continue

            plan_cache.store_plan(plan)
            accepted.append(plan)

        logger.info(
            "import_upload_completed",
            accepted=len(accepted),
            rejected=len(rejected)
        )

        return ImportUploadResponse.from_results(accepted, rejected)

    except Exception as e:
        return handle_error(e)


@router.get("/plans", response_model=list[ImportPlanResponse])
async def list_plans():
    """List pending plans in upload order."""
    try:
        return [ImportPlanResponse.from_plan(p) for p in plan_cache.list_plans()]
    except Exception as e:
        return handle_error(e)


@router.delete("/plans/{plan_id}", status_code=204)
async def delete_plan(plan_id: str):
    """
    Remove one pending plan.

    Raises:
        404: Plan not found or expired
    """
    try:
        plan_cache.delete_plan(plan_id)
        logger.info("import_plan_deleted", plan_id=plan_id)
        return None
    except Exception as e:
        return handle_error(e)


@router.delete("/plans", status_code=204)
async def clear_plans():
    """Remove every pending plan and rejection."""
    try:
        plan_cache.clear_plans()
        logger.info("import_plans_cleared")
        return None
    except Exception as e:
        return handle_error(e)


# ===================
# JOB
# ===================

@router.post("/commit", response_model=ImportStatusResponse, status_code=202)
async def commit_import(background_tasks: BackgroundTasks):
    """
    Commit every pending plan as one import job.

    The job runs in the background; poll GET /progress.

    Raises:
        409: A job is already queued or running
        422: No pending plans
    """
    try:
        current = plan_cache.get_current_job()
        if current is not None and current.state in BUSY_STATES:
            raise ImportJobStateError(current.state.value, "start import")

        plans = plan_cache.list_plans()
        if not plans:
            raise ValidationError(
                message="No files to import",
                code="NO_IMPORT_PLANS"
            )

        store = get_catalog_service()
        coordinator = plan_cache.take_pending_job()
        coordinator.store = store
        coordinator.queue()
        plan_cache.set_current_job(coordinator)

        background_tasks.add_task(_run_job, coordinator)

        logger.info(
            "import_commit_started",
            files=len(plans),
            total_rows=sum(p.total_rows for p in plans)
        )

        return _status(coordinator)

    except Exception as e:
        return handle_error(e)


@router.get("/progress", response_model=ImportStatusResponse)
async def get_progress():
    """Current job state, progress and (when completed) summary."""
    try:
        coordinator = plan_cache.get_current_job()
        if coordinator is None:
            return ImportStatusResponse(
                state=ImportState.IDLE.value,
                progress=ImportProgressResponse()
            )
        return _status(coordinator)
    except Exception as e:
        return handle_error(e)


@router.post("/stop", response_model=ImportStatusResponse)
async def stop_import():
    """
    Ask the queued or running job to stop before its next chunk.

    Raises:
        409: No job is running
    """
    try:
        coordinator = plan_cache.get_current_job()
        if coordinator is None or coordinator.state not in BUSY_STATES:
            state = coordinator.state.value if coordinator else ImportState.IDLE.value
            raise ImportJobStateError(state, "stop import")

        coordinator.request_stop()
        return _status(coordinator)
    except Exception as e:
        return handle_error(e)


# ===================
# HELPERS
# ===================

def _run_job(coordinator: ImportCoordinator) -> None:
    """Background task body. Errors are logged; the job state records the end."""
    try:
        coordinator.run()
    except Exception as e:
        logger.error("import_job_failed", error=str(e), type=type(e).__name__)


def _status(coordinator: ImportCoordinator) -> ImportStatusResponse:
    summary = None
    if coordinator.summary is not None:
        summary = ImportSummaryResponse.from_summary(coordinator.summary)

    return ImportStatusResponse(
        state=coordinator.state.value,
        progress=ImportProgressResponse.from_progress(coordinator.progress),
        summary=summary,
        stop_requested=coordinator.stop_requested
    )
