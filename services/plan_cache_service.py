"""
Temporary storage for uploaded import plans.

Uploaded plans are collected in one pending ImportCoordinator until commit;
each plan expires after a TTL. The cache also holds the most recent import
job so progress can be polled after commit. Single-server only.
"""
from datetime import datetime, timedelta
from typing import Optional
import threading

from config import settings
from exceptions import ImportPlanNotFoundError
from services.import_coordinator import ImportCoordinator, RejectedFile
from services.import_plan_service import FileImportPlan

_lock = threading.Lock()
_pending: Optional[ImportCoordinator] = None
_expires: dict[str, datetime] = {}
_current_job: Optional[ImportCoordinator] = None


def store_plan(plan: FileImportPlan, ttl_minutes: Optional[int] = None) -> str:
    """Add a plan to the pending job (same file name replaces). Returns plan_id."""
    if ttl_minutes is None:
        ttl_minutes = settings.import_plan_ttl_minutes
    with _lock:
        pending = _pending_job()
        pending.add_plan(plan)
        live = {p.plan_id for p in pending.plans}
        for plan_id in [k for k in _expires if k not in live]:
            del _expires[plan_id]
        _expires[plan.plan_id] = datetime.now() + timedelta(minutes=ttl_minutes)
    return plan.plan_id


def record_rejection(file_name: str, code: str, reason: str) -> RejectedFile:
    with _lock:
        return _pending_job().reject_file(file_name, code, reason)


def list_plans() -> list[FileImportPlan]:
    """All live plans in upload order."""
    with _lock:
        if _pending is None:
            return []
        _cleanup_expired()
        return _pending.plans


def list_rejections() -> list[RejectedFile]:
    with _lock:
        return _pending.rejected_files if _pending is not None else []


def delete_plan(plan_id: str) -> FileImportPlan:
    """
    Remove one pending plan.

    Raises:
        ImportPlanNotFoundError: If the plan is unknown or expired
    """
    with _lock:
        if _pending is None:
            raise ImportPlanNotFoundError(plan_id)
        _cleanup_expired()
        _expires.pop(plan_id, None)
        return _pending.remove_plan(plan_id)


def take_pending_job() -> Optional[ImportCoordinator]:
    """Hand over the pending job for commit; the next upload starts a new one."""
    global _pending
    with _lock:
        if _pending is not None:
            _cleanup_expired()
        job, _pending = _pending, None
        _expires.clear()
        return job


def clear_plans() -> None:
    """Drop every pending plan and rejection."""
    global _pending
    with _lock:
        _pending = None
        _expires.clear()


def set_current_job(job: ImportCoordinator) -> None:
    global _current_job
    with _lock:
        _current_job = job


def get_current_job() -> Optional[ImportCoordinator]:
    with _lock:
        return _current_job


def clear_current_job() -> None:
    global _current_job
    with _lock:
        _current_job = None


def _pending_job() -> ImportCoordinator:
    """Pending job, created on first use. Caller holds the lock."""
    global _pending
    if _pending is None:
        _pending = ImportCoordinator(store=None)
    return _pending


def _cleanup_expired() -> None:
    """Remove all expired plans. Caller holds the lock."""
    now = datetime.now()
    expired = [k for k, exp in _expires.items() if now > exp]
    for k in expired:
        del _expires[k]
        _pending.remove_plan(k)
