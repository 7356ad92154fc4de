"""
Import job coordinator.

Owns one import job: the accepted file plans, the job's subgroup catalog,
live progress and the final summary. Files and chunks run strictly in
sequence on the caller's thread; other threads may poll progress and
request a stop.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional
import threading
import structlog

from config import settings
from exceptions import AppError, ImportJobStateError, ImportPlanNotFoundError
from parsers.spreadsheet_parser import FileSource
from services.batch_upserter import BatchUpserter, UpsertResult, dedupe_by_code
from services.catalog_service import CatalogStore
from services.category_normalizer import SubgroupCatalog
from services.import_plan_service import FileImportPlan, load_file_plan, rebuild_records
from services.key_resolver import resolve_existing_keys

logger = structlog.get_logger(__name__)


class ImportState(str, Enum):
    IDLE = "idle"
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class ImportProgress:
    """
    Live job counters.

    Written only by the coordinator; readers get copies via snapshot().
    """
    current: int = 0
    total: int = 0
    inserted: int = 0
    updated: int = 0
    errors: int = 0
    current_file: str = ""
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def update(self, **values) -> None:
        with self._lock:
            for name, value in values.items():
                setattr(self, name, value)

    def snapshot(self) -> "ImportProgress":
        with self._lock:
            return replace(self)


@dataclass
class RejectedFile:
    """A file refused before any row was processed."""
    file_name: str
    code: str
    reason: str


@dataclass
class ImportSummary:
    files_processed: int = 0
    total_inserted: int = 0
    total_updated: int = 0
    total_errors: int = 0
    rejected_files: list[RejectedFile] = field(default_factory=list)
    stopped: bool = False


class ImportCoordinator:
    """
    Runs one multi-file import job.

    Example:
        coordinator = ImportCoordinator(get_catalog_service())
        coordinator.add_file("estoque.xlsx", "estoque.xlsx")
        summary = coordinator.run()

    `store` may be None while plans are collected; set it before run().
    """

    def __init__(
        self,
        store: Optional[CatalogStore],
        upserter: Optional[BatchUpserter] = None,
        lookup_chunk_size: Optional[int] = None,
    ):
        self.store = store
        self.upserter = upserter
        self.lookup_chunk_size = lookup_chunk_size or settings.import_lookup_chunk_size
        self.subgroups = SubgroupCatalog()
        self.summary: Optional[ImportSummary] = None

        self._plans: dict[str, FileImportPlan] = {}
        self._rejected: list[RejectedFile] = []
        self._progress = ImportProgress()
        self._state = ImportState.IDLE
        self._state_lock = threading.Lock()
        self._stop = threading.Event()

    # ===================
    # PLANS
    # ===================

    @property
    def plans(self) -> list[FileImportPlan]:
        """Accepted plans in upload order."""
        return list(self._plans.values())

    @property
    def rejected_files(self) -> list[RejectedFile]:
        return list(self._rejected)

    def add_plan(self, plan: FileImportPlan) -> None:
        """Accept a plan; a plan with the same file name is replaced."""
        self._require_idle("add a file")

        for plan_id, existing in list(self._plans.items()):
            if existing.file_name == plan.file_name:
                del self._plans[plan_id]
                logger.info(
                    "import_plan_replaced",
                    file_name=plan.file_name,
                    old_plan_id=plan_id
                )

        self._plans[plan.plan_id] = plan

    def add_file(self, file: FileSource, file_name: str) -> Optional[FileImportPlan]:
        """
        Decode and plan one file.

        Files that cannot be read, are empty or have no recognizable
        columns are recorded as rejected instead of raising.

        Returns:
            The accepted plan, or None if the file was rejected
        """
        self._require_idle("add a file")

        try:
            plan = load_file_plan(file, file_name)
        except AppError as e:
            self.reject_file(file_name, e.code, e.message)
            return None

        self.add_plan(plan)
        return plan

    def reject_file(self, file_name: str, code: str, reason: str) -> RejectedFile:
        logger.warning("import_file_rejected", file_name=file_name, code=code, reason=reason)
        rejected = RejectedFile(file_name=file_name, code=code, reason=reason)
        self._rejected.append(rejected)
        return rejected

    def remove_plan(self, plan_id: str) -> FileImportPlan:
        """
        Drop a plan before commit.

        Raises:
            ImportPlanNotFoundError: If no plan has this id
        """
        self._require_idle("remove a file")

        plan = self._plans.pop(plan_id, None)
        if plan is None:
            raise ImportPlanNotFoundError(plan_id)
        return plan

    # ===================
    # JOB STATE
    # ===================

    @property
    def state(self) -> ImportState:
        return self._state

    @property
    def progress(self) -> ImportProgress:
        return self._progress.snapshot()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        """Ask a queued or running job to stop before its next chunk or file."""
        if self._state in (ImportState.QUEUED, ImportState.RUNNING):
            logger.info("import_stop_requested")
        self._stop.set()

    def _require_idle(self, action: str) -> None:
        if self._state != ImportState.IDLE:
            raise ImportJobStateError(self._state.value, action)

    def queue(self) -> None:
        """
        Reserve the job for a later run(); plans are frozen from here on.

        Raises:
            ImportJobStateError: If the job is not idle
        """
        with self._state_lock:
            self._require_idle("queue import")
            self._state = ImportState.QUEUED

    # ===================
    # RUN
    # ===================

    def run(self) -> ImportSummary:
        """
        Commit every accepted plan.

        Chunk failures are counted, not raised. Only a stop request ends
        the job early.

        Returns:
            ImportSummary

        Raises:
            ImportJobStateError: If the job already ran or is running
        """
        with self._state_lock:
            if self._state not in (ImportState.IDLE, ImportState.QUEUED):
                raise ImportJobStateError(self._state.value, "start import")
            self._state = ImportState.RUNNING

        if self.upserter is None:
            self.upserter = BatchUpserter(self.store)

        try:
            summary = self._run_files()
        finally:
            self._state = ImportState.COMPLETED

        self.summary = summary
        logger.info(
            "import_completed",
            files=summary.files_processed,
            inserted=summary.total_inserted,
            updated=summary.total_updated,
            errors=summary.total_errors,
            rejected=len(summary.rejected_files),
            stopped=summary.stopped
        )
        return summary

    def _run_files(self) -> ImportSummary:
        plans = self.plans
        summary = ImportSummary(rejected_files=self.rejected_files)

        self._seed_subgroups()

        total = sum(plan.total_rows for plan in plans)
        self._progress.update(current=0, total=total, inserted=0, updated=0, errors=0, current_file="")

        logger.info("import_started", files=len(plans), total_rows=total)

        rows_done = 0

        for plan in plans:
            if self._stop.is_set():
                summary.stopped = True
                break

            self._progress.update(current_file=plan.file_name)
            result = self._run_file(plan, rows_done, summary)

            summary.total_inserted += result.inserted
            summary.total_updated += result.updated
            summary.total_errors += result.errors

            if result.stopped:
                summary.stopped = True
                break

            summary.files_processed += 1
            rows_done += plan.total_rows
            self._progress.update(current=rows_done)

        return summary

    def _run_file(
        self,
        plan: FileImportPlan,
        rows_done: int,
        totals: ImportSummary,
    ) -> UpsertResult:
        records = rebuild_records(plan, self.subgroups)
        unique = dedupe_by_code(records)
        existing = resolve_existing_keys(
            self.store,
            [record.code for record in unique],
            chunk_size=self.lookup_chunk_size
        )

        logger.info(
            "import_file_started",
            file_name=plan.file_name,
            rows=plan.total_rows,
            unique_records=len(unique),
            existing=len(existing)
        )

        def on_chunk(result: UpsertResult) -> None:
            self._progress.update(
                current=rows_done + result.processed,
                inserted=totals.total_inserted + result.inserted,
                updated=totals.total_updated + result.updated,
                errors=totals.total_errors + result.errors,
            )

        return self.upserter.upsert(
            unique,
            existing,
            on_chunk=on_chunk,
            should_stop=self._stop.is_set
        )

    def _seed_subgroups(self) -> None:
        try:
            values = self.store.get_distinct_subgroups()
        except Exception as e:
            logger.warning("subgroup_seed_failed", error=str(e))
            return
        self.subgroups.seed(values)
