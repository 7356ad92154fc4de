"""
Business logic services.

Each service handles one stage of the inventory import.
"""

from services.catalog_service import CatalogService, CatalogStore, get_catalog_service
from services.category_normalizer import SubgroupCatalog
from services.import_plan_service import (
    FileImportPlan,
    build_file_plan,
    load_file_plan,
    rebuild_records,
)
from services.key_resolver import resolve_existing_keys
from services.batch_upserter import BatchUpserter, UpsertResult, dedupe_by_code
from services.import_coordinator import (
    ImportCoordinator,
    ImportProgress,
    ImportState,
    ImportSummary,
    RejectedFile,
)

__all__ = [
    "CatalogService",
    "CatalogStore",
    "get_catalog_service",
    "SubgroupCatalog",
    "FileImportPlan",
    "build_file_plan",
    "load_file_plan",
    "rebuild_records",
    "resolve_existing_keys",
    "BatchUpserter",
    "UpsertResult",
    "dedupe_by_code",
    "ImportCoordinator",
    "ImportProgress",
    "ImportState",
    "ImportSummary",
    "RejectedFile",
]
