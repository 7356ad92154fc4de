"""
Catalog service for the inventory_items table.

The import pipeline only needs three operations from the catalog: which
codes already exist, upsert by code, and the distinct subgroups in use.
CatalogStore describes that contract so the pipeline can run against any
implementation (tests use an in-memory fake).
"""

from typing import Optional, Protocol, Sequence
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

# PostgREST caps rows per response, so large reads are paged
SELECT_PAGE_SIZE = 1000


class CatalogStore(Protocol):
    def find_existing_codes(self, codes: Sequence[str]) -> set[str]:
        ...

    def upsert_by_code(self, rows: Sequence[dict]) -> None:
        ...

    def get_distinct_subgroups(self) -> list[str]:
        ...


class CatalogService:
    """
    Supabase-backed inventory catalog.

    Rows are keyed by the unique `code` column.
    """

    def __init__(self, table: Optional[str] = None):
        self.db = get_supabase_client()
        self.table = table or settings.catalog_table

    # ===================
    # READ OPERATIONS
    # ===================

    def find_existing_codes(self, codes: Sequence[str]) -> set[str]:
        """
        Return the subset of codes already in the catalog.

        Args:
            codes: Codes to look up (one lookup chunk)

        Returns:
            Set of codes that exist

        Raises:
            DatabaseError: If the query fails
        """
        if not codes:
            return set()

        logger.debug("finding_existing_codes", count=len(codes))

        try:
            result = (
                self.db.table(self.table)
                .select("code")
                .in_("code", list(codes))
                .execute()
            )

            return {row["code"] for row in result.data if row.get("code")}

        except Exception as e:
            logger.error(
                "find_existing_codes_failed",
                count=len(codes),
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def get_distinct_subgroups(self) -> list[str]:
        """
        Get every distinct non-null subgroup in the catalog.

        Order follows the catalog's code order so "first seen" is stable.

        Returns:
            Distinct subgroup values, first occurrence order

        Raises:
            DatabaseError: If the query fails
        """
        logger.debug("getting_distinct_subgroups")

        seen: dict[str, None] = {}
        offset = 0

        try:
            while True:
                result = (
                    self.db.table(self.table)
                    .select("subgroup")
                    .not_.is_("subgroup", "null")
                    .order("code")
                    .range(offset, offset + SELECT_PAGE_SIZE - 1)
                    .execute()
                )

                for row in result.data:
                    value = row.get("subgroup")
                    if value:
                        seen.setdefault(value, None)

                if len(result.data) < SELECT_PAGE_SIZE:
                    break
                offset += SELECT_PAGE_SIZE

        except Exception as e:
            logger.error("get_distinct_subgroups_failed", error=str(e))
            raise DatabaseError("select", str(e))

        logger.info("distinct_subgroups_retrieved", count=len(seen))
        return list(seen)

    # ===================
    # WRITE OPERATIONS
    # ===================

    def upsert_by_code(self, rows: Sequence[dict]) -> None:
        """
        Insert or fully overwrite rows keyed by code.

        Args:
            rows: Catalog rows (one upsert chunk)

        Raises:
            DatabaseError: If the upsert fails
        """
        if not rows:
            return

        logger.debug("upserting_catalog_rows", count=len(rows))

        try:
            self.db.table(self.table).upsert(
                list(rows),
                on_conflict="code",
                ignore_duplicates=False
            ).execute()

        except Exception as e:
            logger.error(
                "upsert_catalog_rows_failed",
                count=len(rows),
                error=str(e)
            )
            raise DatabaseError("upsert", str(e))


# Singleton instance for convenience
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
