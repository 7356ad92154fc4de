"""
Unit tests for CatalogService.

Run: pytest tests/unit/test_catalog_service.py -v
"""

import pytest

from services.catalog_service import CatalogService, SELECT_PAGE_SIZE
from exceptions import DatabaseError

TABLE = "inventory_items"


@pytest.fixture
def service(mock_db) -> CatalogService:
    return CatalogService(table=TABLE)


class TestFindExistingCodes:
    """Tests for CatalogService.find_existing_codes()"""

    def test_returns_matching_codes(self, service, mock_supabase):
        mock_supabase.set_table_data(TABLE, [
            {"code": "001"},
            {"code": "002"},
            {"code": "003"},
        ])

        result = service.find_existing_codes(["002", "003", "999"])

        assert result == {"002", "003"}

    def test_empty_input_skips_query(self, service, mock_supabase):
        mock_supabase.set_table_error(TABLE, RuntimeError("should not be called"))

        assert service.find_existing_codes([]) == set()

    def test_failure_raises_database_error(self, service, mock_supabase):
        mock_supabase.set_table_error(TABLE, RuntimeError("timeout"))

        with pytest.raises(DatabaseError) as exc_info:
            service.find_existing_codes(["001"])

        assert exc_info.value.details["operation"] == "select"


class TestUpsertByCode:
    """Tests for CatalogService.upsert_by_code()"""

    def test_upserts_on_code(self, service, mock_supabase):
        rows = [{"code": "001", "name": "Arroz"}]

        service.upsert_by_code(rows)

        calls = mock_supabase.table(TABLE).upsert_calls
        assert len(calls) == 1
        assert calls[0]["rows"] == rows
        assert calls[0]["on_conflict"] == "code"
        assert calls[0]["ignore_duplicates"] is False

    def test_empty_rows_skip_call(self, service, mock_supabase):
        service.upsert_by_code([])

        assert mock_supabase.table(TABLE).upsert_calls == []

    def test_failure_raises_database_error(self, service, mock_supabase):
        mock_supabase.set_table_error(TABLE, RuntimeError("duplicate key"))

        with pytest.raises(DatabaseError):
            service.upsert_by_code([{"code": "001", "name": "Arroz"}])


class TestGetDistinctSubgroups:
    """Tests for CatalogService.get_distinct_subgroups()"""

    def test_distinct_non_null_in_order(self, service, mock_supabase):
        mock_supabase.set_table_data(TABLE, [
            {"subgroup": "Bebidas"},
            {"subgroup": None},
            {"subgroup": "Laticínios"},
            {"subgroup": "Bebidas"},
        ])

        assert service.get_distinct_subgroups() == ["Bebidas", "Laticínios"]

    def test_reads_every_page(self, service, mock_supabase):
        rows = [{"subgroup": f"SG{i % 3}"} for i in range(SELECT_PAGE_SIZE)]
        rows.append({"subgroup": "LAST"})
        mock_supabase.set_table_data(TABLE, rows)

        assert service.get_distinct_subgroups() == ["SG0", "SG1", "SG2", "LAST"]

    def test_failure_raises_database_error(self, service, mock_supabase):
        mock_supabase.set_table_error(TABLE, RuntimeError("permission denied"))

        with pytest.raises(DatabaseError):
            service.get_distinct_subgroups()
