"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

import pytest
from unittest.mock import patch
from typing import Generator

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, table: "MockSupabaseTable", data: list):
        self._table = table
        self._data = data
        self._negate = False
        self._upsert_rows = None

    def select(self, *args, **kwargs):
        return self

    def in_(self, column, values):
        values = set(values)
        self._data = [row for row in self._data if row.get(column) in values]
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def is_(self, column, value):
        # Only "null" is used
        if self._negate:
            self._data = [row for row in self._data if row.get(column) is not None]
        else:
            self._data = [row for row in self._data if row.get(column) is None]
        self._negate = False
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if row.get(column) == value]
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        self._data = self._data[start:end + 1]
        return self

    def limit(self, count):
        self._data = self._data[:count]
        return self

    def upsert(self, data, on_conflict=None, ignore_duplicates=False):
        self._upsert_rows = data if isinstance(data, list) else [data]
        self._table.upsert_calls.append({
            "rows": self._upsert_rows,
            "on_conflict": on_conflict,
            "ignore_duplicates": ignore_duplicates,
        })
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._table.error is not None:
            raise self._table.error
        if self._upsert_rows is not None:
            return MockSupabaseResponse(data=self._upsert_rows)
        return MockSupabaseResponse(data=self._data)


class MockSupabaseTable:
    """Mock Supabase table with configurable rows; records upserts."""

    def __init__(self, data: list = None):
        self._data = data or []
        self.upsert_calls: list[dict] = []
        self.error = None

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, self._data.copy())

    def upsert(self, data, **kwargs):
        return MockSupabaseQuery(self, []).upsert(data, **kwargs)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure mock rows for a table."""
        self._tables[table_name] = MockSupabaseTable(data)

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self.table(table_name).error = error

    def table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# FAKE CATALOG STORE
# ===================

class FakeCatalogStore:
    """
    In-memory catalog keyed by code.

    Usage:
        store = FakeCatalogStore(rows=[{"code": "A1", "subgroup": "BEBIDAS"}])
        store.fail_upsert_calls = {2}   # second upsert call raises
    """

    def __init__(self, rows: list = None):
        self.rows: dict[str, dict] = {row["code"]: dict(row) for row in rows or []}
        self.lookup_calls: list[list[str]] = []
        self.upsert_calls: list[list[dict]] = []
        self.fail_upsert_calls: set[int] = set()
        self.fail_lookup = False
        self.fail_subgroups = False

    def find_existing_codes(self, codes):
        self.lookup_calls.append(list(codes))
        if self.fail_lookup:
            raise RuntimeError("lookup timed out")
        return {code for code in codes if code in self.rows}

    def upsert_by_code(self, rows):
        self.upsert_calls.append(list(rows))
        if len(self.upsert_calls) in self.fail_upsert_calls:
            raise RuntimeError("connection reset by peer")
        for row in rows:
            self.rows[row["code"]] = dict(row)

    def get_distinct_subgroups(self):
        if self.fail_subgroups:
            raise RuntimeError("permission denied")
        seen = {}
        for row in self.rows.values():
            if row.get("subgroup"):
                seen.setdefault(row["subgroup"], None)
        return list(seen)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("inventory_items", [
                {"code": "001", "subgroup": "BEBIDAS"}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Any CatalogService created inside the test gets the mock client.
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def fake_store() -> FakeCatalogStore:
    """Empty in-memory catalog."""
    return FakeCatalogStore()


@pytest.fixture(autouse=True)
def clean_plan_cache() -> Generator:
    """Pending plans and the current job are module state; reset around each test."""
    from services import plan_cache_service

    plan_cache_service.clear_plans()
    plan_cache_service.clear_current_job()
    yield
    plan_cache_service.clear_plans()
    plan_cache_service.clear_current_job()


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_store(fake_store):
    """
    Create FastAPI test client whose import jobs use the fake catalog.

    Usage:
        def test_endpoint(test_client_with_store, fake_store):
            response = test_client_with_store.get("/api/imports/plans")
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("config.database.check_connection", return_value={"status": "healthy", "catalog_count": 0}):
        with patch("main.check_connection", return_value={"status": "healthy", "catalog_count": 0}):
            with patch("routes.imports.get_catalog_service", return_value=fake_store):
                yield TestClient(app)
