"""
End-to-end inventory import tests.

Two workbooks go through the whole pipeline: decode, header mapping,
preview, subgroup normalization, dedup, key lookup and chunked upsert.

Scenario "Two Branches":
- matriz.xlsx: 600 rows, codes M0000..M0599
- filial.xlsx: 400 rows, codes F0000..F0399, the last 50 without a name
Expected: 950 records upserted, errors only from failed chunks.
"""

from unittest.mock import MagicMock

import pytest

from services.batch_upserter import BatchUpserter
from services.import_coordinator import ImportCoordinator, ImportState
from tests.conftest import FakeCatalogStore
from tests.factories import make_xlsx_bytes

# =====================
# SCENARIO
# =====================

HEADERS = ["Cód.", "Produto", "Família", "Pr. Custo", "Pr. Venda", "Qtde", "Un."]

MATRIZ_ROWS = [
    [f"M{i:04d}", f"Produto {i}", "Polpa de Fruta", "1.234,56", "1500,00", i, "UN"]
    for i in range(600)
]

FILIAL_ROWS = [
    [f"F{i:04d}", "" if i >= 350 else f"Filial {i}", "POLPA  DE FRUTA", "10,00", "12,00", 1, "KG"]
    for i in range(400)
]


@pytest.fixture
def workbooks() -> list[tuple[bytes, str]]:
    return [
        (make_xlsx_bytes(HEADERS, MATRIZ_ROWS), "matriz.xlsx"),
        (make_xlsx_bytes(HEADERS, FILIAL_ROWS), "filial.xlsx"),
    ]


def run_import(store: FakeCatalogStore, workbooks) -> ImportCoordinator:
    upserter = BatchUpserter(store, chunk_size=500, pause_ms=0, sleep=MagicMock())
    coordinator = ImportCoordinator(store, upserter=upserter, lookup_chunk_size=1000)
    for content, name in workbooks:
        assert coordinator.add_file(content, name) is not None
    coordinator.run()
    return coordinator


# =====================
# TESTS
# =====================

class TestTwoBranches:

    def test_preview(self, workbooks):
        coordinator = ImportCoordinator(FakeCatalogStore())
        for content, name in workbooks:
            coordinator.add_file(content, name)

        matriz, filial = coordinator.plans

        assert matriz.total_rows == 600
        assert matriz.invalid_count == 0
        assert filial.total_rows == 400
        assert filial.invalid_count == 50
        assert len(filial.errors) == 50
        assert {e.field for e in filial.errors} == {"name"}

    def test_950_records_upserted(self, workbooks):
        store = FakeCatalogStore()

        coordinator = run_import(store, workbooks)
        summary = coordinator.summary

        assert coordinator.state == ImportState.COMPLETED
        assert summary.files_processed == 2
        assert summary.total_inserted == 950
        assert summary.total_updated == 0
        assert summary.total_errors == 0
        assert len(store.rows) == 950
        assert [len(call) for call in store.upsert_calls] == [500, 100, 350]

    def test_values_normalized(self, workbooks):
        store = FakeCatalogStore()

        run_import(store, workbooks)

        matriz_row = store.rows["M0010"]
        assert matriz_row["cost_price"] == pytest.approx(1234.56)
        assert matriz_row["sale_price"] == pytest.approx(1500.0)
        assert matriz_row["stock_current"] == 10
        assert store.rows["F0000"]["unit"] == "KG"
        assert {row["subgroup"] for row in store.rows.values()} == {"POLPA DE FRUTA"}

    def test_second_run_updates(self, workbooks):
        store = FakeCatalogStore()
        run_import(store, workbooks)

        summary = run_import(store, workbooks).summary

        assert summary.total_inserted == 0
        assert summary.total_updated == 950

    def test_errors_only_from_failed_chunks(self, workbooks):
        """Second upsert call (matriz rows 500..599) fails."""
        store = FakeCatalogStore()
        store.fail_upsert_calls = {2}

        coordinator = run_import(store, workbooks)
        summary = coordinator.summary

        assert summary.total_errors == 100
        assert summary.total_inserted == 850
        assert "M0599" not in store.rows
        assert "F0349" in store.rows

        progress = coordinator.progress
        assert progress.current == progress.total == 1000
        assert progress.errors == 100
