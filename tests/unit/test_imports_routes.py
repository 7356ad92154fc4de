"""
API tests for /api/imports.

Run: pytest tests/unit/test_imports_routes.py -v
"""

from tests.factories import make_csv_bytes, make_xlsx_bytes

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _upload(client, *files):
    return client.post(
        "/api/imports/files",
        files=[("files", (name, content, XLSX)) for name, content in files],
    )


def _estoque(rows=None) -> bytes:
    return make_xlsx_bytes(
        ["Código", "Descrição", "Preço Custo", "Estoque"],
        rows or [["001", "Arroz", "10,50", 3], ["002", "Feijão", "-5", 1]],
    )


class TestUploadFiles:
    """Tests for POST /api/imports/files"""

    def test_preview(self, test_client_with_store):
        response = _upload(test_client_with_store, ("estoque.xlsx", _estoque()))

        assert response.status_code == 200
        body = response.json()
        assert len(body["plans"]) == 1
        plan = body["plans"][0]
        assert plan["file_name"] == "estoque.xlsx"
        assert plan["total_rows"] == 2
        assert plan["valid_count"] == 1
        assert plan["invalid_count"] == 1
        assert plan["errors"][0] == {
            "row": 3,
            "field": "cost_price",
            "message": "Invalid cost price",
            "value": "-5",
        }
        assert plan["mapped_columns"]["Código"] == "code"
        assert body["rejected"] == []

    def test_rejected_files_listed(self, test_client_with_store):
        response = _upload(
            test_client_with_store,
            ("estoque.xlsx", _estoque()),
            ("lixo.xlsx", make_xlsx_bytes(["foo", "bar"], [["1", "2"]])),
            ("vazio.csv", b""),
        )

        body = response.json()
        assert [p["file_name"] for p in body["plans"]] == ["estoque.xlsx"]
        assert {r["file_name"]: r["code"] for r in body["rejected"]} == {
            "lixo.xlsx": "UNRECOGNIZED_SCHEMA",
            "vazio.csv": "EMPTY_FILE",
        }

    def test_csv_upload(self, test_client_with_store):
        content = make_csv_bytes(["Código", "Descrição"], [["001", "Arroz"]])

        response = test_client_with_store.post(
            "/api/imports/files",
            files=[("files", ("estoque.csv", content, "text/csv"))],
        )

        assert response.json()["plans"][0]["valid_count"] == 1


class TestPlans:
    """Tests for GET/DELETE /api/imports/plans"""

    def test_list_and_delete(self, test_client_with_store):
        plan_id = _upload(test_client_with_store, ("estoque.xlsx", _estoque())).json()["plans"][0]["plan_id"]

        listed = test_client_with_store.get("/api/imports/plans").json()
        assert [p["plan_id"] for p in listed] == [plan_id]

        assert test_client_with_store.delete(f"/api/imports/plans/{plan_id}").status_code == 204
        assert test_client_with_store.get("/api/imports/plans").json() == []

    def test_delete_unknown(self, test_client_with_store):
        response = test_client_with_store.delete("/api/imports/plans/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "IMPORT_PLAN_NOT_FOUND"

    def test_clear(self, test_client_with_store):
        _upload(test_client_with_store, ("estoque.xlsx", _estoque()))

        assert test_client_with_store.delete("/api/imports/plans").status_code == 204
        assert test_client_with_store.get("/api/imports/plans").json() == []


class TestCommit:
    """Tests for POST /api/imports/commit and GET /api/imports/progress"""

    def test_commit_runs_job(self, test_client_with_store, fake_store):
        _upload(test_client_with_store, ("estoque.xlsx", _estoque()))

        response = test_client_with_store.post("/api/imports/commit")
        assert response.status_code == 202

        # Background tasks finish before TestClient returns
        status = test_client_with_store.get("/api/imports/progress").json()
        assert status["state"] == "completed"
        assert status["summary"]["total_inserted"] == 2
        assert status["summary"]["total_errors"] == 0
        assert status["progress"]["percent"] == 100.0
        assert fake_store.rows["002"]["cost_price"] == 0
        assert test_client_with_store.get("/api/imports/plans").json() == []

    def test_commit_without_plans(self, test_client_with_store):
        response = test_client_with_store.post("/api/imports/commit")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NO_IMPORT_PLANS"

    def test_commit_while_running(self, test_client_with_store):
        from services import plan_cache_service as plan_cache
        from services.import_coordinator import ImportCoordinator, ImportState

        running = ImportCoordinator(store=None)
        running._state = ImportState.RUNNING
        plan_cache.set_current_job(running)
        _upload(test_client_with_store, ("estoque.xlsx", _estoque()))

        response = test_client_with_store.post("/api/imports/commit")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "IMPORT_JOB_STATE"

    def test_commit_reports_queued(self, test_client_with_store):
        _upload(test_client_with_store, ("estoque.xlsx", _estoque()))

        response = test_client_with_store.post("/api/imports/commit")

        assert response.status_code == 202
        assert response.json()["state"] == "queued"

    def test_commit_while_queued(self, test_client_with_store):
        from services import plan_cache_service as plan_cache
        from services.import_coordinator import ImportCoordinator

        queued = ImportCoordinator(store=None)
        queued.queue()
        plan_cache.set_current_job(queued)
        _upload(test_client_with_store, ("estoque.xlsx", _estoque()))

        response = test_client_with_store.post("/api/imports/commit")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "IMPORT_JOB_STATE"
        assert len(test_client_with_store.get("/api/imports/plans").json()) == 1

    def test_stop_while_queued(self, test_client_with_store):
        from services import plan_cache_service as plan_cache
        from services.import_coordinator import ImportCoordinator

        queued = ImportCoordinator(store=None)
        queued.queue()
        plan_cache.set_current_job(queued)

        response = test_client_with_store.post("/api/imports/stop")

        assert response.status_code == 200
        assert response.json()["stop_requested"] is True

    def test_rejections_reach_summary(self, test_client_with_store):
        _upload(
            test_client_with_store,
            ("estoque.xlsx", _estoque()),
            ("vazio.csv", b""),
        )

        test_client_with_store.post("/api/imports/commit")

        summary = test_client_with_store.get("/api/imports/progress").json()["summary"]
        assert [r["file_name"] for r in summary["rejected_files"]] == ["vazio.csv"]

    def test_progress_when_idle(self, test_client_with_store):
        status = test_client_with_store.get("/api/imports/progress").json()

        assert status["state"] == "idle"
        assert status["summary"] is None

    def test_stop_without_job(self, test_client_with_store):
        assert test_client_with_store.post("/api/imports/stop").status_code == 409
