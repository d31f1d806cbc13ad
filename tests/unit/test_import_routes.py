"""
API tests for the spreadsheet import routes.

Run: pytest tests/unit/test_import_routes.py -v
"""

import asyncio
import threading

import httpx
import pytest

from services.import_service import ProductImportService

from tests.factories import (
    CategoryFactory,
    ExtractedProductFactory as Extracted,
    FakeExtractionProvider,
    build_result,
)


CSV_CONTENT = "Produto,Preço,Categoria\nCadeira X,\"R$ 199,90\",Cadeiras\n".encode("utf-8")


@pytest.fixture
def client(test_client_with_mock_db, import_service, monkeypatch):
    """Test client whose import service uses the fake provider."""
    monkeypatch.setattr("services.import_service._import_service", import_service)
    return test_client_with_mock_db


def _upload(client, content: bytes = CSV_CONTENT, filename: str = "produtos.csv"):
    return client.post("/api/import/preview", files={"file": (filename, content, "text/csv")})


class TestImportStatus:
    """Tests for GET /api/import/status"""

    def test_configured(self, client):
        response = client.get("/api/import/status")

        assert response.status_code == 200
        assert response.json() == {
            "aiConfigured": True,
            "model": "claude-sonnet-4-20250514",
            "batchSize": 50,
            "maxRows": 1000,
        }

    def test_not_configured(self, test_client_with_mock_db, import_config, monkeypatch):
        """Should report the importer as unavailable without a credential."""
        service = ProductImportService(config=import_config, provider=FakeExtractionProvider(configured=False))
        monkeypatch.setattr("services.import_service._import_service", service)

        body = test_client_with_mock_db.get("/api/import/status").json()

        assert body["aiConfigured"] is False
        assert body["model"] is None


class TestImportPreview:
    """Tests for POST /api/import/preview"""

    def test_returns_columns_and_sample(self, client):
        """Should parse the file and cache it under a preview id."""
        response = _upload(client)

        assert response.status_code == 200
        body = response.json()
        assert body["hasData"] is True
        assert body["previewId"]
        assert body["rowCount"] == 1
        assert body["columns"] == ["Produto", "Preço", "Categoria"]
        assert body["sampleRows"][0]["Preço"] == "R$ 199,90"

    def test_no_data_rows(self, client):
        """Should answer has_data=false instead of failing."""
        body = _upload(client, content=b"Produto,Preco\n").json()

        assert body["hasData"] is False
        assert body["rowCount"] == 0
        assert body["previewId"] is None

    def test_unreadable_file(self, client):
        """Should reject binary uploads with 422."""
        response = _upload(client, content=b"\x89PNG\r\n\x1a\n\x00\x00\x00", filename="foto.png")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "SPREADSHEET_PARSE_ERROR"


class TestImportExecute:
    """Tests for POST /api/import/{preview_id}/execute"""

    def test_runs_import(self, client, mock_supabase, fake_provider):
        """Should import the cached rows and return the summary."""
        # Arrange
        mock_supabase.set_table_data("categories", [CategoryFactory.create(name="Cadeiras")])
        fake_provider.results = [build_result(products=[
            Extracted.create(name="Cadeira X", price=199.9, category="Cadeiras")
        ])]
        preview_id = _upload(client).json()["previewId"]

        # Act
        response = client.post(
            f"/api/import/{preview_id}/execute",
            json={"columnMapping": {"name": "Produto", "price": "Preço"}},
        )

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["productsCreated"] == 1
        assert body["categoriesCreated"] == 0
        assert body["materialsCreated"] == 0
        assert body["errors"] == []
        assert fake_provider.requests[0].column_mapping.price == "Preço"

    def test_progress_after_run(self, client, mock_supabase):
        """Should expose the final progress snapshot."""
        preview_id = _upload(client).json()["previewId"]
        client.post(f"/api/import/{preview_id}/execute")

        body = client.get(f"/api/import/{preview_id}/progress").json()

        assert body["status"] == "done"

    def test_progress_before_run(self, client):
        """Should report idle for a preview that has not run."""
        preview_id = _upload(client).json()["previewId"]

        body = client.get(f"/api/import/{preview_id}/progress").json()

        assert body["status"] == "idle"
        assert body["total"] == 1

    def test_unknown_preview(self, client):
        response = client.post("/api/import/does-not-exist/execute")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "IMPORT_PREVIEW_NOT_FOUND"

    def test_unknown_preview_progress(self, client):
        assert client.get("/api/import/does-not-exist/progress").status_code == 404

    def test_concurrent_import_rejected(self, client, monkeypatch):
        """Should answer 409 while another import runs."""
        preview_id = _upload(client).json()["previewId"]
        held = asyncio.Lock()
        asyncio.run(held.acquire())
        monkeypatch.setattr("routes.imports._import_lock", held)

        response = client.post(f"/api/import/{preview_id}/execute")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "IMPORT_IN_PROGRESS"

    def test_progress_polled_while_running(self, client, import_service, mock_supabase, fake_provider, monkeypatch):
        """Should serve progress and reject a second run while products are being written."""
        # Arrange
        mock_supabase.set_table_data("categories", [CategoryFactory.create(name="Cadeiras")])
        fake_provider.results = [build_result(products=[
            Extracted.create(name="Cadeira X", price=199.9, category="Cadeiras")
        ])]
        preview_id = _upload(client).json()["previewId"]

        inserting = threading.Event()
        release = threading.Event()
        insert_product = import_service.product_service.insert_product

        def slow_insert(*args, **kwargs):
            inserting.set()
            release.wait(timeout=5)
            return insert_product(*args, **kwargs)

        monkeypatch.setattr(import_service.product_service, "insert_product", slow_insert)

        from main import app

        async def run():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
                execute = asyncio.create_task(http.post(f"/api/import/{preview_id}/execute"))
                try:
                    for _ in range(500):
                        if inserting.is_set():
                            break
                        await asyncio.sleep(0.01)
                    progress = await http.get(f"/api/import/{preview_id}/progress")
                    second = await http.post(f"/api/import/{preview_id}/execute")
                finally:
                    release.set()
                return progress, second, await execute

        # Act
        progress, second, finished = asyncio.run(run())

        # Assert
        assert progress.status_code == 200
        assert progress.json()["status"] == "creating"
        assert progress.json()["message"] == "Creating product 1 of 1: Cadeira X"
        assert second.status_code == 409
        assert finished.status_code == 200
        assert finished.json()["productsCreated"] == 1

    def test_ai_not_configured(self, test_client_with_mock_db, import_config, monkeypatch):
        """Should answer 503 and release the run lock."""
        service = ProductImportService(config=import_config, provider=FakeExtractionProvider(configured=False))
        monkeypatch.setattr("services.import_service._import_service", service)
        preview_id = _upload(test_client_with_mock_db).json()["previewId"]

        response = test_client_with_mock_db.post(f"/api/import/{preview_id}/execute")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "AI_NOT_CONFIGURED"

        import routes.imports
        assert not routes.imports._import_lock.locked()
        assert routes.imports._running_import is None
