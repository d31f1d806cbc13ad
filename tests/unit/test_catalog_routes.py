"""
API tests for catalog CRUD routes.

Run: pytest tests/unit/test_catalog_routes.py -v
"""

from tests.factories import CategoryFactory, DimensionFactory, MaterialFactory, ProductFactory


class TestCategoryRoutes:
    """Tests for /api/categories"""

    def test_list(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("categories", [CategoryFactory.create(name="Sofás")])

        response = test_client_with_mock_db.get("/api/categories")

        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Sofás"]

    def test_create(self, test_client_with_mock_db):
        response = test_client_with_mock_db.post("/api/categories", json={"name": "Mesas de Centro"})

        assert response.status_code == 201
        assert response.json()["slug"] == "mesas-de-centro"

    def test_duplicate_name(self, test_client_with_mock_db, mock_supabase):
        """Should answer 409 for a name that exists in another case."""
        mock_supabase.set_table_data("categories", [CategoryFactory.create(name="Mesas")])

        response = test_client_with_mock_db.post("/api/categories", json={"name": "MESAS"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CATEGORY_NAME_EXISTS"

    def test_get_missing(self, test_client_with_mock_db):
        response = test_client_with_mock_db.get("/api/categories/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"


class TestMaterialRoutes:
    """Tests for /api/materials"""

    def test_create_normalizes_hex(self, test_client_with_mock_db):
        response = test_client_with_mock_db.post(
            "/api/materials", json={"name": "Verde Musgo", "type": "fabric", "hex_code": "4a5d23"}
        )

        assert response.status_code == 201
        assert response.json()["hex_code"] == "#4A5D23"

    def test_filter_by_type(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("materials", [
            MaterialFactory.create(name="Nogueira", type="wood"),
            MaterialFactory.create(name="Veludo", type="fabric"),
        ])

        response = test_client_with_mock_db.get("/api/materials", params={"type": "fabric"})

        assert [m["name"] for m in response.json()] == ["Veludo"]


class TestDimensionRoutes:
    """Tests for /api/dimensions"""

    def test_delete(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("dimensions", [DimensionFactory.create(id="dim-1")])

        response = test_client_with_mock_db.delete("/api/dimensions/dim-1")

        assert response.status_code == 204
        assert mock_supabase.rows("dimensions") == []


class TestProductRoutes:
    """Tests for /api/products"""

    def test_list_paginated(self, test_client_with_mock_db, mock_supabase):
        """Should return one page plus totals."""
        mock_supabase.set_table_data("categories", [CategoryFactory.create(id="cat-1")])
        mock_supabase.set_table_data("products", [
            ProductFactory.create(category_id="cat-1") for _ in range(3)
        ])

        response = test_client_with_mock_db.get("/api/products", params={"page_size": 2})

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["total"] == 3
        assert body["total_pages"] == 2

    def test_create_with_links(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("categories", [CategoryFactory.create(id="cat-1")])
        mock_supabase.set_table_data("dimensions", [DimensionFactory.create(id="dim-1", name="Compacto")])

        response = test_client_with_mock_db.post("/api/products", json={
            "name": "Sofá Compacto",
            "category_id": "cat-1",
            "price": 2199.0,
            "dimension_ids": ["dim-1"],
        })

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "sofa-compacto"
        assert [d["name"] for d in body["dimensions"]] == ["Compacto"]

    def test_negative_price_rejected(self, test_client_with_mock_db):
        response = test_client_with_mock_db.post("/api/products", json={
            "name": "Mesa", "category_id": "cat-1", "price": -1,
        })

        assert response.status_code == 422

    def test_get_missing(self, test_client_with_mock_db):
        assert test_client_with_mock_db.get("/api/products/missing").status_code == 404


class TestHealth:
    """Tests for GET /health"""

    def test_counts_catalog_tables(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("categories", CategoryFactory.create_batch(2))

        body = test_client_with_mock_db.get("/health").json()

        assert body["status"] == "healthy"
        assert body["database"]["categories_count"] == 2
        assert body["database"]["products_count"] == 0
        assert body["ai_import"] in (True, False)
