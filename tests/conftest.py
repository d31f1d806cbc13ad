"""
Shared test fixtures.

The mock Supabase client keeps rows in memory per table and applies the
filters the services use (eq, neq, in_, ilike, like), so write-then-read
flows behave like the real database.
"""

import os
import re
import sys
from pathlib import Path

# Add project root to Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

# Settings are loaded at import time and require these
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Callable, Generator, Optional

from config.import_config import ImportConfig
from tests.factories import FakeExtractionProvider

# ===================
# MOCK SUPABASE CLIENT
# ===================

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _like_to_regex(pattern: str, ignore_case: bool) -> re.Pattern:
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    return re.compile(regex, re.IGNORECASE if ignore_case else 0)


class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else (len(self.data) if isinstance(self.data, list) else 1)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, client: "MockSupabaseClient", table: str, operation: str, payload=None):
        self._client = client
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters: list[Callable[[dict], bool]] = []
        self._order: list[tuple[str, bool]] = []
        self._range: Optional[tuple[int, int]] = None
        self._limit: Optional[int] = None
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def ilike(self, column, pattern):
        regex = _like_to_regex(pattern, ignore_case=True)
        self._filters.append(lambda row: row.get(column) is not None and bool(regex.match(str(row[column]))))
        return self

    def like(self, column, pattern):
        regex = _like_to_regex(pattern, ignore_case=False)
        self._filters.append(lambda row: row.get(column) is not None and bool(regex.match(str(row[column]))))
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def execute(self) -> MockSupabaseResponse:
        self._client._check_failure(self._table, self._operation, self._payload)
        rows = self._client.rows(self._table)

        if self._operation == "insert":
            return MockSupabaseResponse(self._client._insert(self._table, self._payload))

        matched = [row for row in rows if all(f(row) for f in self._filters)]

        if self._operation == "update":
            for row in matched:
                row.update(self._payload)
                row["updated_at"] = _now()
            return MockSupabaseResponse([dict(row) for row in matched])

        if self._operation == "delete":
            for row in matched:
                rows.remove(row)
            return MockSupabaseResponse([dict(row) for row in matched])

        for column, desc in reversed(self._order):
            matched.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)

        total = len(matched)
        if self._range is not None:
            matched = matched[self._range[0]:self._range[1] + 1]
        if self._limit is not None:
            matched = matched[:self._limit]

        data = [dict(row) for row in matched]
        if self._is_single:
            return MockSupabaseResponse(data[0] if data else None, count=total)
        return MockSupabaseResponse(data, count=total)


class MockSupabaseTable:
    """Mock Supabase table bound to the client's in-memory rows."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select")

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", data)

    def delete(self):
        return MockSupabaseQuery(self._client, self._name, "delete")


class MockSupabaseClient:
    """
    In-memory Supabase client.

    Every insert call is also recorded in `inserts[table]` as the list of
    rows sent in that call, so tests can assert batching.
    """

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self._failures: list[tuple[str, str, Optional[Callable]]] = []
        self._ids: dict[str, int] = {}
        self.inserts: dict[str, list[list[dict]]] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = [dict(row) for row in data]

    def rows(self, table_name: str) -> list[dict]:
        return self._tables.setdefault(table_name, [])

    def fail_on(self, table_name: str, operation: str, match: Optional[Callable] = None):
        """
        Make operations on a table raise.

        Args:
            operation: select, insert, update or delete
            match: Optional predicate on the insert/update payload
        """
        self._failures.append((table_name, operation, match))

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(self, name)

    def _check_failure(self, table_name: str, operation: str, payload) -> None:
        for failing_table, failing_operation, match in self._failures:
            if failing_table != table_name or failing_operation != operation:
                continue
            if match is None or match(payload):
                raise Exception(f"mock {operation} on {table_name} failed")

    def _insert(self, table_name: str, payload) -> list[dict]:
        records = payload if isinstance(payload, list) else [payload]
        self.inserts.setdefault(table_name, []).append([dict(r) for r in records])

        created = []
        for record in records:
            row = dict(record)
            if "id" not in row:
                self._ids[table_name] = self._ids.get(table_name, 0) + 1
                row["id"] = f"{table_name}-new-{self._ids[table_name]}"
            row.setdefault("created_at", _now())
            self.rows(table_name).append(row)
            created.append(dict(row))
        return created


# ===================
# FIXTURES
# ===================

SERVICE_MODULES = (
    "services.category_service",
    "services.material_service",
    "services.dimension_service",
    "services.product_service",
)

SINGLETONS = (
    ("services.category_service", "_category_service"),
    ("services.material_service", "_material_service"),
    ("services.dimension_service", "_dimension_service"),
    ("services.product_service", "_product_service"),
    ("services.import_service", "_import_service"),
    ("services.import_progress_service", "_tracker"),
    ("services.preview_cache_service", "_preview_cache"),
)


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Each test gets fresh service instances."""
    import importlib
    for module_name, attribute in SINGLETONS:
        monkeypatch.setattr(importlib.import_module(module_name), attribute, None)


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("categories", [
                CategoryFactory.create(name="Sofás")
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Any service created inside the test gets the mock client.
    """
    patches = [patch("config.database.get_supabase_client", return_value=mock_supabase)]
    patches += [
        patch(f"{module}.get_supabase_client", return_value=mock_supabase)
        for module in SERVICE_MODULES
    ]
    for p in patches:
        p.start()
    try:
        yield mock_supabase
    finally:
        for p in reversed(patches):
            p.stop()


@pytest.fixture
def import_config() -> ImportConfig:
    """Import config with a dummy key and default limits."""
    return ImportConfig(anthropic_api_key="test-key", batch_size=50, max_rows=1000)


@pytest.fixture
def fake_provider() -> FakeExtractionProvider:
    return FakeExtractionProvider()


@pytest.fixture
def import_service(mock_db, import_config, fake_provider):
    """
    ProductImportService on the mock database and fake provider.

    Configure fake_provider.results before calling execute_import.
    """
    from services.import_service import ProductImportService
    return ProductImportService(config=import_config, provider=fake_provider)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            response = test_client_with_mock_db.get("/api/products")
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
