"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch
from datetime import datetime
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

    def __init__(self, data: list = None, count: int = None, table=None):
        self._data = data or []
        self._count = count
        self._table = table
        self._limit = None

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add id and timestamp, remember the row
        if isinstance(data, dict):
            data = [data]
        for item in data:
            item.setdefault("id", f"test-uuid-{len(self._table.inserted) + 1}")
            item["created_at"] = datetime.utcnow().isoformat() + "Z"
            self._table.inserted.append(item)
        self._data = data
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if row.get(column) == value]
        return self

    def ilike(self, column, pattern):
        needle = pattern.strip("%").lower()
        self._data = [row for row in self._data if needle in str(row.get(column) or "").lower()]
        return self

    def or_(self, filters):
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._limit = count
        return self

    def execute(self) -> MockSupabaseResponse:
        data = self._data if self._limit is None else self._data[:self._limit]
        return MockSupabaseResponse(
            data=data,
            count=self._count if self._count is not None else len(data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None):
        self._data = data or []
        self._count = count
        self.inserted: list[dict] = []

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._data + self.inserted, self._count, self)

    def insert(self, data):
        query = MockSupabaseQuery([], self._count, self)
        return query.insert(data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(data, count)

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table (created empty on first use)."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "code": "K100", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any service created here gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.supplier_service.get_supabase_client", return_value=mock_supabase):
                with patch("services.import_service.get_supabase_client", return_value=mock_supabase):
                    yield mock_supabase


@pytest.fixture
def sample_catalog_rows() -> list:
    """Catalog rows as Supabase returns them (type joined)."""
    return [
        {
            "id": "uuid-1",
            "code": "K100",
            "description": "Kitchen Mixer Chrome",
            "image_url": "https://cdn.example.com/k100.png",
            "link": "https://example.com/k100.pdf",
            "brand": "Abey",
            "keywords": "mixer kitchen",
            "product_details": "Chrome finish",
            "type": {"id": "type-1", "name": "Tapware"},
        },
        {
            "id": "uuid-2",
            "code": "A8 CWH66-1500DWM",
            "description": "Wall Hung Vanity 1500 Double",
            "image_url": None,
            "link": None,
            "brand": "BWA",
            "keywords": "vanity",
            "product_details": None,
            "type": {"id": "type-2", "name": "Vanities"},
        },
        {
            "id": "uuid-3",
            "code": "B2 BSN-450",
            "description": "Above Counter Basin",
            "image_url": None,
            "link": "#",
            "brand": None,
            "keywords": None,
            "product_details": None,
            "type": None,
        },
    ]


@pytest.fixture
def sample_supplier_row() -> dict:
    """Supplier row as stored (camelCase mappings)."""
    return {
        "id": "supplier-1",
        "name": "Bathroom Warehouse",
        "columnMappings": [
            {"column": 1, "field": "image"},
            {"column": 2, "field": "code"},
            {"column": 3, "field": "description"},
            {"column": 4, "field": "price"},
        ],
        "startRow": 2,
        "hasHeaderRow": True,
    }


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_supabase):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            response = test_client_with_mock_db.post("/api/reconciliation", ...)
    """
    from fastapi.testclient import TestClient
    from main import app
    import services.catalog_service as catalog_module
    import services.reconciliation_service as reconciliation_module

    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
            catalog_module._catalog_service = None
            reconciliation_module._reconciliation_service = None
            yield TestClient(app)
            catalog_module._catalog_service = None
            reconciliation_module._reconciliation_service = None
