import sqlite3

import pytest
import sqlite_adapter


@pytest.fixture(autouse=True)
def clear_adapters():
    """Clear cached module-level adapters before and after each test."""
    sqlite_adapter.get_adapter.cache_clear()
    yield
    sqlite_adapter.get_adapter.cache_clear()


@pytest.fixture
def sqlite_conn():
    """In-memory SQLite connection returning sqlite3.Row rows"""
    conn = sqlite3.connect(':memory:')
    conn.row_factory = sqlite3.Row
    yield conn
    conn.close()


pytest_plugins = [
    'tests.fixtures.models',
]
