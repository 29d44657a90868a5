"""
Shared test configuration and fixtures.
"""

import pytest
import pytest_asyncio

from infrastructure.persistence.database import Database


@pytest_asyncio.fixture
async def database(tmp_path):
    """A fresh SQLite database file per test, with the schema created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'rates.db'}")
    await db.create_tables()
    yield db
    await db.close()


def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
