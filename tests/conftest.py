"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport


@pytest.fixture
def entry_doc():
    """
    Factory for stored time entry documents.

    Entries default to a completed one-hour entry on 2025-11-03 (UTC).
    """
    def _make(
        duration=3600,
        corrected_duration=None,
        start_time=None,
        user_id="user123",
        project_number="P-100",
        ended=True,
    ):
        start_time = start_time or datetime(2025, 11, 3, 8, 0)
        return {
            "_id": ObjectId(),
            "user_id": user_id,
            "project_number": project_number,
            "description": "",
            "start_time": start_time,
            "end_time": start_time + timedelta(seconds=duration) if ended else None,
            "duration": duration if ended else None,
            "corrected_duration": corrected_duration,
            "created_at": start_time,
            "updated_at": start_time,
        }

    return _make


@pytest.fixture
def mock_entries():
    """Mock of the Motor ``time_entries`` collection."""
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock()
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.update_many = AsyncMock(return_value=MagicMock(modified_count=0))
    collection.bulk_write = AsyncMock()
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor

    return collection


@pytest.fixture
def mock_db(mock_entries):
    """Mock database handing out the mocked collection."""
    db = MagicMock()
    db.__getitem__.side_effect = lambda key: {"time_entries": mock_entries}[key]
    return db


def set_day_docs(collection, docs):
    """Make ``find`` on the mocked collection return the given documents."""
    collection.find.return_value.to_list = AsyncMock(return_value=docs)


@pytest.fixture
def day_docs(mock_entries):
    """Setter for the documents returned by day queries."""
    return lambda docs: set_day_docs(mock_entries, docs)


@pytest.fixture
def auth_headers():
    """Bearer headers for user123."""
    from timebalance.utils.auth import create_access_token

    token = create_access_token(user_id="user123")
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def app_client(mock_db):
    """
    Create a test client backed by the mocked database.

    The database dependency is overridden, so no MongoDB is needed.
    """
    from timebalance.database import get_database
    from timebalance.main import app

    async def _get_mock_database():
        return mock_db

    app.dependency_overrides[get_database] = _get_mock_database

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
