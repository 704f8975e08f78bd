"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import Mock, AsyncMock, MagicMock, patch
from datetime import date
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from tests.utils.factories import make_category, make_task
from tests.utils.helpers import make_client_mock, make_query_mock

DATA_API_OPERATIONS = (
    "list_tasks",
    "get_task",
    "create_task",
    "update_task",
    "delete_task",
    "delete_tasks",
    "bulk_update_tasks",
    "get_statistics",
    "list_categories",
    "create_category",
    "update_category",
    "unlink_category_tasks",
    "delete_category",
    "reorder_categories",
)


@pytest.fixture
def query_mock():
    """Chainable PostgREST request builder returning no rows."""
    return make_query_mock([])


@pytest.fixture
def mock_supabase_client(query_mock):
    """Mock Supabase client wired into the data-access module."""
    client = make_client_mock(query_mock)
    with patch("src.services.supabase_client.get_supabase_client", return_value=client):
        yield client


@pytest.fixture
def fake_api():
    """Stand-in for the data-access module with every operation as an AsyncMock."""
    api = Mock()
    for name in DATA_API_OPERATIONS:
        setattr(api, name, AsyncMock())
    return api


@pytest.fixture
def sample_categories():
    return [
        make_category(id="c0a80121-7ac0-4e1c-9a3b-000000000001", name="Work", position=1),
        make_category(id="c0a80121-7ac0-4e1c-9a3b-000000000002", name="Home", position=0),
    ]


@pytest.fixture
def sample_tasks(sample_categories):
    """Two days of tasks, one subtask, one uncategorized task."""
    work, home = sample_categories
    return [
        make_task(id="a1", name="10本目", due_date=date(2024, 12, 9), category_id=work.id,
                  status="completed", created_at="2024-12-01T09:00:00+00:00"),
        make_task(id="a2", name="2本目", due_date=date(2024, 12, 9), category_id=work.id,
                  created_at="2024-12-02T09:00:00+00:00"),
        make_task(id="a3", name="Buy milk", due_date=date(2024, 12, 10), category_id=home.id,
                  status="in-progress", created_at="2024-12-03T09:00:00+00:00"),
        make_task(id="a4", name="Milk receipt", due_date=date(2024, 12, 10), parent_task_id="a3",
                  created_at="2024-12-04T09:00:00+00:00"),
        make_task(id="a5", name="Loose end", due_date=date(2024, 12, 10),
                  created_at="2024-12-05T09:00:00+00:00"),
    ]


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time


@pytest.fixture
def session_path(tmp_path):
    return tmp_path / "session.json"
