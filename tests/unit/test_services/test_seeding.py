"""Tests for legacy export seeding."""

import json
import pytest
from unittest.mock import AsyncMock, patch

from src.services.seeding import load_seed_files, needs_new_id, prepare_seed_data, seed_database
from src.utils.ids import is_valid_uuid

KEPT_ID = "3f2b1c4d-5e6f-4a7b-8c9d-0e1f2a3b4c5d"


@pytest.fixture
def export():
    categories = [
        {"id": "dummy-cat-1", "name": "Work"},
        {"id": KEPT_ID, "name": "Home"},
    ]
    tasks = [
        {"id": "dummy-1", "name": "Parent", "dueDate": "2024-12-09", "categoryId": "dummy-cat-1", "completed": True},
        {"id": "dummy-2", "name": "Child", "dueDate": "2024-12-09", "parent_task_id": "dummy-1"},
        {"id": "dummy-3", "name": "Orphan", "dueDate": "2024-12-10", "categoryId": "dummy-cat-9"},
        {"id": "dummy-4", "name": "", "dueDate": "2024-12-10"},
        {"id": "dummy-5", "name": "No date"},
    ]
    return categories, tasks


@pytest.mark.unit
class TestPrepareSeedData:

    @pytest.mark.parametrize("value,expected", [
        ("dummy-1", True),
        ("not-a-uuid", True),
        (None, True),
        (KEPT_ID, False),
    ])
    def test_needs_new_id(self, value, expected):
        assert needs_new_id(value, "dummy-") is expected

    def test_ids_replaced_and_references_remapped(self, export):
        seed = prepare_seed_data(*export, sentinel_prefix="dummy-")

        work, home = seed.categories
        assert is_valid_uuid(work.id)
        assert home.id == KEPT_ID

        parent, child, orphan = seed.tasks
        assert all(is_valid_uuid(task.id) for task in seed.tasks)
        assert parent.category_id == work.id
        assert parent.is_completed
        assert child.parent_task_id == parent.id
        assert orphan.category_id is None

    def test_rows_without_name_or_due_date_skipped(self, export):
        seed = prepare_seed_data(*export, sentinel_prefix="dummy-")

        assert len(seed.skipped) == 2
        assert seed.replaced_ids == 6

    @pytest.mark.parametrize("parent", [
        {"id": "dummy-1", "name": "", "dueDate": "2024-12-09"},
        {"id": "dummy-1", "name": "Bad status", "dueDate": "2024-12-09", "app_status": "archived"},
    ])
    def test_child_of_skipped_parent_becomes_root(self, parent):
        child = {"id": "dummy-2", "name": "Child", "dueDate": "2024-12-09", "parent_task_id": "dummy-1"}

        seed = prepare_seed_data([], [parent, child], sentinel_prefix="dummy-")

        assert [task.name for task in seed.tasks] == ["Child"]
        assert seed.tasks[0].parent_task_id is None
        assert len(seed.skipped) == 1

    def test_parent_references_only_inserted_rows(self, export):
        seed = prepare_seed_data(*export, sentinel_prefix="dummy-")

        inserted = {task.id for task in seed.tasks}
        assert all(task.parent_task_id in inserted for task in seed.tasks if task.parent_task_id)

    def test_input_rows_not_modified(self, export):
        categories, tasks = export
        before = json.dumps(tasks, sort_keys=True)

        prepare_seed_data(categories, tasks, sentinel_prefix="dummy-")

        assert json.dumps(tasks, sort_keys=True) == before


@pytest.mark.unit
def test_load_seed_files(tmp_path, export):
    categories, tasks = export
    (tmp_path / "categories.json").write_text(json.dumps(categories), encoding="utf-8")
    (tmp_path / "tasks.json").write_text(json.dumps(tasks), encoding="utf-8")

    assert load_seed_files(tmp_path / "categories.json", tmp_path / "tasks.json") == (categories, tasks)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_seed_database_inserts_categories_first(export):
    calls = []

    async def insert_categories(rows):
        calls.append(("categories", rows))
        return len(rows)

    async def insert_tasks(rows):
        calls.append(("tasks", rows))
        return len(rows)

    with patch("src.services.seeding.supabase_client.insert_categories", AsyncMock(side_effect=insert_categories)), \
            patch("src.services.seeding.supabase_client.insert_tasks", AsyncMock(side_effect=insert_tasks)):
        seed = await seed_database(*export)

    assert [name for name, _ in calls] == ["categories", "tasks"]
    task_rows = calls[1][1]
    assert len(task_rows) == 3
    assert task_rows[0]["app_status"] == "completed"
    assert task_rows[0]["categoryId"] == seed.categories[0].id
    assert "subtasks" not in task_rows[0]
