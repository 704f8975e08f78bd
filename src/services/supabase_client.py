"""Supabase client wrapper and task/category data access."""

import os
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError
from supabase import create_client, Client
from supabase.client import ClientOptions

from src.models.category import Category
from src.models.statistics import DailyStatistic
from src.models.task import Task, TaskStatus, IMMUTABLE_COLUMNS, to_task_columns
from src.models.task_filter import TaskFilter
from src.services.grouping import daily_statistics, sort_categories
from src.services.query_builder import apply_filter
from src.utils.config import AppConfig
from src.utils.errors import InputValidationError, NotFoundError, ProgressTrackerError, SupabaseError
from src.utils.ids import generate_id
from src.utils.logging import get_structured_logger, log_timing, mask_user_id, timed

logger = get_structured_logger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None

TASKS = AppConfig.TASKS_TABLE
CATEGORIES = AppConfig.CATEGORIES_TABLE


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_ANON_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", url=url)

    return _client


async def close_supabase_client() -> None:
    """Drop the client reference; supabase-py has no explicit close."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                type=exc_type.__name__
            )
        return False


def _execute(builder: Any, action: str) -> Any:
    """Run a request builder, wrapping transport and PostgREST failures."""
    try:
        return builder.execute()
    except ProgressTrackerError:
        raise
    except Exception as e:
        raise SupabaseError(f"Failed to {action}: {e}")


def _to_task(row: dict, action: str) -> Task:
    try:
        return Task.from_record(row)
    except ValidationError as e:
        raise SupabaseError(f"Failed to {action}: malformed task row: {e}")


def _mutable_task_columns(fields: dict[str, Any]) -> dict[str, Any]:
    try:
        columns = to_task_columns(fields)
    except ValueError as e:
        raise InputValidationError(str(e))
    for column in IMMUTABLE_COLUMNS:
        columns.pop(column, None)
    if "name" in columns and not (columns["name"] or "").strip():
        raise InputValidationError("Task name cannot be empty")
    if "dueDate" in columns and not columns["dueDate"]:
        raise InputValidationError("Task dueDate cannot be empty")
    return columns


# Tasks table operations
@timed("supabase.list_tasks")
async def list_tasks(filters: Optional[TaskFilter] = None, with_category: bool = False) -> list[Task]:
    """List tasks matching the filter (all tasks when no filter is given)."""
    filters = filters or TaskFilter()
    columns = "*, categories(name)" if with_category else "*"
    async with SupabaseClient() as client:
        query = apply_filter(client.table(TASKS).select(columns), filters)
        result = _execute(query, "list tasks")
        return [_to_task(row, "list tasks") for row in (result.data or [])]


async def get_task(task_id: str) -> Optional[Task]:
    async with SupabaseClient() as client:
        result = _execute(client.table(TASKS).select("*").eq("id", task_id), "get task")
        return _to_task(result.data[0], "get task") if result.data else None


async def create_task(fields: dict[str, Any]) -> Task:
    """Create a task. `name` and `dueDate` are required; id, createdAt and status are defaulted."""
    try:
        columns = to_task_columns(fields)
    except ValueError as e:
        raise InputValidationError(str(e))

    if not (columns.get("name") or "").strip() or not columns.get("dueDate"):
        raise InputValidationError("Name and dueDate are required")

    columns.setdefault("app_status", TaskStatus.TODO.value)
    columns["id"] = columns.get("id") or generate_id()
    columns["createdAt"] = datetime.now(timezone.utc).isoformat()

    try:
        task = Task.from_record(columns)
    except ValidationError as e:
        raise InputValidationError(f"Invalid task: {e}")

    async with SupabaseClient() as client:
        result = _execute(client.table(TASKS).insert(task.to_record()), "create task")
        if not result.data:
            raise SupabaseError("Failed to create task: no data returned")
        created = _to_task(result.data[0], "create task")
        logger.info("Task created", task_id=created.id, user_id=mask_user_id(created.user_id))
        return created


async def update_task(task_id: str, fields: dict[str, Any]) -> Task:
    """Partially update a task; `id` and `createdAt` are never written."""
    columns = _mutable_task_columns(fields)
    if not columns:
        raise InputValidationError("No fields to update")

    async with SupabaseClient() as client:
        result = _execute(client.table(TASKS).update(columns).eq("id", task_id), "update task")
        if not result.data:
            raise NotFoundError(f"Task not found: {task_id}")
        return _to_task(result.data[0], "update task")


async def delete_task(task_id: str) -> None:
    async with SupabaseClient() as client:
        result = _execute(client.table(TASKS).delete().eq("id", task_id), "delete task")
        if not result.data:
            raise NotFoundError(f"Task not found: {task_id}")
        logger.info("Task deleted", task_id=task_id)


def _target(query: Any, ids: Optional[list[str]], criteria: Optional[TaskFilter]) -> Any:
    """Restrict a bulk query to an id list or to a non-empty filter set."""
    if ids:
        return query.in_("id", list(ids))
    if criteria is None:
        raise InputValidationError("Either ids or filter criteria are required")
    return apply_filter(query, criteria.require_criteria())


async def delete_tasks(ids: Optional[list[str]] = None, criteria: Optional[TaskFilter] = None) -> int:
    """Delete by id list or by criteria; returns the number of deleted rows."""
    async with SupabaseClient() as client:
        query = _target(client.table(TASKS).delete(), ids, criteria)
        with log_timing("delete_tasks", logger=logger, by_ids=bool(ids)):
            result = _execute(query, "delete tasks")
        deleted = len(result.data or [])
        logger.info("Tasks deleted", deleted_count=deleted, by_ids=bool(ids))
        return deleted


async def bulk_update_tasks(
    fields: dict[str, Any],
    ids: Optional[list[str]] = None,
    criteria: Optional[TaskFilter] = None,
) -> list[Task]:
    """Apply the same partial update to every targeted task."""
    columns = _mutable_task_columns(fields)
    if not columns:
        raise InputValidationError("No fields to update")

    async with SupabaseClient() as client:
        query = _target(client.table(TASKS).update(columns), ids, criteria)
        with log_timing("bulk_update_tasks", logger=logger, fields=sorted(columns)):
            result = _execute(query, "bulk update tasks")
        return [_to_task(row, "bulk update tasks") for row in (result.data or [])]


@timed("supabase.get_statistics")
async def get_statistics(month: str, user_id: Optional[str] = None) -> list[DailyStatistic]:
    """Per-day completed/total counts for tasks due in the month."""
    try:
        criteria = TaskFilter(month=month, user_id=user_id)
    except ValueError as e:
        raise InputValidationError(f"Invalid month: {e}")
    return daily_statistics(await list_tasks(criteria))


# Categories table operations
async def list_categories(user_id: Optional[str] = None) -> list[Category]:
    async with SupabaseClient() as client:
        query = client.table(CATEGORIES).select("*")
        if user_id is not None:
            query = query.eq("user_id", user_id)
        result = _execute(query, "list categories")
        return sort_categories(Category.model_validate(row) for row in (result.data or []))


async def create_category(name: str, position: Optional[int] = None, user_id: Optional[str] = None) -> Category:
    name = (name or "").strip()
    if not name:
        raise InputValidationError("Category name is required")

    record: dict[str, Any] = {"id": generate_id(), "name": name}
    if position is not None:
        record["position"] = position
    if user_id is not None:
        record["user_id"] = user_id

    async with SupabaseClient() as client:
        result = _execute(client.table(CATEGORIES).insert(record), "create category")
        if not result.data:
            raise SupabaseError("Failed to create category: no data returned")
        return Category.model_validate(result.data[0])


async def update_category(category_id: str, fields: dict[str, Any]) -> Category:
    updates = {key: value for key, value in fields.items() if key in ("name", "position")}
    if "name" in updates:
        updates["name"] = (updates["name"] or "").strip()
        if not updates["name"]:
            raise InputValidationError("Category name is required")
    if not updates:
        raise InputValidationError("No fields to update")

    async with SupabaseClient() as client:
        result = _execute(client.table(CATEGORIES).update(updates).eq("id", category_id), "update category")
        if not result.data:
            raise NotFoundError(f"Category not found: {category_id}")
        return Category.model_validate(result.data[0])


async def unlink_category_tasks(category_id: str) -> int:
    """Clear categoryId on every task referencing the category."""
    async with SupabaseClient() as client:
        result = _execute(
            client.table(TASKS).update({"categoryId": None}).eq("categoryId", category_id),
            "unlink category tasks",
        )
        unlinked = len(result.data or [])
        logger.info("Category tasks unlinked", category_id=category_id, unlinked_count=unlinked)
        return unlinked


async def delete_category(category_id: str, unlink_tasks: bool = True) -> None:
    """
    Delete a category.

    Referencing tasks must be unlinked before the row goes away, otherwise
    the foreign key either blocks the delete or leaves dangling ids. Callers
    that already unlinked (to update their own state first) pass
    unlink_tasks=False.
    """
    if unlink_tasks:
        await unlink_category_tasks(category_id)

    async with SupabaseClient() as client:
        result = _execute(client.table(CATEGORIES).delete().eq("id", category_id), "delete category")
        if not result.data:
            raise NotFoundError(f"Category not found: {category_id}")
        logger.info("Category deleted", category_id=category_id)


async def reorder_categories(categories: list[Category]) -> list[Category]:
    """Persist the given display order as positions 0..n-1 via upsert."""
    rows = [
        {**category.model_dump(exclude_none=True), "position": index}
        for index, category in enumerate(categories)
    ]
    if not rows:
        return []

    async with SupabaseClient() as client:
        result = _execute(client.table(CATEGORIES).upsert(rows), "reorder categories")
        return sort_categories(Category.model_validate(row) for row in (result.data or []))


# Bulk loading (seeding)
async def insert_categories(rows: list[dict]) -> int:
    if not rows:
        return 0
    async with SupabaseClient() as client:
        result = _execute(client.table(CATEGORIES).insert(rows), "insert categories")
        return len(result.data or [])


async def insert_tasks(rows: list[dict]) -> int:
    if not rows:
        return 0
    async with SupabaseClient() as client:
        result = _execute(client.table(TASKS).insert(rows), "insert tasks")
        return len(result.data or [])
