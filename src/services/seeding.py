"""Bulk import of legacy JSON task/category exports."""

import json
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from src.models.category import Category
from src.models.task import Task
from src.services import supabase_client
from src.utils.config import AppConfig
from src.utils.ids import generate_id, is_valid_uuid
from src.utils.logging import get_structured_logger, log_timing, sanitize_text

logger = get_structured_logger(__name__)


class SeedData(BaseModel):
    """Rows ready for insertion, plus what was dropped on the way."""
    categories: list[Category] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    skipped: list[dict] = Field(default_factory=list)
    replaced_ids: int = 0


def needs_new_id(value: Any, sentinel_prefix: str = AppConfig.SEED_SENTINEL_PREFIX) -> bool:
    """Placeholder (sentinel-prefixed) and malformed ids are regenerated."""
    if not isinstance(value, str) or value.startswith(sentinel_prefix):
        return True
    return not is_valid_uuid(value)


def prepare_seed_data(
    categories: list[dict],
    tasks: list[dict],
    sentinel_prefix: str = AppConfig.SEED_SENTINEL_PREFIX,
) -> SeedData:
    """
    Normalize exported rows for insertion.

    Ids are replaced where needed and every category/parent reference is
    remapped to the new ids. References to categories that are not in the
    export are cleared. Tasks missing a name or due date are skipped.
    """
    seed = SeedData()
    category_ids: dict[str, str] = {}

    for row in categories:
        old_id = row.get("id")
        new_id = generate_id() if needs_new_id(old_id, sentinel_prefix) else old_id
        if new_id != old_id:
            seed.replaced_ids += 1
        try:
            category = Category.model_validate({**row, "id": new_id})
        except ValidationError as e:
            logger.warning("Skipping invalid category", category_id=old_id, error=str(e))
            seed.skipped.append(row)
            continue
        if old_id is not None:
            category_ids[old_id] = new_id
        seed.categories.append(category)

    # Rows are validated before parents are remapped, so a parent reference
    # can only point at a task that is actually inserted
    task_ids: dict[str, str] = {}
    kept: list[tuple[Task, Optional[str]]] = []
    for row in tasks:
        old_id = row.get("id")
        new_id = generate_id() if needs_new_id(old_id, sentinel_prefix) else old_id
        if new_id != old_id:
            seed.replaced_ids += 1
        record = {**row, "id": new_id}

        old_category = record.get("categoryId")
        record["categoryId"] = category_ids.get(old_category) if old_category else None
        if old_category and record["categoryId"] is None:
            logger.info(
                "Task references unknown category, clearing it",
                task_name=sanitize_text(record.get("name")),
                category_id=old_category,
            )

        if not record.get("name") or not record.get("dueDate"):
            logger.warning("Skipping task without name or dueDate", task_id=record["id"])
            seed.skipped.append(record)
            continue

        try:
            task = Task.from_record(record)
        except ValidationError as e:
            logger.warning("Skipping invalid task", task_id=record["id"], error=str(e))
            seed.skipped.append(record)
            continue

        if isinstance(old_id, str):
            task_ids[old_id] = new_id
        kept.append((task, row.get("parent_task_id")))

    for task, old_parent in kept:
        parent_id = task_ids.get(old_parent) if old_parent else None
        if old_parent and parent_id is None:
            logger.info(
                "Task references a parent that is not imported, clearing it",
                task_id=task.id,
                parent_task_id=old_parent,
            )
        seed.tasks.append(task.model_copy(update={"parent_task_id": parent_id}))

    return seed


def load_seed_files(categories_path: Union[str, Path], tasks_path: Union[str, Path]) -> tuple[list[dict], list[dict]]:
    """Read the categories.json / tasks.json export pair."""
    categories = json.loads(Path(categories_path).read_text(encoding="utf-8"))
    tasks = json.loads(Path(tasks_path).read_text(encoding="utf-8"))
    return categories, tasks


async def seed_database(
    categories: list[dict],
    tasks: list[dict],
    sentinel_prefix: Optional[str] = None,
) -> SeedData:
    """Insert categories, then tasks (tasks reference categories)."""
    seed = prepare_seed_data(categories, tasks, sentinel_prefix or AppConfig.SEED_SENTINEL_PREFIX)

    with log_timing("seed_database", logger=logger, categories=len(seed.categories), tasks=len(seed.tasks)):
        await supabase_client.insert_categories([category.model_dump(exclude_none=True) for category in seed.categories])
        await supabase_client.insert_tasks([
            task.to_record() for task in seed.tasks
        ])

    logger.info(
        "Seed completed",
        categories=len(seed.categories),
        tasks=len(seed.tasks),
        skipped=len(seed.skipped),
        replaced_ids=seed.replaced_ids,
    )
    return seed
