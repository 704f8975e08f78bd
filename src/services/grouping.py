"""Grouping and aggregation of flat task lists into the date/category views."""

import math
import re
from functools import cmp_to_key
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from src.models.category import Category
from src.models.statistics import DailyStatistic, Progress
from src.models.task import Task
from src.utils.config import AppConfig
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

# Fullwidth digits U+FF10..U+FF19 -> ASCII
_FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９", "0123456789")
_LEADING_NUMBER = re.compile(r"^[0-9]+")


class DateGroup(BaseModel):
    """Root tasks sharing one due date, naturally sorted."""
    date: str
    tasks: list[Task] = Field(default_factory=list)
    progress: Progress = Field(default_factory=Progress)


class CategoryGroup(BaseModel):
    """Root tasks of one category; `category` is None for the uncategorized group."""
    category: Optional[Category] = None
    tasks: list[Task] = Field(default_factory=list)
    progress: Progress = Field(default_factory=Progress)

    @property
    def name(self) -> str:
        return self.category.name if self.category else AppConfig.UNCATEGORIZED_LABEL


def group_by_due_date(tasks: Iterable[Task]) -> dict[str, list[Task]]:
    """Partition tasks by exact due-date string; input order kept within a group."""
    groups: dict[str, list[Task]] = {}
    for task in tasks:
        groups.setdefault(task.due_date_key, []).append(task)
    return groups


def group_by_category(tasks: Iterable[Task], category_id: str) -> list[Task]:
    return [task for task in tasks if task.category_id is not None and task.category_id == category_id]


def uncategorized_tasks(tasks: Iterable[Task], categories: Iterable[Category]) -> list[Task]:
    """Tasks with no category, or whose category no longer exists."""
    known = {category.id for category in categories}
    return [task for task in tasks if task.category_id is None or task.category_id not in known]


def sort_dates_descending(dates: Iterable[str]) -> list[str]:
    """YYYY-MM-DD strings sort chronologically, so a reverse string sort is newest first."""
    return sorted(dates, reverse=True)


def _leading_number(name: str) -> Optional[int]:
    match = _LEADING_NUMBER.match(name.translate(_FULLWIDTH_DIGITS))
    return int(match.group(0)) if match else None


def _compare_strings(a: str, b: str) -> int:
    return (a > b) - (a < b)


def compare_task_names(a: str, b: str) -> int:
    """
    Natural comparison of two task names.

    Names starting with a digit (fullwidth counts) come first and are ordered
    by their leading integer; equal numbers and names without a leading
    number fall back to plain string comparison.
    """
    a = a or ""
    b = b or ""
    num_a = _leading_number(a)
    num_b = _leading_number(b)

    if num_a is not None and num_b is not None:
        if num_a != num_b:
            return -1 if num_a < num_b else 1
        return _compare_strings(a, b)
    if num_a is not None:
        return -1
    if num_b is not None:
        return 1
    return _compare_strings(a, b)


def sort_tasks_by_name(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=cmp_to_key(lambda x, y: compare_task_names(x.name, y.name)))


def sort_tasks_by_created_desc(tasks: Iterable[Task]) -> list[Task]:
    """Newest first; tasks without a creation timestamp go last."""
    return sorted(tasks, key=lambda task: task.created_at or "", reverse=True)


def sort_categories(categories: Iterable[Category]) -> list[Category]:
    """Positioned categories first by position, the rest in insertion order."""
    return sorted(
        categories,
        key=lambda category: (category.position is None, category.position or 0),
    )


def _closes_cycle(task_id: str, nodes: dict[str, Task]) -> bool:
    """True when following parent links from task_id leads back to it."""
    seen = {task_id}
    parent_id = nodes[task_id].parent_task_id
    while parent_id is not None and parent_id in nodes:
        if parent_id == task_id:
            return True
        if parent_id in seen:
            # Cycle further up that does not include this task
            return False
        seen.add(parent_id)
        parent_id = nodes[parent_id].parent_task_id
    return False


def build_subtask_tree(tasks: Iterable[Task]) -> list[Task]:
    """
    Rebuild the parent/child tree from a flat list.

    A task becomes a child when its parent is in the list; otherwise it is a
    root. Tasks caught in a parent cycle are treated as roots. The input
    tasks are not modified: the returned nodes are copies.
    """
    nodes: dict[str, Task] = {}
    for task in tasks:
        nodes[task.id] = task.model_copy(update={"subtasks": []})

    roots: list[Task] = []
    for node in nodes.values():
        parent_id = node.parent_task_id
        if parent_id is None or parent_id not in nodes:
            roots.append(node)
        elif _closes_cycle(node.id, nodes):
            logger.warning("Parent cycle detected, treating task as root", task_id=node.id, parent_task_id=parent_id)
            roots.append(node)
        else:
            nodes[parent_id].subtasks.append(node)
    return roots


def compute_progress(tasks: Iterable[Task]) -> Progress:
    """Completed percentage rounded half up; an empty group is 0/0 at 0%."""
    tasks = list(tasks)
    total = len(tasks)
    if total == 0:
        return Progress(progress_rate=0, completed_count=0, total_count=0)

    completed = sum(1 for task in tasks if task.is_completed)
    rate = math.floor(100 * completed / total + 0.5)
    return Progress(progress_rate=rate, completed_count=completed, total_count=total)


def build_date_groups(tasks: Iterable[Task]) -> list[DateGroup]:
    """Root tasks grouped by due date, newest date first."""
    groups = group_by_due_date(build_subtask_tree(tasks))
    return [
        DateGroup(
            date=due_date,
            tasks=sort_tasks_by_name(groups[due_date]),
            progress=compute_progress(groups[due_date]),
        )
        for due_date in sort_dates_descending(groups.keys())
    ]


def build_category_groups(tasks: Iterable[Task], categories: Iterable[Category]) -> list[CategoryGroup]:
    """One group per category in display order, then the uncategorized group if it has tasks."""
    categories = list(categories)
    roots = build_subtask_tree(tasks)

    groups = []
    for category in sort_categories(categories):
        members = group_by_category(roots, category.id)
        groups.append(CategoryGroup(
            category=category,
            tasks=sort_tasks_by_created_desc(members),
            progress=compute_progress(members),
        ))

    leftovers = uncategorized_tasks(roots, categories)
    if leftovers:
        groups.append(CategoryGroup(
            category=None,
            tasks=sort_tasks_by_created_desc(leftovers),
            progress=compute_progress(leftovers),
        ))
    return groups


def category_name_for(task: Task, categories: Iterable[Category]) -> str:
    """Display name of the task's category, looked up at presentation time."""
    if task.category_id is not None:
        for category in categories:
            if category.id == task.category_id:
                return category.name
    return AppConfig.UNCATEGORIZED_LABEL


def daily_statistics(tasks: Iterable[Task]) -> list[DailyStatistic]:
    """Completed/total per due date, oldest date first."""
    stats: dict[str, DailyStatistic] = {}
    for task in tasks:
        entry = stats.setdefault(task.due_date_key, DailyStatistic(date=task.due_date_key))
        entry.total += 1
        if task.is_completed:
            entry.completed += 1
    return [stats[key] for key in sorted(stats)]
