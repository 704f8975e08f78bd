"""Apply TaskFilter criteria locally or to a Supabase (PostgREST) query."""

from typing import Any, Iterable

from src.models.task import Task, TASK_COLUMNS
from src.models.task_filter import TaskFilter, TaskType
from src.utils.dates import month_bounds


def matches(task: Task, criteria: TaskFilter) -> bool:
    """True when the task satisfies every predicate that is set."""
    if criteria.user_id is not None and task.user_id != criteria.user_id:
        return False
    if criteria.category_id is not None and task.category_id != criteria.category_id:
        return False
    if criteria.keyword is not None and criteria.keyword.lower() not in task.name.lower():
        return False
    if criteria.due_date is not None and task.due_date != criteria.due_date:
        return False
    if criteria.month is not None:
        start, end = month_bounds(criteria.month)
        if not (start <= task.due_date < end):
            return False
    if criteria.status is not None and task.status != criteria.status:
        return False
    if criteria.task_type == TaskType.PARENT and task.parent_task_id is not None:
        return False
    if criteria.task_type == TaskType.CHILD and task.parent_task_id is None:
        return False
    return True


def filter_tasks(tasks: Iterable[Task], criteria: TaskFilter) -> list[Task]:
    return [task for task in tasks if matches(task, criteria)]


def _escape_like(keyword: str) -> str:
    return keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_filter(query: Any, criteria: TaskFilter) -> Any:
    """Chain the filter's predicates onto a PostgREST request builder."""
    if criteria.user_id is not None:
        query = query.eq(TASK_COLUMNS["user_id"], criteria.user_id)
    if criteria.category_id is not None:
        query = query.eq(TASK_COLUMNS["category_id"], criteria.category_id)
    if criteria.keyword is not None:
        query = query.ilike(TASK_COLUMNS["name"], f"%{_escape_like(criteria.keyword)}%")
    if criteria.due_date is not None:
        query = query.eq(TASK_COLUMNS["due_date"], criteria.due_date.isoformat())
    if criteria.month is not None:
        start, end = month_bounds(criteria.month)
        query = query.gte(TASK_COLUMNS["due_date"], start.isoformat()).lt(TASK_COLUMNS["due_date"], end.isoformat())
    if criteria.status is not None:
        query = query.eq(TASK_COLUMNS["status"], criteria.status.value)
    if criteria.task_type == TaskType.PARENT:
        query = query.is_(TASK_COLUMNS["parent_task_id"], "null")
    elif criteria.task_type == TaskType.CHILD:
        query = query.not_.is_(TASK_COLUMNS["parent_task_id"], "null")
    return query
