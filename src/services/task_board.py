"""
Local task/category view state and the mutation contracts applied to it.

Single-task status changes are optimistic: applied locally first and rolled
back if the remote update fails. Bulk operations, deletes and form saves are
confirm-then-apply: local state changes only after the remote call succeeds.
Every remote failure ends up as a Notice; nothing is raised to the caller.
"""

from datetime import date
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from src.models.category import Category
from src.models.task import Task, TaskStatus
from src.models.task_filter import TaskFilter
from src.services import supabase_client
from src.services.grouping import (
    CategoryGroup,
    DateGroup,
    build_category_groups,
    build_date_groups,
    build_subtask_tree,
    sort_categories,
)
from src.services.pagination import PageEntry, page_window, paginate, total_pages
from src.services.session_state import SessionStore
from src.services.task_form import TaskForm
from src.utils.config import AppConfig
from src.utils.dates import shift_month
from src.utils.errors import InputValidationError, NotFoundError
from src.utils.logging import correlation_context, get_structured_logger, log_timing

logger = get_structured_logger(__name__)


class Notice(BaseModel):
    """User-facing message produced instead of an exception."""
    level: Literal["info", "warning", "error"] = "error"
    message: str
    operation: Optional[str] = None


class Page(BaseModel):
    """One page of a paginated view plus its navigation window."""
    items: list[Any] = Field(default_factory=list)
    page_index: int = 0
    total_pages: int = 0
    window: list[PageEntry] = Field(default_factory=list)


class TaskBoard:
    """In-memory view state for one session, synchronised with the data-access API."""

    def __init__(self, api: Any = supabase_client, session: Optional[SessionStore] = None, user_id: Optional[str] = None):
        self.api = api
        self.session = session
        self.user_id = user_id
        self.tasks: list[Task] = []
        self.categories: list[Category] = []
        self.notices: list[Notice] = []
        self.selected_ids: list[str] = []
        self.error: Optional[str] = None
        self.last_filter: Optional[TaskFilter] = None
        self.last_with_category = False
        self.page_index = 0

    # Notices

    def _notify(self, message: str, level: str = "error", operation: Optional[str] = None) -> Notice:
        notice = Notice(level=level, message=message, operation=operation)
        self.notices.append(notice)
        return notice

    def _remote_failed(self, operation: str, message: str, error: Exception) -> None:
        if isinstance(error, NotFoundError):
            logger.warning(f"{operation}: target no longer exists", operation=operation, error=str(error))
            self._notify(f"{message}: the item no longer exists", level="warning", operation=operation)
        else:
            logger.error(f"{operation} failed", operation=operation, error=str(error), error_type=type(error).__name__)
            self._notify(message, operation=operation)

    async def _reconcile(self, error: Exception) -> None:
        """A vanished target means the local view is stale: refetch it."""
        if isinstance(error, NotFoundError):
            await self.reload()

    def drain_notices(self) -> list[Notice]:
        notices, self.notices = self.notices, []
        return notices

    # Lookup

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def _replace_task(self, task_id: str, **updates: Any) -> None:
        self.tasks = [
            task.model_copy(update=updates) if task.id == task_id else task
            for task in self.tasks
        ]

    # Loading

    def _scoped(self, criteria: Optional[TaskFilter]) -> TaskFilter:
        criteria = criteria or TaskFilter()
        if self.user_id is not None and criteria.user_id is None:
            criteria = criteria.model_copy(update={"user_id": self.user_id})
        return criteria

    async def load_tasks(self, criteria: Optional[TaskFilter] = None, with_category: bool = False) -> bool:
        """Replace the task list; on failure the view shows an empty/error state."""
        criteria = self._scoped(criteria)
        self.last_filter = criteria
        self.last_with_category = with_category
        self.error = None
        try:
            with log_timing("load_tasks", logger=logger):
                self.tasks = await self.api.list_tasks(criteria, with_category=with_category)
            return True
        except Exception as e:
            self.tasks = []
            self.error = str(e)
            self._remote_failed("load_tasks", "Failed to load tasks", e)
            return False

    async def reload(self) -> bool:
        """Refetch the last loaded view (used after structural changes)."""
        return await self.load_tasks(self.last_filter, with_category=self.last_with_category)

    async def load_categories(self) -> bool:
        try:
            self.categories = await self.api.list_categories(user_id=self.user_id)
            return True
        except Exception as e:
            self._remote_failed("load_categories", "Failed to load categories", e)
            return False

    async def select_month(self, month: str) -> bool:
        """Show a month's tasks and remember the choice in the session."""
        try:
            criteria = TaskFilter(month=month)
        except ValueError:
            self._notify(f"Invalid month: {month}", operation="select_month")
            return False
        if self.session is not None:
            self.session.select_month(month)
        self.page_index = 0
        return await self.load_tasks(criteria)

    async def start(self) -> None:
        """Load categories and the month saved in the session (or the current month)."""
        month = None
        if self.session is not None:
            month = self.session.load().selected_month
        await self.load_categories()
        await self.load_tasks(TaskFilter(month=month) if month else None)

    async def shift_month(self, delta: int) -> bool:
        current = self.last_filter.month if self.last_filter and self.last_filter.month else None
        if current is None and self.session is not None:
            current = self.session.state.selected_month
        if current is None:
            self._notify("No month selected", operation="shift_month")
            return False
        return await self.select_month(shift_month(current, delta))

    # Single-task optimistic status change

    async def change_status(self, task_id: str, new_status: TaskStatus) -> bool:
        """
        Apply the status locally, then persist it.

        On failure the previous status is restored and a notice is raised; on
        success nothing else happens (no refetch).
        """
        task = self.find_task(task_id)
        if task is None:
            self._notify("Task not found", level="warning", operation="change_status")
            return False

        new_status = TaskStatus(new_status)
        previous_status = task.status
        if previous_status == new_status:
            return True

        self._replace_task(task_id, status=new_status)
        with correlation_context():
            try:
                await self.api.update_task(task_id, {"status": new_status})
            except Exception as e:
                self._replace_task(task_id, status=previous_status)
                self._remote_failed("change_status", "Failed to update task status", e)
                await self._reconcile(e)
                return False

        logger.info("Task status changed", task_id=task_id, status=new_status.value)
        return True

    # Bulk operations (confirm, then apply)

    def select(self, task_id: str, selected: bool = True) -> None:
        if selected and task_id not in self.selected_ids:
            self.selected_ids.append(task_id)
        elif not selected and task_id in self.selected_ids:
            self.selected_ids.remove(task_id)

    def select_all(self, task_ids: list[str]) -> None:
        self.selected_ids = list(dict.fromkeys(task_ids))

    def clear_selection(self) -> None:
        self.selected_ids = []

    def _ids_or_selection(self, ids: Optional[list[str]], operation: str) -> Optional[list[str]]:
        ids = list(ids) if ids is not None else list(self.selected_ids)
        if not ids:
            self._notify("Select at least one task", level="warning", operation=operation)
            return None
        return ids

    async def bulk_update_status(self, new_status: TaskStatus, ids: Optional[list[str]] = None) -> bool:
        ids = self._ids_or_selection(ids, "bulk_update_status")
        if ids is None:
            return False
        new_status = TaskStatus(new_status)
        return await self._bulk_update(ids, {"status": new_status}, "bulk_update_status")

    async def bulk_update_due_date(self, due_date: Optional[date], ids: Optional[list[str]] = None) -> bool:
        ids = self._ids_or_selection(ids, "bulk_update_due_date")
        if ids is None:
            return False
        if not due_date:
            self._notify("Choose a new due date", level="warning", operation="bulk_update_due_date")
            return False
        return await self._bulk_update(ids, {"due_date": due_date}, "bulk_update_due_date")

    async def _bulk_update(self, ids: list[str], fields: dict[str, Any], operation: str) -> bool:
        with correlation_context():
            try:
                await self.api.bulk_update_tasks(fields, ids=ids)
            except Exception as e:
                self._remote_failed(operation, "Bulk update failed", e)
                await self._reconcile(e)
                return False

        targets = set(ids)
        self.tasks = [
            task.model_copy(update=fields) if task.id in targets else task
            for task in self.tasks
        ]
        self.clear_selection()
        logger.info("Bulk update applied", operation=operation, task_count=len(targets))
        return True

    async def bulk_delete(self, ids: Optional[list[str]] = None) -> bool:
        ids = self._ids_or_selection(ids, "bulk_delete")
        if ids is None:
            return False

        with correlation_context():
            try:
                await self.api.delete_tasks(ids=ids)
            except Exception as e:
                self._remote_failed("bulk_delete", "Failed to delete selected tasks", e)
                await self._reconcile(e)
                return False

        targets = set(ids)
        self.tasks = [task for task in self.tasks if task.id not in targets]
        self.clear_selection()
        return True

    async def delete_by_criteria(self, criteria: TaskFilter) -> bool:
        """Delete every task matching the criteria (at least one required), then refetch."""
        try:
            criteria.require_criteria()
        except InputValidationError as e:
            self._notify(str(e), level="warning", operation="delete_by_criteria")
            return False

        try:
            await self.api.delete_tasks(criteria=self._scoped(criteria))
        except Exception as e:
            self._remote_failed("delete_by_criteria", "Failed to delete tasks", e)
            return False

        await self.reload()
        return True

    async def delete_tasks_by_date(self, due_date: date) -> bool:
        return await self.delete_by_criteria(TaskFilter(due_date=due_date))

    async def delete_tasks_by_month(self, month: str) -> bool:
        return await self.delete_by_criteria(TaskFilter(month=month))

    # Single delete and form saves

    async def delete_task(self, task_id: str) -> bool:
        try:
            await self.api.delete_task(task_id)
        except Exception as e:
            self._remote_failed("delete_task", "Failed to delete task", e)
            await self._reconcile(e)
            return False

        self.tasks = [task for task in self.tasks if task.id != task_id]
        return True

    def merge_saved(self, saved: Task) -> None:
        """Replace the task with the same id, or append it."""
        if self.find_task(saved.id) is not None:
            self.tasks = [saved if task.id == saved.id else task for task in self.tasks]
        else:
            self.tasks = [*self.tasks, saved]

    async def submit_form(self, form: TaskForm) -> Optional[Task]:
        """Save the form; the form stays open when validation or the remote call fails."""
        try:
            form.check_required()
        except InputValidationError as e:
            self._notify(str(e), level="warning", operation="submit_form")
            return None

        try:
            saved = await form.submit(self.api)
        except Exception as e:
            self._remote_failed("submit_form", "Failed to save task", e)
            await self._reconcile(e)
            return None

        self.merge_saved(saved)
        form.is_open = False
        return saved

    # Categories

    async def create_category(self, name: str) -> Optional[Category]:
        if not (name or "").strip():
            self._notify("Enter a category name", level="warning", operation="create_category")
            return None
        try:
            category = await self.api.create_category(name.strip(), user_id=self.user_id)
        except Exception as e:
            self._remote_failed("create_category", "Failed to add category", e)
            return None
        self.categories = sort_categories([*self.categories, category])
        return category

    async def rename_category(self, category_id: str, name: str) -> Optional[Category]:
        if not (name or "").strip():
            self._notify("Enter a category name", level="warning", operation="rename_category")
            return None
        try:
            updated = await self.api.update_category(category_id, {"name": name.strip()})
        except Exception as e:
            self._remote_failed("rename_category", "Failed to update category", e)
            return None
        self.categories = [updated if c.id == category_id else c for c in self.categories]
        self._relabel_tasks(category_id, updated.name)
        return updated

    async def reorder_categories(self, ordered_ids: list[str]) -> bool:
        by_id = {category.id: category for category in self.categories}
        ordered = [by_id[category_id] for category_id in ordered_ids if category_id in by_id]
        try:
            self.categories = await self.api.reorder_categories(ordered)
        except Exception as e:
            self._remote_failed("reorder_categories", "Failed to save category order", e)
            return False
        return True

    def _relabel_tasks(self, category_id: str, name: Optional[str]) -> None:
        self.tasks = [
            task.model_copy(update={"category_name": name}) if task.category_id == category_id else task
            for task in self.tasks
        ]

    async def delete_category(self, category_id: str) -> bool:
        """
        Unlink the category's tasks, then delete it.

        The unlink is applied to local tasks as soon as the remote unlink
        succeeds, before the category delete is issued.
        """
        try:
            await self.api.unlink_category_tasks(category_id)
        except Exception as e:
            self._remote_failed("delete_category", "Failed to update tasks of the category", e)
            return False

        self.tasks = [
            task.model_copy(update={"category_id": None, "category_name": None})
            if task.category_id == category_id else task
            for task in self.tasks
        ]

        try:
            await self.api.delete_category(category_id, unlink_tasks=False)
        except Exception as e:
            self._remote_failed("delete_category", "Failed to delete category", e)
            return False

        self.categories = [c for c in self.categories if c.id != category_id]
        return True

    # Views

    def tree(self) -> list[Task]:
        return build_subtask_tree(self.tasks)

    def date_page(self, page_index: Optional[int] = None, page_size: int = AppConfig.DATES_PER_PAGE) -> Page:
        """Date groups of the current page; passing page_index also moves the current page."""
        if page_index is not None:
            self.page_index = page_index
        page_index = self.page_index
        groups: list[DateGroup] = build_date_groups(self.tasks)
        pages = total_pages(len(groups), page_size)
        return Page(
            items=paginate(groups, page_index, page_size),
            page_index=page_index,
            total_pages=pages,
            window=page_window(page_index, pages),
        )

    def category_groups(self) -> list[CategoryGroup]:
        return build_category_groups(self.tasks, self.categories)

    @staticmethod
    def section_page(tasks: list[Task], page_index: int = 0, page_size: int = AppConfig.TASKS_PER_PAGE) -> Page:
        """One page of the tasks inside a date or category section."""
        pages = total_pages(len(tasks), page_size)
        return Page(
            items=paginate(tasks, page_index, page_size),
            page_index=page_index,
            total_pages=pages,
            window=page_window(page_index, pages),
        )
