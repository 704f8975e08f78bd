"""Task form: field collection, required-field validation, create vs. update."""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.models.task import Task, TaskStatus
from src.utils.dates import today
from src.utils.errors import InputValidationError
from src.utils.ids import is_valid_uuid


class TaskForm(BaseModel):
    """Editable task fields. `task_id` is set when editing an existing task."""
    task_id: Optional[str] = None
    name: str = ""
    due_date: Optional[date] = Field(default_factory=today)
    status: TaskStatus = TaskStatus.TODO
    category_id: Optional[str] = None
    description: Optional[str] = None
    parent_task_id: Optional[str] = None
    is_open: bool = True

    @classmethod
    def for_task(cls, task: Task) -> "TaskForm":
        return cls(
            task_id=task.id,
            name=task.name,
            due_date=task.due_date,
            status=task.status,
            category_id=task.category_id,
            description=task.description,
            parent_task_id=task.parent_task_id,
        )

    @classmethod
    def for_subtask(cls, parent: Task) -> "TaskForm":
        """New subtask inheriting the parent's due date and category."""
        return cls(
            due_date=parent.due_date,
            category_id=parent.category_id,
            parent_task_id=parent.id,
        )

    @property
    def is_update(self) -> bool:
        return is_valid_uuid(self.task_id)

    def check_required(self) -> None:
        """Name and due date must be filled before anything is sent."""
        if not self.name.strip() or self.due_date is None:
            raise InputValidationError("Task name and due date are required")

    def to_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "name": self.name.strip(),
            "due_date": self.due_date,
            "status": self.status,
            "category_id": self.category_id or None,
            "description": self.description or None,
        }
        if self.parent_task_id:
            fields["parent_task_id"] = self.parent_task_id
        return fields

    async def submit(self, api: Any) -> Task:
        """Validate, then create or update through the data-access API; returns the saved record."""
        self.check_required()
        if self.is_update:
            return await api.update_task(self.task_id, self.to_fields())
        return await api.create_task(self.to_fields())
