"""Task models."""

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    """Canonical tri-state task status."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# Python field name -> database column
TASK_COLUMNS = {
    "id": "id",
    "name": "name",
    "status": "app_status",
    "created_at": "createdAt",
    "due_date": "dueDate",
    "category_id": "categoryId",
    "description": "description",
    "parent_task_id": "parent_task_id",
    "user_id": "user_id",
}

# Never written by update operations
IMMUTABLE_COLUMNS = {"id", "createdAt"}


class Task(BaseModel):
    """Task model. Field aliases match the tasks table columns."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Task ID (UUID)")
    name: str = Field(..., min_length=1, description="Task name")
    status: TaskStatus = Field(default=TaskStatus.TODO, alias="app_status", description="Tri-state status")
    created_at: Optional[str] = Field(None, alias="createdAt", description="Creation timestamp (ISO-8601)")
    due_date: date = Field(..., alias="dueDate", description="Due date")
    category_id: Optional[str] = Field(None, alias="categoryId", description="Category ID")
    description: Optional[str] = Field(None, description="Task description")
    parent_task_id: Optional[str] = Field(None, description="Parent task ID (subtasks only)")
    user_id: Optional[str] = Field(None, description="Owner ID")
    category_name: Optional[str] = Field(None, alias="categoryName", description="Joined category name (read-only)")
    subtasks: list["Task"] = Field(default_factory=list, description="Derived child tasks")

    @property
    def due_date_key(self) -> str:
        """Due date as the YYYY-MM-DD string used for grouping."""
        return self.due_date.isoformat()

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_subtask(self) -> bool:
        return self.parent_task_id is not None

    @classmethod
    def from_record(cls, record: dict) -> "Task":
        """
        Build a Task from a database row.

        Rows from older schemas carry either a boolean `completed` flag or a
        tri-state `status` column instead of `app_status`; both are converted
        here so nothing past the data-access boundary branches on them.
        """
        data = dict(record)

        if "app_status" not in data or data["app_status"] is None:
            legacy_status = data.pop("status", None)
            completed = data.pop("completed", None)
            if legacy_status:
                data["app_status"] = legacy_status
            elif completed is not None:
                data["app_status"] = TaskStatus.COMPLETED if completed else TaskStatus.TODO
        else:
            data.pop("status", None)
            data.pop("completed", None)

        joined = data.pop("categories", None)
        if isinstance(joined, dict) and joined.get("name") and not data.get("categoryName"):
            data["categoryName"] = joined["name"]

        return cls.model_validate(data)

    def to_record(self) -> dict:
        """Serialize to a database row (derived fields dropped)."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"subtasks", "category_name"},
            exclude_none=True,
        )


Task.model_rebuild()


def to_task_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """
    Map a partial field set to database columns.

    Accepts Python field names or column names; dates and enums are converted
    to their JSON form. Unknown keys are rejected.
    """
    column_names = set(TASK_COLUMNS.values())
    columns: dict[str, Any] = {}
    for key, value in fields.items():
        if key in TASK_COLUMNS:
            column = TASK_COLUMNS[key]
        elif key in column_names:
            column = key
        else:
            raise ValueError(f"Unknown task field: {key}")

        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, date):
            value = value.isoformat()
        columns[column] = value
    return columns
