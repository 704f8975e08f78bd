"""Search/filter criteria for task queries."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from src.models.task import TaskStatus
from src.utils.dates import is_valid_month
from src.utils.errors import InputValidationError


class TaskType(str, Enum):
    """Root tasks (`parent`) or subtasks (`child`)."""
    PARENT = "parent"
    CHILD = "child"


CRITERIA_FIELDS = ("category_id", "keyword", "due_date", "month", "status", "task_type")


class TaskFilter(BaseModel):
    """
    Optional predicates combined with AND semantics.

    `user_id` scopes queries to an owner and is not a criterion: a filter with
    only an owner set still counts as empty for destructive operations.
    """
    category_id: Optional[str] = Field(None, description="Exact category match")
    keyword: Optional[str] = Field(None, description="Case-insensitive substring of name")
    due_date: Optional[date] = Field(None, description="Exact due date")
    month: Optional[str] = Field(None, description="Due month (YYYY-MM)")
    status: Optional[TaskStatus] = Field(None, description="Exact status")
    task_type: Optional[TaskType] = Field(None, description="parent or child")
    user_id: Optional[str] = Field(None, description="Owner scope")

    @field_validator("category_id", "keyword", "month", "user_id", "due_date", "status", "task_type", mode="before")
    @classmethod
    def _blank_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("month")
    @classmethod
    def _month_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_month(value):
            raise ValueError("month must be in YYYY-MM format")
        return value

    def has_criteria(self) -> bool:
        return any(getattr(self, name) is not None for name in CRITERIA_FIELDS)

    def require_criteria(self) -> "TaskFilter":
        """Reject an all-empty filter set before it reaches a bulk operation."""
        if not self.has_criteria():
            raise InputValidationError("At least one filter is required for bulk operations")
        return self

    @classmethod
    def from_query_params(cls, params: dict) -> "TaskFilter":
        """Build a filter from HTTP query parameters."""
        def first(name):
            value = params.get(name)
            if isinstance(value, list):
                return value[0] if value else None
            return value

        task_type = first("taskType")
        is_child = first("is_child")
        if task_type is None and is_child is not None:
            task_type = TaskType.CHILD if str(is_child).lower() == "true" else TaskType.PARENT

        try:
            return cls(
                category_id=first("categoryId"),
                keyword=first("keyword"),
                due_date=first("dueDate"),
                month=first("month"),
                status=first("status"),
                task_type=task_type,
                user_id=first("userId"),
            )
        except ValueError as e:
            raise InputValidationError(f"Invalid filter: {e}")
