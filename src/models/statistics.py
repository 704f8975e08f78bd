"""Progress and statistics value types."""

from pydantic import BaseModel, Field


class Progress(BaseModel):
    """Completion summary for a group of tasks."""
    progress_rate: int = Field(0, ge=0, le=100, description="Completed percentage, rounded")
    completed_count: int = Field(0, ge=0)
    total_count: int = Field(0, ge=0)


class DailyStatistic(BaseModel):
    """Completed/total counts for one due date."""
    date: str = Field(..., description="Due date (YYYY-MM-DD)")
    completed: int = Field(0, ge=0)
    total: int = Field(0, ge=0)
