"""Category model."""

from typing import Optional
from pydantic import BaseModel, Field


class Category(BaseModel):
    """Task category. `position` only exists on schemas with user-defined ordering."""
    id: str = Field(..., description="Category ID (UUID)")
    name: str = Field(..., min_length=1, description="Category name")
    position: Optional[int] = Field(None, description="User-defined sort position")
    user_id: Optional[str] = Field(None, description="Owner ID")
