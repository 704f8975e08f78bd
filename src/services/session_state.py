"""Persistent view state: selected month and expanded date sections."""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from src.utils.config import AppConfig
from src.utils.dates import current_month, is_valid_month
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class SessionState(BaseModel):
    """View state that survives a restart. Read once at startup, written on every change."""
    selected_month: str = Field(default_factory=current_month, description="Month shown in the main view (YYYY-MM)")
    expanded_dates: dict[str, bool] = Field(default_factory=dict, description="Date section -> expanded")

    @field_validator("selected_month")
    @classmethod
    def _month_format(cls, value: str) -> str:
        if not is_valid_month(value):
            raise ValueError("selected_month must be in YYYY-MM format")
        return value


class SessionStore:
    """Loads and saves SessionState as a JSON file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or AppConfig.SESSION_STATE_PATH)
        self.state = SessionState()

    def load(self) -> SessionState:
        """Read saved state; a missing or unreadable file falls back to the current month."""
        if not self.path.exists():
            self.state = SessionState()
            return self.state

        try:
            self.state = SessionState.model_validate(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable session state", path=str(self.path), error=str(e))
            self.state = SessionState()
        return self.state

    def save(self) -> None:
        self.path.write_text(self.state.model_dump_json(indent=2), encoding="utf-8")

    def select_month(self, month: str) -> bool:
        """Store a new month; returns False when it was already selected."""
        if not is_valid_month(month):
            raise ValueError(f"Month must be in YYYY-MM format: {month!r}")
        if month == self.state.selected_month:
            return False
        self.state.selected_month = month
        self.save()
        return True

    def is_expanded(self, due_date: str) -> bool:
        return self.state.expanded_dates.get(due_date, False)

    def set_expanded(self, due_date: str, expanded: bool) -> None:
        self.state.expanded_dates[due_date] = expanded
        self.save()
