"""Calendar helpers for the month-based views."""

import re
from datetime import date
from typing import Optional

from src.utils.errors import InputValidationError

MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def today() -> date:
    """Local calendar date."""
    return date.today()


def current_month() -> str:
    """Current month as YYYY-MM."""
    return today().strftime("%Y-%m")


def is_valid_month(month: Optional[str]) -> bool:
    return bool(month) and MONTH_PATTERN.match(month) is not None


def parse_month(month: str) -> tuple[int, int]:
    """Split YYYY-MM into (year, month), rejecting anything else."""
    match = MONTH_PATTERN.match(month or "")
    if not match:
        raise InputValidationError(f"Month must be in YYYY-MM format: {month!r}")
    return int(match.group(1)), int(match.group(2))


def month_bounds(month: str) -> tuple[date, date]:
    """
    Half-open interval [first of month, first of next month).

    December rolls over into January of the following year.
    """
    year, month_number = parse_month(month)
    start = date(year, month_number, 1)
    if month_number == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month_number + 1, 1)
    return start, end


def shift_month(month: str, delta: int) -> str:
    """Move a YYYY-MM value by delta months (negative goes back)."""
    year, month_number = parse_month(month)
    index = year * 12 + (month_number - 1) + delta
    return f"{index // 12:04d}-{index % 12 + 1:02d}"
