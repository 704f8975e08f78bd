"""Identifier helpers."""

import uuid
from typing import Any


def generate_id() -> str:
    """Generate a new UUID4 string for tasks and categories."""
    return str(uuid.uuid4())


def is_valid_uuid(value: Any) -> bool:
    """Return True for a canonical, hyphenated UUID string."""
    if not isinstance(value, str) or not value:
        return False
    try:
        parsed = uuid.UUID(value)
    except ValueError:
        return False
    return str(parsed) == value.lower()
