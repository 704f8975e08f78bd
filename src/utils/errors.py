"""Error handling utilities."""


class ProgressTrackerError(Exception):
    """Base exception for the progress tracker backend."""
    pass


class InputValidationError(ProgressTrackerError):
    """Request rejected before any remote call (missing field, empty filter set)."""
    pass


class SupabaseError(ProgressTrackerError):
    """Supabase operation error."""
    pass


class NotFoundError(SupabaseError):
    """Update or delete matched no row."""
    pass
