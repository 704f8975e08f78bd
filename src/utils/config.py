"""Application configuration read from environment variables."""

import os


class AppConfig:
    """Tables, paging and storage settings."""

    TASKS_TABLE = os.environ.get("TASKS_TABLE", "tasks")
    CATEGORIES_TABLE = os.environ.get("CATEGORIES_TABLE", "categories")

    # Month view shows dates per page, each date/category section shows tasks per page
    DATES_PER_PAGE = int(os.environ.get("DATES_PER_PAGE", "9"))
    TASKS_PER_PAGE = int(os.environ.get("TASKS_PER_PAGE", "6"))
    MAX_VISIBLE_PAGES = int(os.environ.get("MAX_VISIBLE_PAGES", "5"))

    SESSION_STATE_PATH = os.environ.get("SESSION_STATE_PATH", ".progress_tracker_session.json")
    SEED_SENTINEL_PREFIX = os.environ.get("SEED_SENTINEL_PREFIX", "dummy-")

    UNCATEGORIZED_LABEL = os.environ.get("UNCATEGORIZED_LABEL", "Uncategorized")
