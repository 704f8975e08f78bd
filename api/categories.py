"""Categories endpoint."""

from src.services import supabase_client
from src.utils.errors import InputValidationError
from src.utils.http import JSONRequestHandler
from src.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()


class handler(JSONRequestHandler):
    """Vercel serverless function handler for /api/categories."""

    def do_GET(self):
        query = self._query()

        async def action():
            categories = await supabase_client.list_categories(user_id=query.get("userId"))
            return 200, [category.model_dump() for category in categories]

        self._dispatch("list categories", action)

    def do_POST(self):
        async def action():
            body = self._read_json()
            category = await supabase_client.create_category(
                body.get("name", ""),
                position=body.get("position"),
                user_id=body.get("user_id"),
            )
            return 201, category.model_dump()

        self._dispatch("create category", action)

    def do_PUT(self):
        """Rename/reposition one category (`?id=`) or save a full order (`{"order": [...]}`)."""
        query = self._query()

        async def action():
            body = self._read_json()
            if query.get("id"):
                category = await supabase_client.update_category(query["id"], body)
                return 200, category.model_dump()

            order = body.get("order")
            if not isinstance(order, list):
                raise InputValidationError("Category id or order list is required")
            by_id = {category.id: category for category in await supabase_client.list_categories()}
            ordered = [by_id[category_id] for category_id in order if category_id in by_id]
            categories = await supabase_client.reorder_categories(ordered)
            return 200, [category.model_dump() for category in categories]

        self._dispatch("update categories", action)

    def do_DELETE(self):
        """Delete a category; its tasks become uncategorized first."""
        query = self._query()

        async def action():
            if not query.get("id"):
                raise InputValidationError("Category id is required")
            await supabase_client.delete_category(query["id"])
            return 204, None

        self._dispatch("delete category", action)
