"""Monthly completion statistics endpoint."""

from src.services import supabase_client
from src.utils.errors import InputValidationError
from src.utils.http import JSONRequestHandler
from src.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()


class handler(JSONRequestHandler):
    """GET /api/statistics?month=YYYY-MM -> [{date, completed, total}]."""

    def do_GET(self):
        query = self._query()

        async def action():
            month = query.get("month")
            if not month:
                raise InputValidationError("Month parameter is required")
            stats = await supabase_client.get_statistics(month, user_id=query.get("userId"))
            return 200, [entry.model_dump() for entry in stats]

        self._dispatch("statistics", action)
