"""Health check endpoint."""

import os

from src.utils.config import AppConfig
from src.utils.http import JSONRequestHandler


class handler(JSONRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Report liveness and whether Supabase credentials are configured."""
        configured = bool(os.environ.get("SUPABASE_URL")) and bool(
            os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_ANON_KEY")
        )
        self._send_json(200, {
            "status": "ok",
            "service": "progress-tracker-backend",
            "supabase_configured": configured,
            "tables": {"tasks": AppConfig.TASKS_TABLE, "categories": AppConfig.CATEGORIES_TABLE},
        })

    def do_POST(self):
        """Handle POST request (same as GET for health check)."""
        self.do_GET()
