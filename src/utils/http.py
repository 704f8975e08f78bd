"""Shared plumbing for the Vercel serverless JSON handlers."""

import asyncio
import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import parse_qs, urlparse

from src.utils.errors import InputValidationError, NotFoundError, SupabaseError
from src.utils.logging import correlation_context, get_structured_logger

logger = get_structured_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class JSONRequestHandler(BaseHTTPRequestHandler):
    """BaseHTTPRequestHandler with JSON request/response helpers and error mapping."""

    def _send_json(self, status: int, payload: Any = None) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        if payload is not None:
            self.wfile.write(json.dumps(payload).encode('utf-8'))

    def _read_json(self) -> dict[str, Any]:
        """Parse the request body as a JSON object; an empty body is {}."""
        try:
            content_length = int(self.headers.get('Content-Length', 0) or 0)
        except ValueError:
            raise InputValidationError("Invalid Content-Length header")

        if content_length <= 0:
            return {}
        try:
            body = json.loads(self.rfile.read(content_length).decode('utf-8'))
        except ValueError:
            raise InputValidationError("Request body must be valid JSON")

        if not isinstance(body, dict):
            raise InputValidationError("Request body must be a JSON object")
        return body

    def _query(self) -> dict[str, str]:
        parsed = parse_qs(urlparse(self.path).query)
        return {key: values[0] for key, values in parsed.items() if values}

    def _dispatch(self, operation: str, action: Callable[[], Awaitable[tuple[int, Any]]]) -> None:
        """Run an async action and translate domain errors into status codes."""
        correlation_id: Optional[str] = self.headers.get(CORRELATION_HEADER)
        with correlation_context(correlation_id):
            try:
                status, payload = asyncio.run(action())
            except InputValidationError as e:
                logger.warning(f"{operation} rejected", operation=operation, error=str(e))
                self._send_json(400, {"message": str(e)})
                return
            except NotFoundError as e:
                self._send_json(404, {"message": str(e)})
                return
            except SupabaseError as e:
                logger.error(f"{operation} failed", operation=operation, error=str(e))
                self._send_json(500, {"message": f"Error during {operation}", "error": str(e)})
                return
            except Exception as e:
                logger.exception(f"Unexpected error in {operation}", operation=operation, error=str(e))
                self._send_json(500, {"message": "internal server error"})
                return

        self._send_json(status, payload)
