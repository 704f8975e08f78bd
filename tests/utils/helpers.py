"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Optional
from unittest.mock import MagicMock, Mock

BUILDER_METHODS = (
    "select", "insert", "update", "upsert", "delete",
    "eq", "in_", "ilike", "gte", "lt", "is_", "order", "limit",
)


def make_query_mock(data: Optional[list] = None) -> MagicMock:
    """PostgREST-style builder: every filter returns the builder, execute() returns `data`."""
    query = MagicMock()
    for method in BUILDER_METHODS:
        getattr(query, method).return_value = query
    query.not_ = query
    query.execute.return_value = MagicMock(data=data if data is not None else [])
    return query


def make_client_mock(query: MagicMock) -> MagicMock:
    client = MagicMock()
    client.table.return_value = query
    return client


def called_methods(query: MagicMock) -> list[str]:
    """Names of builder methods called on the query, in call order."""
    return [name for name, _args, _kwargs in query.method_calls]


def make_handler(handler_cls, method: str, path: str, body: Any = None, headers: Optional[dict] = None):
    """
    Build a serverless handler instance without a socket.

    Only the attributes the JSON handlers touch are populated; response
    methods are mocked so the written body can be inspected.
    """
    raw = json.dumps(body).encode("utf-8") if body is not None else b""
    h = handler_cls.__new__(handler_cls)
    h.command = method
    h.path = path
    h.headers = {"Content-Type": "application/json", "Content-Length": str(len(raw))}
    h.headers.update(headers or {})
    h.rfile = BytesIO(raw)
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()
    return h


def response_status(h) -> int:
    return h.send_response.call_args[0][0]


def response_json(h) -> Any:
    raw = h.wfile.getvalue().decode("utf-8")
    return json.loads(raw) if raw else None
