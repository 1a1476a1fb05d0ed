"""Shared test configuration for resolve-json tests.

Provides:
- HTTP mock server serving JSON resources (for HttpResourceFetcher and the CLI)
- A recording fetch collaborator for scheduler tests
- Common documents
"""

import asyncio
import json
from typing import Any

import pytest
from pytest_httpserver import HTTPServer
from werkzeug.wrappers import Request, Response

from resolve_json.engine.fetch import FetchRequest

USERS = [
    {"id": "aaa", "name": "Alice"},
    {"id": "bbb", "name": "Frank"},
    {"id": "ccc", "name": "Zorp"},
]


class RecordingFetcher:
    """Fetch collaborator returning canned responses and recording every request.

    Responses are looked up by address; unknown addresses get ``default``.
    """

    def __init__(self, responses: dict[str, Any] | None = None, default: Any = None, delay: float = 0.01):
        self.responses = responses or {}
        self.default = default
        self.delay = delay
        self.requests: list[FetchRequest] = []

    async def __call__(self, request: FetchRequest) -> Any:
        self.requests.append(request)
        await asyncio.sleep(self.delay)
        return self.responses.get(request.address, self.default)

    @property
    def addresses(self) -> list[str]:
        return [request.address for request in self.requests]


@pytest.fixture
def recording_fetcher() -> RecordingFetcher:
    """Collaborator answering every request with USERS."""
    return RecordingFetcher(default=USERS)


@pytest.fixture
def users() -> list[dict[str, str]]:
    return [dict(user) for user in USERS]


@pytest.fixture
def resource_api(httpserver: HTTPServer) -> HTTPServer:
    """
    Local HTTP server exposing a small JSON API.

    Endpoints:
    - GET /users: USERS as JSON
    - GET /echo: Echoes query args and headers
    - POST /echo: Echoes the JSON body
    - GET /text: Plain text body
    - GET /missing: 404

    Usage in tests:
        base_url = resource_api.url_for("/").rstrip("/")
        document = {"users": {"method": "GET", "path": f"{base_url}/users"}}
    """
    httpserver.expect_request("/users", method="GET").respond_with_json(USERS)

    def echo_get_handler(request: Request) -> Response:
        data = {
            "args": dict(request.args),
            "headers": {k: v for k, v in request.headers},
        }
        return Response(json.dumps(data), content_type="application/json")

    def echo_post_handler(request: Request) -> Response:
        data = {
            "json": request.get_json(silent=True),
            "content_type": request.headers.get("Content-Type", ""),
        }
        return Response(json.dumps(data), content_type="application/json")

    httpserver.expect_request("/echo", method="GET").respond_with_handler(echo_get_handler)
    httpserver.expect_request("/echo", method="POST").respond_with_handler(echo_post_handler)
    httpserver.expect_request("/text", method="GET").respond_with_data(
        "plain body", content_type="text/plain"
    )
    httpserver.expect_request("/missing", method="GET").respond_with_data("nope", status=404)

    return httpserver
