"""
Resource fetching.

The scheduler hands every ready Resource to a fetch collaborator as a
FetchRequest. Any callable accepting a FetchRequest works, sync or async;
HttpResourceFetcher is the httpx-backed default used by the CLI.

Features:
- JSON request body for write-style methods (POST, PUT, PATCH)
- Query string built from the resolved query mapping
- Non-2xx responses raise httpx.HTTPStatusError
- JSON responses are parsed, anything else is returned as text
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, field_validator

from ..settings import ResolverSettings
from .nodes import WRITE_METHODS

logger = logging.getLogger(__name__)


class FetchRequest(BaseModel):
    """Concrete request for one resource, every expression already resolved.

    Field names follow the document grammar (``address`` is the resource's
    ``path`` key).
    """

    method: str = Field(default="GET", description="HTTP method (GET, POST, PUT, DELETE, PATCH, etc.)")
    address: str = Field(description="Request URL")
    query: dict[str, Any] | None = Field(default=None, description="Query string parameters")
    body: Any = Field(default=None, description="JSON request body (write-style methods only)")
    headers: dict[str, str] | None = Field(default=None, description="HTTP headers")

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @property
    def has_body(self) -> bool:
        return self.method in WRITE_METHODS


class HttpResourceFetcher:
    """
    Fetch collaborator backed by httpx.AsyncClient.

    A client is created per request unless one is supplied, in which case
    the caller owns its lifecycle.

    Example:
        fetcher = HttpResourceFetcher(timeout=10)
        document = await resolve_async(document, fetch_resource=fetcher)
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        settings: ResolverSettings | None = None,
    ):
        """
        Args:
            timeout: Request timeout in seconds (defaults to settings.fetch_timeout)
            client: Shared client to send requests with
            settings: Settings supplying the default timeout
        """
        settings = settings or ResolverSettings.from_env()
        self.timeout = timeout if timeout is not None else settings.fetch_timeout
        self.client = client

    async def __call__(self, request: FetchRequest) -> Any:
        """
        Perform the request and return the decoded response.

        Raises:
            httpx.TimeoutException: Request timeout
            httpx.NetworkError: Network connectivity issues
            httpx.HTTPStatusError: Non-2xx response
        """
        if self.client is not None:
            return await self._send(self.client, request)

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await self._send(client, request)

    async def _send(self, client: httpx.AsyncClient, request: FetchRequest) -> Any:
        headers = dict(request.headers or {})
        body = request.body if request.has_body else None
        if body is not None and "Content-Type" not in headers and "content-type" not in headers:
            headers["Content-Type"] = "application/json"

        logger.debug(f"{request.method} {request.address} query={request.query}")

        try:
            response = await client.request(
                method=request.method,
                url=request.address,
                params=request.query,
                headers=headers,
                json=body,
            )
        except httpx.TimeoutException as e:
            raise httpx.TimeoutException(
                f"Request timeout after {self.timeout}s: {request.address}"
            ) from e
        except httpx.NetworkError as e:
            raise httpx.NetworkError(f"Network error for {request.address}: {e}") from e

        response.raise_for_status()
        return decode_response(response)


def decode_response(response: httpx.Response) -> Any:
    """Parsed JSON when the response declares JSON, otherwise the body text."""
    content_type = response.headers.get("content-type", "")
    if "json" in content_type.lower():
        try:
            return response.json()
        except json.JSONDecodeError:
            logger.warning(f"Invalid JSON in response from {response.request.url}")
    return response.text


__all__ = ["FetchRequest", "HttpResourceFetcher", "decode_response"]
