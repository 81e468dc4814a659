"""
HTTP transport implementation using httpx.

Provides authenticated async JSON calls with:
- Persistent connection pooling
- API key header injection
- Error normalization into TransportError
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .base import ApiRequest, Transport, TransportError


logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"

# Path used by the credential test request
STATUS_PATH = "/status"


class HttpxTransport(Transport):
    """Transport backed by a shared httpx.AsyncClient.

    One client is reused for every call of a batch; it is created
    lazily and closed by `close()` or the async context manager.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize HTTP transport.

        Args:
            api_url: Base URL of the API, fixed for the transport's lifetime
            api_key: Key sent in the x-api-key header
            timeout: Timeout for a single round trip in seconds
            client: Preconfigured client (mainly for tests)
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.default_headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            API_KEY_HEADER: api_key,
        }
        self._client = client

    @property
    def name(self) -> str:
        return "httpx"

    def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self.default_headers,
            )
        return self._client

    def _url(self, path: str) -> str:
        return f"{self.api_url}{path}"

    async def send(self, request: ApiRequest) -> Any:
        """Send a request and decode the JSON response.

        Args:
            request: Request specification

        Returns:
            Parsed JSON body

        Raises:
            TransportError: On any network, status or decoding failure
        """
        client = self._ensure_client()
        url = self._url(request.path)
        method = request.method.upper()

        if method not in ("GET", "POST"):
            raise TransportError(f"Unsupported method: {request.method}", url=url)

        logger.debug(f"{method} {url} params={request.params or {}}")

        try:
            response = await client.request(
                method,
                url,
                headers=self.default_headers,
                params=request.params or None,
                json=request.json_body,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise TransportError(
                f"{method} {request.path} returned HTTP {status_code}: {_error_detail(e.response)}",
                url=url,
                status_code=status_code,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"{method} {request.path} failed: {e}",
                url=url,
                cause=e,
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {request.path} returned a non-JSON body",
                url=url,
                status_code=response.status_code,
                cause=e,
            ) from e

    async def check(self) -> Any:
        """Issue the credential test request (GET /status)."""
        return await self.get(STATUS_PATH)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error text from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase

    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            if body.get(key):
                return str(body[key])
    return str(body)[:200]
