"""HTTP client wrapper for the key service API.

Handles authentication, request serialization and error classification.
"""

from __future__ import annotations

import json
from types import TracebackType
from typing import Any

import httpx
import structlog

from openrouter_keys.errors import (
    DecodingError,
    EncodingError,
    TransportError,
    raise_for_error_response,
)

logger = structlog.get_logger()

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT = 30.0


class HTTPClient:
    """Async HTTP client for the key service API.

    Wraps httpx.AsyncClient with:
    - Bearer authentication and JSON content type on every request
    - Mapping of failures to EncodingError / TransportError /
      DecodingError / RemoteError
    - Request/response logging

    Every call is a single attempt. There are no retries: a failed
    exchange is surfaced to the caller immediately.

    Configuration (base URL, credential, timeout) is fixed at construction,
    so one instance can be shared by any number of repositories.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        access_token: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize HTTP client.

        Args:
            base_url: API base URL (e.g., "https://openrouter.ai/api/v1")
            access_token: Bearer token for authentication
            timeout: Default request timeout in seconds

        Raises:
            ValueError: If access_token or base_url is empty
        """
        if not access_token:
            raise ValueError("access_token must not be empty")
        if not base_url:
            raise ValueError("base_url must not be empty")
        self._base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    async def __aenter__(self) -> HTTPClient:
        """Enter async context, creating HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Content-Type": "application/json",
            },
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context, closing HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the underlying httpx client."""
        if self._client is None:
            raise RuntimeError("HTTPClient not initialized. Use 'async with' context.")
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        expect_body: bool = True,
        operation: str | None = None,
        key_id: str | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Make a single HTTP request to the key service.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            path: API path relative to the base URL (e.g., "/keys")
            body: Request body, serialized to JSON when given
            params: Query parameters, sent as-is
            expect_body: Whether the caller wants the response body decoded
            operation: Operation name attached to raised errors
            key_id: API key hash attached to raised errors
            timeout: Override default timeout for this request

        Returns:
            Parsed JSON response body, or None when the body is empty or
            not expected.

        Raises:
            EncodingError: If body cannot be serialized
            TransportError: On connection, timeout or read failure
            RemoteError: On status >= 400
            DecodingError: If the response body is not valid JSON
        """
        content: bytes | None = None
        if body is not None:
            try:
                content = json.dumps(body, allow_nan=False).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise EncodingError(
                    f"Failed to encode request body: {exc}",
                    operation=operation,
                    key_id=key_id,
                ) from exc

        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.debug("http.request", method=method, path=path)

        try:
            response = await self.client.request(
                method,
                path,
                content=content,
                params=params or None,
                **kwargs,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Request timed out: {exc!r}",
                operation=operation,
                key_id=key_id,
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(
                f"Request failed: {exc!r}",
                operation=operation,
                key_id=key_id,
            ) from exc

        logger.debug("http.response", method=method, path=path, status=response.status_code)

        if response.status_code >= 400:
            raise_for_error_response(
                response.status_code,
                response.text,
                self._parse_json_or_none(response),
                operation=operation,
                key_id=key_id,
            )

        if not expect_body or not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            raise DecodingError(
                f"Failed to decode response body: {exc}",
                operation=operation,
                key_id=key_id,
            ) from exc

    @staticmethod
    def _parse_json_or_none(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def get(
        self,
        path: str,
        *,
        params: dict[str, str] | None = None,
        operation: str | None = None,
        key_id: str | None = None,
    ) -> Any:
        """Make a GET request."""
        return await self.request(
            "GET", path, params=params, operation=operation, key_id=key_id
        )

    async def post(
        self,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        operation: str | None = None,
        key_id: str | None = None,
    ) -> Any:
        """Make a POST request."""
        return await self.request(
            "POST", path, body=body, operation=operation, key_id=key_id
        )

    async def patch(
        self,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        operation: str | None = None,
        key_id: str | None = None,
    ) -> Any:
        """Make a PATCH request."""
        return await self.request(
            "PATCH", path, body=body, operation=operation, key_id=key_id
        )

    async def delete(
        self,
        path: str,
        *,
        operation: str | None = None,
        key_id: str | None = None,
    ) -> None:
        """Make a DELETE request. Any response body is ignored."""
        await self.request(
            "DELETE", path, expect_body=False, operation=operation, key_id=key_id
        )
