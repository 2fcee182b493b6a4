"""API key repository for the key service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from openrouter_keys.errors import DecodingError, EncodingError
from openrouter_keys.query import encode_list_params
from openrouter_keys.types import (
    ApiKeyPage,
    ApiKeyPatch,
    ApiKeyRecord,
    CreatedApiKey,
    ListFilter,
    _CreateApiKeyRequest,
)

if TYPE_CHECKING:
    from openrouter_keys._http import HTTPClient

logger = structlog.get_logger()

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _decode(
    model: type[_ModelT],
    payload: Any,
    *,
    operation: str,
    key_id: str | None = None,
) -> _ModelT:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise DecodingError(
            f"Unexpected response shape: {exc}",
            operation=operation,
            key_id=key_id,
        ) from exc


def _unwrap(payload: Any, *, operation: str, key_id: str | None = None) -> ApiKeyRecord:
    """Pull the record out of a ``{"data": {...}}`` envelope."""
    if not isinstance(payload, dict) or "data" not in payload:
        raise DecodingError(
            "Response is missing the 'data' envelope",
            operation=operation,
            key_id=key_id,
        )
    return _decode(ApiKeyRecord, payload["data"], operation=operation, key_id=key_id)


class ApiKeyRepository:
    """Typed CRUD operations on the API key collection.

    Each method issues exactly one request. Errors from the transport
    propagate unchanged; nothing is retried.
    """

    def __init__(self, http: HTTPClient) -> None:
        """Initialize ApiKeyRepository.

        Args:
            http: HTTP client for making requests
        """
        self._http = http

    async def get_current(self) -> ApiKeyRecord:
        """Get the API key used to authenticate this client."""
        response = await self._http.get("/key", operation="read current")
        return _unwrap(response, operation="read current")

    async def get(self, key_id: str) -> ApiKeyRecord:
        """Get an API key by hash.

        Raises:
            NotFoundError: If the key doesn't exist
        """
        response = await self._http.get(f"/keys/{key_id}", operation="read", key_id=key_id)
        return _unwrap(response, operation="read", key_id=key_id)

    async def list(self, list_filter: ListFilter | None = None) -> ApiKeyPage:
        """List API keys.

        By default disabled keys are excluded server-side.

        Args:
            list_filter: Filter and pagination; None uses server defaults

        Returns:
            ApiKeyPage with the keys of the requested page
        """
        response = await self._http.get(
            "/keys",
            params=encode_list_params(list_filter),
            operation="list",
        )
        return _decode(ApiKeyPage, response, operation="list")

    async def create(
        self,
        name: str,
        *,
        limit: float | None = None,
        limit_minutes: int | None = None,
    ) -> CreatedApiKey:
        """Create an API key.

        Not idempotent: two calls create two keys with two secrets.

        Args:
            name: Display name
            limit: Spend limit in USD. None = no cap.
            limit_minutes: Limit window in minutes. None = no window.

        Returns:
            CreatedApiKey carrying the record and the one-time secret
        """
        try:
            body = _CreateApiKeyRequest(
                name=name,
                limit=limit,
                limit_minutes=limit_minutes,
            ).model_dump(exclude_none=True)
        except PydanticValidationError as exc:
            raise EncodingError(f"Invalid create request: {exc}", operation="create") from exc

        response = await self._http.post("/keys", body=body, operation="create")
        created = _decode(CreatedApiKey, response, operation="create")
        logger.info("api_key.created", key_id=created.id, name=created.data.name)
        return created

    async def update(self, key_id: str, patch: ApiKeyPatch) -> ApiKeyRecord:
        """Apply a partial update to an API key.

        Only fields set on the patch are sent.

        Args:
            key_id: API key hash
            patch: Fields to change

        Returns:
            The updated record
        """
        body = patch.to_body()
        response = await self._http.patch(
            f"/keys/{key_id}",
            body=body,
            operation="update",
            key_id=key_id,
        )
        record = _unwrap(response, operation="update", key_id=key_id)
        logger.info("api_key.updated", key_id=key_id, fields=sorted(body))
        return record

    async def delete(self, key_id: str) -> None:
        """Delete an API key.

        A second delete of the same key is answered by the server
        (usually 404) and raised as-is.

        Raises:
            NotFoundError: If the key doesn't exist
        """
        await self._http.delete(f"/keys/{key_id}", operation="delete", key_id=key_id)
        logger.info("api_key.deleted", key_id=key_id)
