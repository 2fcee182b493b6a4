"""Key service error types.

Four categories cover every failure of a single request:

- EncodingError: the request could not be built or serialized locally
- TransportError: the exchange never completed (DNS, TLS, timeout, read)
- DecodingError: the server answered with a body we cannot parse
- RemoteError: the server rejected the request (status >= 400)

RemoteError is further split by status code for programmatic handling.
"""

from __future__ import annotations


class KeyServiceError(Exception):
    """Base error for all key service exceptions."""

    message: str = "Key service request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        operation: str | None = None,
        key_id: str | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.operation = operation
        self.key_id = key_id
        super().__init__(self.message)

    def _describe(self, detail: str) -> str:
        if self.operation is None:
            return detail
        if self.key_id:
            target = f"API key {self.key_id}"
        elif self.operation == "list":
            target = "API keys"
        else:
            target = "API key"
        return f"Unable to {self.operation} {target}: {detail}"

    def __str__(self) -> str:
        return self._describe(self.message)


class EncodingError(KeyServiceError):
    """Request body could not be serialized."""

    message = "Failed to encode request body"


class TransportError(KeyServiceError):
    """Request failed before a complete response was received.

    The underlying httpx exception is available as ``__cause__``.
    """

    message = "Request failed"


class DecodingError(KeyServiceError):
    """Response body is not the JSON document we expected."""

    message = "Failed to decode response body"


class RemoteError(KeyServiceError):
    """Server rejected the request (status >= 400)."""

    message = "API error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        operation: str | None = None,
        key_id: str | None = None,
    ) -> None:
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message, operation=operation, key_id=key_id)

    def __str__(self) -> str:
        return self._describe(f"API error (status {self.status_code}): {self.message}")


class ValidationError(RemoteError):
    """Request rejected as invalid (400)."""

    message = "Invalid request"
    status_code = 400


class UnauthorizedError(RemoteError):
    """Credential missing or invalid (401)."""

    message = "Authentication required"
    status_code = 401


class ForbiddenError(RemoteError):
    """Credential lacks permission, e.g. not a provisioning key (403)."""

    message = "Permission denied"
    status_code = 403


class NotFoundError(RemoteError):
    """API key not found (404)."""

    message = "API key not found"
    status_code = 404


class ConflictError(RemoteError):
    """Conflicting state on the server (409)."""

    message = "Conflict"
    status_code = 409


class RateLimitedError(RemoteError):
    """Rate limit exceeded (429)."""

    message = "Rate limit exceeded"
    status_code = 429


# Status code to exception class mapping
STATUS_ERROR_MAP: dict[int, type[RemoteError]] = {
    400: ValidationError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitedError,
}


def raise_for_error_response(
    status_code: int,
    body: str,
    response_json: object | None,
    *,
    operation: str | None = None,
    key_id: str | None = None,
) -> None:
    """Raise the appropriate RemoteError for an error response.

    Args:
        status_code: HTTP status code (>= 400)
        body: Raw response text
        response_json: Parsed JSON body, or None if the body is not JSON
        operation: Operation name for error context
        key_id: API key hash for error context

    Raises:
        RemoteError: Subclass chosen by status code; message is the envelope's
            ``message`` field when present, otherwise the raw body.
    """
    message = body
    if isinstance(response_json, dict):
        value = response_json.get("message")
        if isinstance(value, str) and value:
            message = value

    error_class = STATUS_ERROR_MAP.get(status_code, RemoteError)
    raise error_class(
        message,
        status_code=status_code,
        operation=operation,
        key_id=key_id,
    )
