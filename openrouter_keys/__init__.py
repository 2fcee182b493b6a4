"""OpenRouter key management.

Keeps API keys on the OpenRouter key service in line with a declared state.
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from openrouter_keys._http import HTTPClient
from openrouter_keys.client import KeyServiceClient
from openrouter_keys.config import Settings, get_settings
from openrouter_keys.errors import (
    ConflictError,
    DecodingError,
    EncodingError,
    ForbiddenError,
    KeyServiceError,
    NotFoundError,
    RateLimitedError,
    RemoteError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from openrouter_keys.keys import ApiKeyRepository
from openrouter_keys.query import ApiKeyCollection, encode_list_params
from openrouter_keys.reconciler import (
    ApiKeyReconciler,
    ApiKeyState,
    DesiredApiKey,
    ReconcileResult,
    ResourceStatus,
    diff_patch,
)
from openrouter_keys.types import (
    ApiKeyPage,
    ApiKeyPatch,
    ApiKeyRecord,
    BYOKConfig,
    CreatedApiKey,
    ListFilter,
)

__all__ = [
    # Client
    "KeyServiceClient",
    "HTTPClient",
    "ApiKeyRepository",
    "ApiKeyCollection",
    "ApiKeyReconciler",
    "Settings",
    "get_settings",
    # Types
    "ApiKeyRecord",
    "CreatedApiKey",
    "ApiKeyPage",
    "ApiKeyPatch",
    "BYOKConfig",
    "ListFilter",
    "DesiredApiKey",
    "ApiKeyState",
    "ReconcileResult",
    "ResourceStatus",
    "diff_patch",
    "encode_list_params",
    # Errors
    "KeyServiceError",
    "EncodingError",
    "TransportError",
    "DecodingError",
    "RemoteError",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
]

try:
    __version__ = _pkg_version("openrouter-keys")
except PackageNotFoundError:
    __version__ = "unknown"
