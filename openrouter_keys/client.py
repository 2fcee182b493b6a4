"""KeyServiceClient - main entry point for managing API keys."""

from __future__ import annotations

from types import TracebackType

from openrouter_keys._http import HTTPClient
from openrouter_keys.config import Settings, get_settings
from openrouter_keys.keys import ApiKeyRepository
from openrouter_keys.query import ApiKeyCollection
from openrouter_keys.reconciler import ApiKeyReconciler


class KeyServiceClient:
    """Main client for the key service.

    Builds one HTTPClient and hands it to the repository, the collection
    query and the reconciler, so all of them share the same credential and
    connection pool. Use as an async context manager to ensure cleanup.

    Example:
        async with KeyServiceClient(api_key="sk-or-...") as client:
            result = await client.reconciler.create(DesiredApiKey(name="ci"))
            page = await client.collection.page(include_disabled=True)
    """

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        *,
        timeout: float | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize key service client.

        Args:
            api_key: Provisioning credential. Falls back to OPENROUTER_API_KEY.
            endpoint: API base URL. Falls back to OPENROUTER_ENDPOINT, then the
                public OpenRouter API.
            timeout: Default request timeout in seconds. Falls back to
                OPENROUTER_TIMEOUT.
            settings: Settings to fall back on. Defaults to the cached
                environment settings from get_settings().

        Raises:
            ValueError: If no api_key is provided and none is configured.
        """
        settings = settings or get_settings()

        self._api_key = api_key or settings.api_key
        self._endpoint = endpoint or settings.endpoint

        if not self._api_key:
            raise ValueError("api_key required (or set OPENROUTER_API_KEY env var)")

        self._timeout = timeout if timeout is not None else settings.timeout

        self._http: HTTPClient | None = None
        self._keys: ApiKeyRepository | None = None
        self._collection: ApiKeyCollection | None = None
        self._reconciler: ApiKeyReconciler | None = None

    async def __aenter__(self) -> KeyServiceClient:
        """Enter async context, initializing HTTP client."""
        self._http = HTTPClient(
            base_url=self._endpoint,
            access_token=self._api_key,
            timeout=self._timeout,
        )
        await self._http.__aenter__()
        self._keys = ApiKeyRepository(self._http)
        self._collection = ApiKeyCollection(self._keys)
        self._reconciler = ApiKeyReconciler(self._keys)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context, closing HTTP client."""
        if self._http:
            await self._http.__aexit__(exc_type, exc_val, exc_tb)
            self._http = None
            self._keys = None
            self._collection = None
            self._reconciler = None

    @property
    def http(self) -> HTTPClient:
        """Get the HTTP client."""
        if self._http is None:
            raise RuntimeError("KeyServiceClient not initialized. Use 'async with' context.")
        return self._http

    @property
    def keys(self) -> ApiKeyRepository:
        """API key CRUD operations."""
        if self._keys is None:
            raise RuntimeError("KeyServiceClient not initialized. Use 'async with' context.")
        return self._keys

    @property
    def collection(self) -> ApiKeyCollection:
        """Paged listing of API keys."""
        if self._collection is None:
            raise RuntimeError("KeyServiceClient not initialized. Use 'async with' context.")
        return self._collection

    @property
    def reconciler(self) -> ApiKeyReconciler:
        """Declared-state reconciliation of API keys."""
        if self._reconciler is None:
            raise RuntimeError("KeyServiceClient not initialized. Use 'async with' context.")
        return self._reconciler
