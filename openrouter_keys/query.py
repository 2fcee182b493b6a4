"""Collection query over the API key list endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from openrouter_keys.types import ApiKeyPage, ListFilter

if TYPE_CHECKING:
    from openrouter_keys.keys import ApiKeyRepository


def encode_list_params(list_filter: ListFilter | None) -> dict[str, str]:
    """Translate a ListFilter into query parameters.

    Defaults are not sent, so the server applies its own:
    ``include_disabled`` only when True, ``offset``/``limit`` only when > 0.
    """
    params: dict[str, str] = {}
    if list_filter is None:
        return params
    if list_filter.include_disabled:
        params["include_disabled"] = "true"
    if list_filter.offset > 0:
        params["offset"] = str(list_filter.offset)
    if list_filter.limit > 0:
        params["limit"] = str(list_filter.limit)
    return params


class ApiKeyCollection:
    """Read-only view over the key collection.

    Returns exactly one page per call. Walking further pages is the
    caller's job.
    """

    def __init__(self, repository: ApiKeyRepository) -> None:
        self._repository = repository

    async def page(
        self,
        *,
        include_disabled: bool = False,
        offset: int = 0,
        limit: int = 0,
    ) -> ApiKeyPage:
        """Fetch a single page of API keys.

        Args:
            include_disabled: Include disabled keys in the result
            offset: Number of keys to skip (0 = server default)
            limit: Max keys to return (0 = server default)

        Returns:
            The page as returned by the server
        """
        list_filter = ListFilter(
            include_disabled=include_disabled,
            offset=offset,
            limit=limit,
        )
        return await self._repository.list(list_filter)
