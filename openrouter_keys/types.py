"""Type definitions for the key service API.

Pydantic models for request/response serialization.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ApiKeyRecord(BaseModel):
    """API key as returned by the service.

    ``id`` maps the wire field ``hash``. ``key`` is only ever populated on
    the create response; every other endpoint leaves it unset.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="hash")
    key: str | None = None
    label: str = ""
    name: str
    is_provisioner: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    limit: float | None = Field(default=None, ge=0)
    limit_minutes: int | None = Field(default=None, ge=0)
    usage: float = Field(default=0.0, ge=0)
    disabled: bool = False


class CreatedApiKey(BaseModel):
    """Create response: the new record plus its one-time secret."""

    data: ApiKeyRecord
    key: str = Field(min_length=1)

    @property
    def id(self) -> str:
        """Hash of the created key."""
        return self.data.id


class ApiKeyPage(BaseModel):
    """One page of the key collection.

    The SDK makes a single round trip per page; continuing to the next
    page is left to the caller:

        offset = 0
        while True:
            page = await repo.list(ListFilter(offset=offset, limit=100))
            if not page.data:
                break
            offset += len(page.data)
    """

    data: list[ApiKeyRecord]


class BYOKConfig(BaseModel):
    """Bring-your-own-key provider settings attached to an API key."""

    provider: str
    api_key: str
    base_url: str | None = None


class ApiKeyPatch(BaseModel):
    """Partial update for an API key.

    Only fields explicitly passed to the constructor are sent; everything
    else is left untouched on the server. A field set to None counts as
    not set. To remove a spend limit, send ``limit=0``.
    """

    name: str | None = Field(default=None, min_length=1)
    limit: float | None = Field(default=None, ge=0)
    disabled: bool | None = None
    byok: BYOKConfig | None = None

    def to_body(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def is_empty(self) -> bool:
        return not self.to_body()


class ListFilter(BaseModel):
    """Filter and pagination for the key collection.

    Zero offset/limit means "server default" and is not sent.
    """

    include_disabled: bool = False
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0)


# Internal request models (not exported)


class _CreateApiKeyRequest(BaseModel):
    """Internal: Create API key request body."""

    name: str = Field(min_length=1)
    limit: float | None = Field(default=None, ge=0)
    limit_minutes: int | None = Field(default=None, ge=1)
