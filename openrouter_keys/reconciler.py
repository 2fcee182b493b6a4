"""Reconciliation of declared API keys against the key service.

A managed key moves between three states:

- ABSENT: no remote key exists, or none is known yet
- PRESENT: the local state describes a real remote key
- DRIFTED: a refresh found the key gone (404); the local state must be
  discarded and the key recreated on the next apply

Each operation is a small value object (Create, Read, Update, Delete,
Import, List) handed to ``ApiKeyReconciler.apply``. Every operation issues
at most one request.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError as PydanticValidationError

from openrouter_keys.errors import EncodingError, NotFoundError
from openrouter_keys.query import ApiKeyCollection
from openrouter_keys.types import ApiKeyPage, ApiKeyPatch, ApiKeyRecord, ListFilter

if TYPE_CHECKING:
    from openrouter_keys.keys import ApiKeyRepository

logger = structlog.get_logger()

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: datetime | None) -> str | None:
    """Render a server timestamp as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(_TIMESTAMP_FORMAT)


class ResourceStatus(str, Enum):
    """Lifecycle state of a managed API key."""

    ABSENT = "absent"
    PRESENT = "present"
    DRIFTED = "drifted"


@dataclass(frozen=True)
class DesiredApiKey:
    """Declared configuration of an API key.

    ``limit`` and ``limit_minutes`` left as None mean "no cap".
    """

    name: str
    limit: float | None = None
    limit_minutes: int | None = None
    disabled: bool = False


@dataclass(frozen=True)
class ApiKeyState:
    """Last observed state of a managed API key.

    ``key`` is the one-time secret captured at creation; it can never be
    read back, so it is None for imported keys.
    """

    id: str
    name: str
    key: str | None = None
    limit: float | None = None
    limit_minutes: int | None = None
    disabled: bool = False
    usage: float = 0.0
    created_at: str | None = None

    @classmethod
    def from_record(cls, record: ApiKeyRecord, *, key: str | None = None) -> ApiKeyState:
        return cls(
            id=record.id,
            name=record.name,
            key=key,
            limit=record.limit,
            limit_minutes=record.limit_minutes,
            disabled=record.disabled,
            usage=record.usage,
            created_at=format_timestamp(record.created_at),
        )


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconcile operation.

    ``state`` is None whenever ``status`` is not PRESENT.
    """

    status: ResourceStatus
    state: ApiKeyState | None = None

    @property
    def drifted(self) -> bool:
        return self.status is ResourceStatus.DRIFTED


# Operations


@dataclass(frozen=True)
class Create:
    desired: DesiredApiKey


@dataclass(frozen=True)
class Read:
    observed: ApiKeyState


@dataclass(frozen=True)
class Update:
    observed: ApiKeyState
    desired: DesiredApiKey


@dataclass(frozen=True)
class Delete:
    observed: ApiKeyState


@dataclass(frozen=True)
class Import:
    key_id: str


@dataclass(frozen=True)
class List:
    list_filter: ListFilter = field(default_factory=ListFilter)


Operation = Create | Read | Update | Delete | Import | List


def diff_patch(desired: DesiredApiKey, observed: ApiKeyState) -> ApiKeyPatch:
    """Build the minimal patch moving ``observed`` to ``desired``.

    Each mutable field is compared on its own and only differing fields are
    set. Clearing a limit sends ``limit=0``: leaving it out would keep the
    old cap on the server.
    """
    changes: dict[str, object] = {}

    if desired.name != observed.name:
        changes["name"] = desired.name

    if desired.limit != observed.limit:
        changes["limit"] = desired.limit if desired.limit is not None else 0.0

    if desired.disabled != observed.disabled:
        changes["disabled"] = desired.disabled

    return ApiKeyPatch(**changes)


class ApiKeyReconciler:
    """Drives one API key from its observed state to its declared state."""

    def __init__(self, repository: ApiKeyRepository) -> None:
        self._repository = repository
        self._collection = ApiKeyCollection(repository)

    async def apply(self, operation: Operation) -> ReconcileResult | ApiKeyPage:
        """Dispatch an operation to its handler."""
        if isinstance(operation, Create):
            return await self.create(operation.desired)
        if isinstance(operation, Read):
            return await self.read(operation.observed)
        if isinstance(operation, Update):
            return await self.update(operation.observed, operation.desired)
        if isinstance(operation, Delete):
            return await self.delete(operation.observed)
        if isinstance(operation, Import):
            return await self.import_key(operation.key_id)
        if isinstance(operation, List):
            return await self.list(operation.list_filter)
        raise TypeError(f"Unsupported operation: {type(operation).__name__}")

    async def create(self, desired: DesiredApiKey) -> ReconcileResult:
        """ABSENT -> PRESENT.

        Only the name and explicitly set limits are sent. The create
        endpoint takes no ``disabled`` field, so the state records what the
        server reports and a declared ``disabled=True`` is applied by the
        next update.
        """
        logger.debug("api_key.create", name=desired.name)
        created = await self._repository.create(
            desired.name,
            limit=desired.limit,
            limit_minutes=desired.limit_minutes,
        )
        record = created.data
        state = ApiKeyState(
            id=record.id,
            name=desired.name,
            key=created.key,
            limit=desired.limit,
            limit_minutes=desired.limit_minutes,
            disabled=record.disabled,
            usage=record.usage,
            created_at=format_timestamp(record.created_at),
        )

        return ReconcileResult(ResourceStatus.PRESENT, state)

    async def read(self, observed: ApiKeyState) -> ReconcileResult:
        """Refresh a PRESENT key.

        A 404 means the key was deleted out of band: the result is DRIFTED
        and carries no state. Every other error propagates.
        """
        try:
            record = await self._repository.get(observed.id)
        except NotFoundError:
            logger.info("api_key.drifted", key_id=observed.id)
            return ReconcileResult(ResourceStatus.DRIFTED)

        refreshed = ApiKeyState.from_record(record, key=observed.key)
        if refreshed.created_at is None:
            refreshed = replace(refreshed, created_at=observed.created_at)
        return ReconcileResult(ResourceStatus.PRESENT, refreshed)

    async def update(self, observed: ApiKeyState, desired: DesiredApiKey) -> ReconcileResult:
        """Send only the fields that changed.

        The new state takes the declared fields plus the server-computed
        usage; id, key and created_at are carried over untouched.
        ``limit_minutes`` cannot be patched and keeps its observed value.
        """
        if desired.limit_minutes != observed.limit_minutes:
            logger.warning(
                "api_key.limit_minutes_immutable",
                key_id=observed.id,
                observed=observed.limit_minutes,
                desired=desired.limit_minutes,
            )

        try:
            patch = diff_patch(desired, observed)
        except PydanticValidationError as exc:
            raise EncodingError(
                f"Invalid update request: {exc}",
                operation="update",
                key_id=observed.id,
            ) from exc
        if patch.is_empty():
            logger.debug("api_key.update_skipped", key_id=observed.id)
            return ReconcileResult(ResourceStatus.PRESENT, observed)

        logger.debug("api_key.update", key_id=observed.id, fields=sorted(patch.to_body()))
        record = await self._repository.update(observed.id, patch)
        state = replace(
            observed,
            name=desired.name,
            limit=desired.limit,
            disabled=desired.disabled,
            usage=record.usage,
        )
        return ReconcileResult(ResourceStatus.PRESENT, state)

    async def delete(self, observed: ApiKeyState) -> ReconcileResult:
        """PRESENT -> ABSENT.

        Unlike read, a 404 here is not treated as success; it propagates.
        """
        logger.debug("api_key.delete", key_id=observed.id)
        await self._repository.delete(observed.id)
        return ReconcileResult(ResourceStatus.ABSENT)

    async def import_key(self, key_id: str) -> ReconcileResult:
        """Adopt an existing key by hash. The secret is not recoverable."""
        record = await self._repository.get(key_id)
        return ReconcileResult(ResourceStatus.PRESENT, ApiKeyState.from_record(record))

    async def lookup(self, key_id: str) -> ApiKeyRecord:
        """Read a key that is not managed here. 404 propagates."""
        return await self._repository.get(key_id)

    async def current(self) -> ApiKeyRecord:
        """Read the key that authenticates this client."""
        return await self._repository.get_current()

    async def list(self, list_filter: ListFilter | None = None) -> ApiKeyPage:
        """Fetch one page of keys."""
        list_filter = list_filter or ListFilter()
        return await self._collection.page(
            include_disabled=list_filter.include_disabled,
            offset=list_filter.offset,
            limit=list_filter.limit,
        )
