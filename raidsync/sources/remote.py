"""
Remote data sources, one per entity kind.

Each adapter knows its REST path, which operations the backend offers and
which of them need the session token. Raw payloads are parsed with the
entity schema; failures arrive already classified by the ApiClient.
"""

import logging
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import ValidationError

from raidsync.core.errors import NotFoundError, ServerError, UnsupportedOperationError
from raidsync.core.http import ApiClient
from raidsync.models.entities import Address, Club, Entity, Race, Raid, Team, User

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


class Operation(str, Enum):
    LIST = "list"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    UPDATE_FIELDS = "update_fields"
    DELETE = "delete"


ALL_OPERATIONS = frozenset(Operation)
WRITE_OPERATIONS = frozenset({
    Operation.CREATE,
    Operation.UPDATE,
    Operation.UPDATE_FIELDS,
    Operation.DELETE,
})


class RemoteSource(Generic[T]):
    """CRUD adapter for one entity kind."""

    model: type[T]
    path: str
    operations: frozenset[Operation] = ALL_OPERATIONS
    authenticated: frozenset[Operation] = WRITE_OPERATIONS

    def __init__(self, api_client: ApiClient):
        self.api_client = api_client

    def supports(self, operation: Operation) -> bool:
        return operation in self.operations

    def require(self, operation: Operation) -> None:
        if not self.supports(operation):
            raise UnsupportedOperationError(
                f"{self.model.ENTITY_NAME}: backend offers no {operation.value} operation"
            )

    def _token_for(self, operation: Operation, token: Optional[str]) -> Optional[str]:
        return token if operation in self.authenticated else None

    def _parse(self, payload: Any) -> T:
        try:
            return self.model.model_validate(payload)
        except ValidationError as e:
            raise ServerError(f"Malformed {self.model.ENTITY_NAME} payload: {e}") from e

    def _parse_many(self, payload: Any) -> list[T]:
        if not isinstance(payload, list):
            raise ServerError(
                f"Expected a list of {self.model.ENTITY_NAME} records, got {type(payload).__name__}"
            )
        return [self._parse(item) for item in payload]

    def list_path(self, params: Optional[dict[str, Any]]) -> tuple[str, Optional[dict[str, Any]]]:
        """Path and query parameters of a listing."""
        return self.path, params or None

    def item_path(self, record_id: int) -> str:
        return f"{self.path}/{record_id}"

    # === Operations ===

    async def list_all(
        self,
        params: Optional[dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> list[T]:
        self.require(Operation.LIST)
        path, query = self.list_path(params)
        payload = await self.api_client.get(
            path,
            params=query,
            token=self._token_for(Operation.LIST, token),
        )
        return self._parse_many(payload)

    async def get_by_id(self, record_id: int, token: Optional[str] = None) -> Optional[T]:
        """Fetch one record; a 404 is a successful answer of absence."""
        self.require(Operation.GET)
        try:
            payload = await self.api_client.get(
                self.item_path(record_id),
                token=self._token_for(Operation.GET, token),
            )
        except NotFoundError:
            logger.debug(f"{self.model.ENTITY_NAME} {record_id} not found remotely")
            return None
        if payload is None:
            return None
        return self._parse(payload)

    async def create(self, record: T, token: Optional[str] = None) -> T:
        """Create a record; the answer carries the server-assigned identifier."""
        self.require(Operation.CREATE)
        payload = await self.api_client.post(
            self.path,
            json=record.to_api_payload(),
            token=self._token_for(Operation.CREATE, token),
        )
        return self._parse(payload)

    async def update(self, record: T, token: Optional[str] = None) -> T:
        self.require(Operation.UPDATE)
        if record.id is None:
            raise ValueError(f"Cannot update a {self.model.ENTITY_NAME} without id")
        payload = await self.api_client.put(
            self.item_path(record.id),
            json=record.to_record(),
            token=self._token_for(Operation.UPDATE, token),
        )
        if payload is None:
            return record
        return self._parse(payload)

    async def update_fields(
        self,
        record_id: int,
        fields: dict[str, Any],
        token: Optional[str] = None,
    ) -> Optional[T]:
        """
        Send a partial record.

        Returns:
            The full record if the backend echoes one back, else None
        """
        self.require(Operation.UPDATE_FIELDS)
        payload = await self.api_client.put(
            self.item_path(record_id),
            json=fields,
            token=self._token_for(Operation.UPDATE_FIELDS, token),
        )
        if not payload:
            return None
        try:
            return self.model.model_validate(payload)
        except ValidationError:
            logger.debug(f"Partial {self.model.ENTITY_NAME} echo ignored")
            return None

    async def delete(self, record_id: int, token: Optional[str] = None) -> None:
        self.require(Operation.DELETE)
        await self.api_client.delete(
            self.item_path(record_id),
            token=self._token_for(Operation.DELETE, token),
        )


# =============================================================================
# Entity sources
# =============================================================================

class RaidRemoteSource(RemoteSource[Raid]):
    model = Raid
    path = "/raids"
    operations = frozenset({
        Operation.LIST, Operation.GET, Operation.CREATE, Operation.UPDATE, Operation.DELETE,
    })


class AddressRemoteSource(RemoteSource[Address]):
    model = Address
    path = "/addresses"
    operations = frozenset({Operation.LIST, Operation.GET, Operation.CREATE})
    authenticated = frozenset()


class ClubRemoteSource(RemoteSource[Club]):
    model = Club
    path = "/clubs"
    operations = frozenset({
        Operation.LIST, Operation.GET, Operation.CREATE, Operation.UPDATE, Operation.DELETE,
    })


class UserRemoteSource(RemoteSource[User]):
    model = User
    path = "/users"
    operations = frozenset({
        Operation.LIST, Operation.GET, Operation.UPDATE, Operation.UPDATE_FIELDS,
    })
    authenticated = ALL_OPERATIONS


class TeamRemoteSource(RemoteSource[Team]):
    model = Team
    path = "/teams"
    operations = frozenset({
        Operation.LIST, Operation.GET, Operation.CREATE, Operation.DELETE,
    })


class RaceRemoteSource(RemoteSource[Race]):
    model = Race
    path = "/races"
    operations = frozenset({
        Operation.LIST, Operation.GET, Operation.CREATE, Operation.UPDATE, Operation.DELETE,
    })

    def list_path(self, params: Optional[dict[str, Any]]) -> tuple[str, Optional[dict[str, Any]]]:
        """Races of one raid live under /raids/{id}/races."""
        params = dict(params or {})
        raid_id = params.pop("raid_id", None)
        if raid_id is not None:
            return f"/raids/{raid_id}/races", params or None
        return self.path, params or None
