"""
Synchronizing repository: the read-through / write-through policy.

Every entity repository composes a RemoteSource, a LocalCache, the token
provider and optionally the availability monitor, and follows the same four
algorithms:

- list:   remote first; on success replace the cached extent; on failure
          serve the cache, or an empty list if the cache fails too.
- get:    remote first; a remote "not found" is final; on failure serve the
          cache, and fail only if the cache cannot answer either.
- create: persist locally, then remotely; on remote failure keep the local
          copy and report success.
- update / delete: remote must confirm; failures propagate unchanged and
          the cache is only touched after confirmation.

Which of these fallbacks apply is spelled out per repository in SyncPolicy.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Generic, Optional, TypeVar

from raidsync.core.auth import AuthTokenProvider
from raidsync.core.availability import AvailabilityMonitor
from raidsync.core.errors import (
    LocalStoreError,
    NetworkError,
    SyncError,
    UnsupportedOperationError,
)
from raidsync.models.entities import Entity
from raidsync.sources.local import LocalCache
from raidsync.sources.remote import Operation, RemoteSource

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)
V = TypeVar("V")


# =============================================================================
# Outcomes and policy
# =============================================================================

class OutcomeKind(Enum):
    """Which tier answered a repository call."""
    REMOTE_HIT = "remote_hit"
    LOCAL_FALLBACK = "local_fallback"
    LOCAL_ONLY_WRITE = "local_only_write"
    EMPTY = "empty"
    FAILURE = "failure"


@dataclass
class SyncOutcome(Generic[V]):
    """Tagged result of a repository call."""
    kind: OutcomeKind
    value: Optional[V] = None
    error: Optional[SyncError] = None

    @property
    def from_remote(self) -> bool:
        return self.kind is OutcomeKind.REMOTE_HIT

    def unwrap(self) -> Optional[V]:
        """Return the value, raising the recorded error for failures."""
        if self.kind is OutcomeKind.FAILURE:
            raise self.error
        return self.value


class ListFailurePolicy(Enum):
    """What a listing returns when neither tier can answer."""
    EMPTY = "empty"
    RAISE = "raise"


class CreateFailurePolicy(Enum):
    """What a create does when the backend does not confirm it."""
    LOCAL_ONLY = "local_only"
    RAISE = "raise"


@dataclass(frozen=True)
class SyncPolicy:
    """Fallback configuration of one repository."""
    list_failure: ListFailurePolicy = ListFailurePolicy.EMPTY
    create_failure: CreateFailurePolicy = CreateFailurePolicy.LOCAL_ONLY
    consult_availability: bool = False


# =============================================================================
# Repository
# =============================================================================

class SynchronizingRepository(Generic[T]):
    """Reconciles one RemoteSource with one LocalCache."""

    default_policy: ClassVar[SyncPolicy] = SyncPolicy()

    def __init__(
        self,
        remote: RemoteSource[T],
        local: LocalCache[T],
        token_provider: AuthTokenProvider,
        monitor: Optional[AvailabilityMonitor] = None,
        policy: Optional[SyncPolicy] = None,
    ):
        self.remote = remote
        self.local = local
        self.token_provider = token_provider
        self.monitor = monitor
        self.policy = policy or self.default_policy

    @property
    def entity_name(self) -> str:
        return self.remote.model.ENTITY_NAME

    def _token(self) -> Optional[str]:
        """Read the token right before the remote call it is used for."""
        return self.token_provider.current_token()

    async def _ensure_reachable(self) -> None:
        """Short-circuit the remote call when the monitor says the backend is down."""
        if not self.policy.consult_availability or self.monitor is None:
            return
        if not await self.monitor.check_availability():
            raise NetworkError("Backend unavailable (cached probe verdict)")

    # === Reads ===

    async def list_all_outcome(
        self,
        params: Optional[dict[str, Any]] = None,
    ) -> SyncOutcome[list[T]]:
        """
        Read-all-through.

        Args:
            params: Equality filters on entity fields; the same filter scopes
                the cached extent that a successful remote answer replaces
        """
        self.local.check_params(params)
        try:
            await self._ensure_reachable()
            records = await self.remote.list_all(params, token=self._token())
        except UnsupportedOperationError:
            raise
        except SyncError as remote_error:
            return self._list_fallback(params, remote_error)

        try:
            self.local.replace_all(records, params)
        except LocalStoreError as e:
            logger.warning(f"Could not refresh cached {self.entity_name} list: {e}")

        logger.debug(f"Fetched {len(records)} {self.entity_name} records from backend")
        return SyncOutcome(OutcomeKind.REMOTE_HIT, records)

    def _list_fallback(
        self,
        params: Optional[dict[str, Any]],
        remote_error: SyncError,
    ) -> SyncOutcome[list[T]]:
        logger.warning(
            f"Remote {self.entity_name} list failed ({remote_error.kind.value}): "
            f"{remote_error}. Falling back to local cache"
        )
        try:
            records = self.local.list_all(params)
        except LocalStoreError as local_error:
            local_error.__cause__ = remote_error
            if self.policy.list_failure is ListFailurePolicy.RAISE:
                return SyncOutcome(OutcomeKind.FAILURE, error=local_error)
            logger.error(f"Local {self.entity_name} list failed too, returning empty: {local_error}")
            return SyncOutcome(OutcomeKind.EMPTY, [], error=local_error)
        return SyncOutcome(OutcomeKind.LOCAL_FALLBACK, records, error=remote_error)

    async def list_all(self, params: Optional[dict[str, Any]] = None) -> list[T]:
        return (await self.list_all_outcome(params)).unwrap()

    async def get_by_id_outcome(self, record_id: int) -> SyncOutcome[T]:
        """Read-one-through."""
        try:
            await self._ensure_reachable()
            record = await self.remote.get_by_id(record_id, token=self._token())
        except UnsupportedOperationError:
            raise
        except SyncError as remote_error:
            return self._get_fallback(record_id, remote_error)

        if record is None:
            return SyncOutcome(OutcomeKind.EMPTY)

        try:
            self.local.upsert_one(record)
        except LocalStoreError as e:
            logger.warning(f"Could not cache {self.entity_name} {record_id}: {e}")
        return SyncOutcome(OutcomeKind.REMOTE_HIT, record)

    def _get_fallback(self, record_id: int, remote_error: SyncError) -> SyncOutcome[T]:
        logger.warning(
            f"Remote {self.entity_name} {record_id} fetch failed ({remote_error.kind.value}): "
            f"{remote_error}. Falling back to local cache"
        )
        try:
            record = self.local.get_by_id(record_id)
        except LocalStoreError as local_error:
            local_error.__cause__ = remote_error
            return SyncOutcome(OutcomeKind.FAILURE, error=local_error)

        if record is None:
            return SyncOutcome(OutcomeKind.FAILURE, error=remote_error)
        return SyncOutcome(OutcomeKind.LOCAL_FALLBACK, record, error=remote_error)

    async def get_by_id(self, record_id: int) -> Optional[T]:
        return (await self.get_by_id_outcome(record_id)).unwrap()

    # === Writes ===

    async def create_outcome(self, candidate: T) -> SyncOutcome[T]:
        """Create with local durability."""
        self.remote.require(Operation.CREATE)
        local_only = self.policy.create_failure is CreateFailurePolicy.LOCAL_ONLY

        placeholder: Optional[T] = None
        if local_only:
            try:
                placeholder = self.local.upsert_one(candidate)
            except LocalStoreError as e:
                logger.warning(f"Could not persist new {self.entity_name} locally: {e}")

        try:
            await self._ensure_reachable()
            created = await self.remote.create(candidate, token=self._token())
        except SyncError as remote_error:
            if placeholder is None:
                return SyncOutcome(OutcomeKind.FAILURE, error=remote_error)
            logger.warning(
                f"Remote {self.entity_name} create failed ({remote_error.kind.value}): "
                f"{remote_error}. Kept local copy {placeholder.id}"
            )
            return SyncOutcome(OutcomeKind.LOCAL_ONLY_WRITE, placeholder, error=remote_error)

        try:
            self.local.replace_one(placeholder.id if placeholder else None, created)
        except LocalStoreError as e:
            logger.warning(f"Could not cache created {self.entity_name} {created.id}: {e}")

        logger.info(f"Created {self.entity_name} {created.id}")
        return SyncOutcome(OutcomeKind.REMOTE_HIT, created)

    async def create(self, candidate: T) -> T:
        return (await self.create_outcome(candidate)).unwrap()

    async def update(self, record: T) -> T:
        """Remote-authoritative full update; failures propagate unchanged."""
        self.remote.require(Operation.UPDATE)
        await self._ensure_reachable()
        updated = await self.remote.update(record, token=self._token())

        try:
            self.local.upsert_one(updated)
        except LocalStoreError as e:
            logger.warning(f"Could not cache updated {self.entity_name} {updated.id}: {e}")
        return updated

    async def update_fields(self, record_id: int, fields: dict[str, Any]) -> Optional[T]:
        """
        Remote-authoritative partial update.

        The cache is refreshed only when the backend echoes the full record;
        otherwise the next read brings it up to date.
        """
        self.remote.require(Operation.UPDATE_FIELDS)
        await self._ensure_reachable()
        updated = await self.remote.update_fields(record_id, fields, token=self._token())

        if updated is not None:
            try:
                self.local.upsert_one(updated)
            except LocalStoreError as e:
                logger.warning(f"Could not cache updated {self.entity_name} {record_id}: {e}")
        return updated

    async def delete(self, record_id: int) -> None:
        """Remote-authoritative delete; failures propagate unchanged."""
        self.remote.require(Operation.DELETE)
        await self._ensure_reachable()
        await self.remote.delete(record_id, token=self._token())

        try:
            self.local.evict(record_id)
        except LocalStoreError as e:
            logger.warning(f"Could not evict deleted {self.entity_name} {record_id}: {e}")
        logger.info(f"Deleted {self.entity_name} {record_id}")
