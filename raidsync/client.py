"""
Client session wiring every repository to one backend and one local store.

Usage:
    async with sync_session() as client:
        raids = await client.raids.list_all()
        races = await client.races.list_for_raid(raids[0].id)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from raidsync.core.auth import AuthTokenProvider, TokenStore
from raidsync.core.availability import AvailabilityMonitor
from raidsync.core.config import Settings, get_settings
from raidsync.core.database import LocalStore
from raidsync.core.http import ApiClient
from raidsync.repositories.base import SynchronizingRepository
from raidsync.repositories.entities import (
    AddressRepository,
    ClubRepository,
    RaceRepository,
    RaidRepository,
    TeamRepository,
    UserRepository,
)
from raidsync.sources.local import (
    AddressCache,
    ClubCache,
    RaceCache,
    RaidCache,
    TeamCache,
    UserCache,
)
from raidsync.sources.remote import (
    AddressRemoteSource,
    ClubRemoteSource,
    RaceRemoteSource,
    RaidRemoteSource,
    TeamRemoteSource,
    UserRemoteSource,
)

logger = logging.getLogger(__name__)


class RaidSyncClient:
    """
    Composes the API client, local store, token provider, availability
    monitor and one repository per entity kind.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()

        self.store = LocalStore(self.settings.cache_db_path)
        self.token_store = TokenStore(self.store)
        self.token_provider = AuthTokenProvider(self.token_store)

        self.api_client = ApiClient.from_settings(
            self.settings,
            transport=transport,
            on_unauthorized=self._on_unauthorized,
        )
        self.monitor = AvailabilityMonitor.from_settings(self.api_client, self.settings)

        deps = (self.token_provider, self.monitor)
        self.raids = RaidRepository(RaidRemoteSource(self.api_client), RaidCache(self.store), *deps)
        self.races = RaceRepository(RaceRemoteSource(self.api_client), RaceCache(self.store), *deps)
        self.addresses = AddressRepository(
            AddressRemoteSource(self.api_client), AddressCache(self.store), *deps
        )
        self.clubs = ClubRepository(ClubRemoteSource(self.api_client), ClubCache(self.store), *deps)
        self.users = UserRepository(UserRemoteSource(self.api_client), UserCache(self.store), *deps)
        self.teams = TeamRepository(TeamRemoteSource(self.api_client), TeamCache(self.store), *deps)

    @property
    def repositories(self) -> dict[str, SynchronizingRepository]:
        """Repositories keyed by entity name."""
        return {
            repo.entity_name: repo
            for repo in (self.raids, self.races, self.addresses, self.clubs, self.users, self.teams)
        }

    def repository(self, entity_name: str) -> SynchronizingRepository:
        try:
            return self.repositories[entity_name]
        except KeyError:
            raise ValueError(f"Unknown entity: {entity_name}") from None

    def _on_unauthorized(self) -> None:
        if not self.settings.clear_token_on_unauthorized:
            return
        logger.warning("Backend rejected the session token, clearing it")
        self.token_store.clear_token()

    @property
    def is_authenticated(self) -> bool:
        return self.token_provider.current_token() is not None

    async def get_status(self) -> dict:
        """Backend availability and session state."""
        available = await self.monitor.check_availability()
        return {
            "api_base_url": self.settings.api_base_url,
            "available": available,
            "checked_at": self.monitor.state.checked_at,
            "authenticated": self.is_authenticated,
            "cache_db_path": str(self.store.db_path),
        }

    def save_token(self, token: str) -> None:
        self.token_store.save_token(token)

    def clear_token(self) -> None:
        self.token_store.clear_token()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.api_client.close()


# =============================================================================
# Convenience Functions
# =============================================================================

def create_client(
    settings: Optional[Settings] = None,
    **kwargs,
) -> RaidSyncClient:
    """
    Create a client session.

    Args:
        settings: Optional settings; environment-derived settings otherwise
        **kwargs: Forwarded to RaidSyncClient (e.g. transport)

    Returns:
        Configured RaidSyncClient instance
    """
    return RaidSyncClient(settings, **kwargs)


@asynccontextmanager
async def sync_session(
    settings: Optional[Settings] = None,
    **kwargs,
) -> AsyncIterator[RaidSyncClient]:
    """
    Context manager for a client session.

    Usage:
        async with sync_session() as client:
            await client.users.update_fields(3, {"USE_PHONE_NUMBER": 612345678})
    """
    client = RaidSyncClient(settings, **kwargs)
    try:
        yield client
    finally:
        await client.close()
