"""
raidsync - API-first sync layer with local cache fallback

Repositories for raids, races, addresses, clubs, users and teams that talk to
the REST backend first and fall back to a local SQLite cache when it cannot
answer.
"""

from .client import (
    RaidSyncClient,

    # Convenience functions
    create_client,
    sync_session,
)
from .core.config import Settings, get_settings
from .core.errors import (
    # Exceptions
    SyncError,
    NetworkError,
    NotFoundError,
    AuthenticationError,
    ForbiddenError,
    ValidationFailedError,
    ServerError,
    LocalStoreError,
    UnsupportedOperationError,
    ErrorKind,
)
from .models.entities import Address, Club, Race, Raid, Team, User
from .repositories import OutcomeKind, SyncOutcome, SyncPolicy

__version__ = "0.1.0"
__all__ = [
    # Main classes
    "RaidSyncClient",

    # Configuration
    "Settings",
    "get_settings",

    # Data models
    "Address",
    "Club",
    "Race",
    "Raid",
    "Team",
    "User",
    "OutcomeKind",
    "SyncOutcome",
    "SyncPolicy",

    # Exceptions
    "SyncError",
    "NetworkError",
    "NotFoundError",
    "AuthenticationError",
    "ForbiddenError",
    "ValidationFailedError",
    "ServerError",
    "LocalStoreError",
    "UnsupportedOperationError",
    "ErrorKind",

    # Convenience functions
    "create_client",
    "sync_session",
]
