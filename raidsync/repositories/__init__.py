"""Synchronizing repositories."""

from .base import (
    CreateFailurePolicy,
    ListFailurePolicy,
    OutcomeKind,
    SyncOutcome,
    SyncPolicy,
    SynchronizingRepository,
)
from .entities import (
    AddressRepository,
    ClubRepository,
    RaceRepository,
    RaidRepository,
    TeamRepository,
    UserRepository,
)

__all__ = [
    "CreateFailurePolicy",
    "ListFailurePolicy",
    "OutcomeKind",
    "SyncOutcome",
    "SyncPolicy",
    "SynchronizingRepository",
    "AddressRepository",
    "ClubRepository",
    "RaceRepository",
    "RaidRepository",
    "TeamRepository",
    "UserRepository",
]
