"""Entity schemas."""

from .entities import ENTITY_TYPES, Address, Club, Entity, Race, Raid, Team, User

__all__ = ["ENTITY_TYPES", "Address", "Club", "Entity", "Race", "Raid", "Team", "User"]
