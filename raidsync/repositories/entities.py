"""
Entity repositories.
"""

from typing import ClassVar, Optional

from raidsync.models.entities import Address, Club, Race, Raid, Team, User
from raidsync.repositories.base import SyncPolicy, SynchronizingRepository
from raidsync.sources.local import RaidCache, UserCache


class RaidRepository(SynchronizingRepository[Raid]):
    pass


class AddressRepository(SynchronizingRepository[Address]):
    pass


class ClubRepository(SynchronizingRepository[Club]):

    def list_members(self, club_id: int) -> list[User]:
        """Cached users of a club, by name then last name."""
        return UserCache(self.local.store).list_all({"club_id": club_id})


class UserRepository(SynchronizingRepository[User]):
    """User profiles; remote calls are skipped while the backend is known to be down."""

    default_policy: ClassVar[SyncPolicy] = SyncPolicy(consult_availability=True)

    async def get_club_id(self, user_id: int) -> Optional[int]:
        user = await self.get_by_id(user_id)
        return user.club_id if user else None


class TeamRepository(SynchronizingRepository[Team]):
    pass


class RaceRepository(SynchronizingRepository[Race]):

    async def list_for_raid(self, raid_id: int) -> list[Race]:
        """Races of one raid; only that raid's cached races are replaced."""
        return await self.list_all({"raid_id": raid_id})

    def count_for_raid(self, raid_id: int) -> int:
        return self.local.count({"raid_id": raid_id})

    def max_races_for_raid(self, raid_id: int) -> Optional[int]:
        """Race limit of a cached raid; None when the raid is unknown or unlimited."""
        raid = RaidCache(self.local.store).get_by_id(raid_id)
        return raid.nb_races if raid else None

    def can_add_race_to_raid(self, raid_id: int) -> bool:
        """
        Whether the cached raid still has room for a race.

        An unknown raid has no room; a raid without a limit always has.
        """
        raid = RaidCache(self.local.store).get_by_id(raid_id)
        if raid is None:
            return False
        if raid.nb_races is None:
            return True
        return self.count_for_raid(raid_id) < raid.nb_races
