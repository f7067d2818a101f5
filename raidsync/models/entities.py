"""
Pydantic schemas for the synchronized entities.

Each schema enumerates its required and optional fields explicitly. Wire and
storage names are the prefixed column names (RAI_NAME, ADD_CITY, ...); the
bare names (name, city, ...) are accepted on input as the only alternative.
Nested relations sent by the backend (address, club, user) are ignored:
relations are kept as opaque foreign keys.
"""

from datetime import date, datetime
from typing import Any, ClassVar, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator


def column(name: str, bare: str, default: Any = ..., **kwargs) -> Any:
    """Declare a field stored under `name` and also accepted as `bare`."""
    return Field(
        default,
        validation_alias=AliasChoices(name, bare),
        serialization_alias=name,
        **kwargs,
    )


# =============================================================================
# Base Entity
# =============================================================================

class Entity(BaseModel):
    """Base class for all synchronized entities."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    SCHEMA_VERSION: ClassVar[int] = 1
    ENTITY_NAME: ClassVar[str] = "entity"
    ID_COLUMN: ClassVar[str] = "id"

    id: Optional[int] = None

    @field_validator("*", mode="before")
    @classmethod
    def null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        """An explicit null in a field with a non-null default takes the default."""
        if value is None:
            field = cls.model_fields[info.field_name]
            if not field.is_required() and field.default is not None:
                return field.default
        return value

    @classmethod
    def column_for(cls, field_name: str) -> str:
        """Storage column of a field; raises KeyError for unknown fields."""
        field = cls.model_fields[field_name]
        return field.serialization_alias or field_name

    @classmethod
    def columns(cls) -> list[str]:
        return [cls.column_for(name) for name in cls.model_fields]

    def to_record(self) -> dict[str, Any]:
        """Full record keyed by column name (local storage, PUT bodies)."""
        return self.model_dump(by_alias=True, mode="json")

    def to_api_payload(self) -> dict[str, Any]:
        """Record without the identifier (POST bodies)."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})

    def with_id(self, new_id: int) -> "Entity":
        return self.model_copy(update={"id": new_id})


# =============================================================================
# Entities
# =============================================================================

class Address(Entity):
    """Postal address."""
    ENTITY_NAME: ClassVar[str] = "address"
    ID_COLUMN: ClassVar[str] = "ADD_ID"

    id: Optional[int] = column("ADD_ID", "id", None)
    postal_code: int = column("ADD_POSTAL_CODE", "postal_code")
    city: str = column("ADD_CITY", "city")
    street_name: str = column("ADD_STREET_NAME", "street_name")
    street_number: str = column("ADD_STREET_NUMBER", "street_number")


class User(Entity):
    """Registered user. Credentials are never part of the synchronized record."""
    ENTITY_NAME: ClassVar[str] = "user"
    ID_COLUMN: ClassVar[str] = "USE_ID"

    id: Optional[int] = column("USE_ID", "id", None)
    address_id: Optional[int] = column("ADD_ID", "address_id", None)
    club_id: Optional[int] = column("CLU_ID", "club_id", None)
    email: str = column("USE_MAIL", "email")
    name: str = column("USE_NAME", "name")
    last_name: str = column("USE_LAST_NAME", "last_name")
    birthdate: Optional[date] = column("USE_BIRTHDATE", "birthdate", None)
    phone_number: Optional[int] = column("USE_PHONE_NUMBER", "phone_number", None)
    licence_number: Optional[int] = column("USE_LICENCE_NUMBER", "licence_number", None)
    pps_form: Optional[str] = column("USE_PPS_FORM", "pps_form", None)
    membership_date: Optional[date] = column("USE_MEMBERSHIP_DATE", "membership_date", None)

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}"


class Club(Entity):
    """Sports club with a responsible user and an address."""
    ENTITY_NAME: ClassVar[str] = "club"
    ID_COLUMN: ClassVar[str] = "CLU_ID"

    id: Optional[int] = column("CLU_ID", "id", None)
    responsible_id: int = column("USE_ID", "responsible_id")
    address_id: int = column("ADD_ID", "address_id")
    name: str = column("CLU_NAME", "name")


class Raid(Entity):
    """Multi-race event organised by a club."""
    ENTITY_NAME: ClassVar[str] = "raid"
    ID_COLUMN: ClassVar[str] = "RAI_ID"

    id: Optional[int] = column("RAI_ID", "id", None)
    club_id: Optional[int] = column("CLU_ID", "club_id", None)
    address_id: Optional[int] = column("ADD_ID", "address_id", None)
    manager_id: Optional[int] = column("USE_ID", "manager_id", None)
    name: str = column("RAI_NAME", "name")
    email: Optional[str] = column("RAI_MAIL", "email", None)
    phone_number: Optional[str] = column("RAI_PHONE_NUMBER", "phone_number", None)
    website: Optional[str] = column("RAI_WEB_SITE", "website", None)
    image: Optional[str] = column("RAI_IMAGE", "image", None)
    time_start: datetime = column("RAI_TIME_START", "time_start")
    time_end: datetime = column("RAI_TIME_END", "time_end")
    registration_start: Optional[datetime] = column("RAI_REGISTRATION_START", "registration_start", None)
    registration_end: Optional[datetime] = column("RAI_REGISTRATION_END", "registration_end", None)
    nb_races: Optional[int] = column("RAI_NB_RACES", "nb_races", None)  # Race limit; None is unlimited

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(self.time_start.tzinfo)) < self.time_start

    def is_in_progress(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(self.time_start.tzinfo)
        return self.time_start < now < self.time_end

    def is_finished(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(self.time_end.tzinfo)) > self.time_end

    def is_registration_open(self, now: Optional[datetime] = None) -> bool:
        if self.registration_start is None or self.registration_end is None:
            return False
        now = now or datetime.now(self.registration_start.tzinfo)
        return self.registration_start < now < self.registration_end


class Race(Entity):
    """A race inside a raid."""
    ENTITY_NAME: ClassVar[str] = "race"
    ID_COLUMN: ClassVar[str] = "RAC_ID"

    id: Optional[int] = column("RAC_ID", "id", None)
    raid_id: int = column("RAI_ID", "raid_id", 0)
    manager_id: Optional[int] = column("USE_ID", "manager_id", None)
    name: str = column("RAC_NAME", "name", "Nouvelle Course")
    type: str = column("RAC_TYPE", "type", "")
    difficulty: str = column("RAC_DIFFICULTY", "difficulty", "")
    gender: str = column("RAC_GENDER", "gender", "Mixte")
    time_start: datetime = column("RAC_TIME_START", "time_start")
    time_end: datetime = column("RAC_TIME_END", "time_end")
    min_participants: int = column("RAC_MIN_PARTICIPANTS", "min_participants", 0)
    max_participants: int = column("RAC_MAX_PARTICIPANTS", "max_participants", 0)
    min_teams: int = column("RAC_MIN_TEAMS", "min_teams", 0)
    max_teams: int = column("RAC_MAX_TEAMS", "max_teams", 0)
    team_members: int = column("RAC_TEAM_MEMBERS", "team_members", 0)
    age_min: int = column("RAC_AGE_MIN", "age_min", 0)
    age_middle: int = column("RAC_AGE_MIDDLE", "age_middle", 0)
    age_max: int = column("RAC_AGE_MAX", "age_max", 0)
    chip_mandatory: bool = column("RAC_CHIP_MANDATORY", "chip_mandatory", False)


class Team(Entity):
    """Team led by a manager user."""
    ENTITY_NAME: ClassVar[str] = "team"
    ID_COLUMN: ClassVar[str] = "TEA_ID"

    id: Optional[int] = column("TEA_ID", "id", None)
    manager_id: int = column("USE_ID", "manager_id")
    name: str = column("TEA_NAME", "name")
    image: Optional[str] = column("TEA_IMAGE", "image", None)


ENTITY_TYPES: dict[str, type[Entity]] = {
    model.ENTITY_NAME: model
    for model in (Address, User, Club, Raid, Race, Team)
}
