"""
Local cache data sources, one per entity kind.

Writes replace whole records by identifier; there is no field-level merge.
Full resyncs go through replace_all, which clears and refills the affected
rows inside a single transaction so readers never see the empty middle state.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Generic, Iterable, Iterator, Optional, TypeVar

from pydantic import ValidationError

from raidsync.core.database import LocalStore
from raidsync.core.errors import LocalStoreError
from raidsync.models.entities import Address, Club, Entity, Race, Raid, Team, User

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


class LocalCache(Generic[T]):
    """SQLite-backed cache for one entity kind."""

    model: type[T]
    table: str
    order_by: Optional[str] = None

    def __init__(self, store: LocalStore):
        self.store = store

    @property
    def id_column(self) -> str:
        return self.model.ID_COLUMN

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Turn storage and decoding errors into LocalStoreError."""
        try:
            yield
        except (sqlite3.Error, ValidationError) as e:
            raise LocalStoreError(f"{self.table}: cannot {action}: {e}") from e

    def _where(self, params: Optional[dict[str, Any]]) -> tuple[str, list[Any]]:
        """Equality filter on model fields."""
        if not params:
            return "", []

        clauses = []
        values = []
        for field_name, value in params.items():
            try:
                column = self.model.column_for(field_name)
            except KeyError:
                raise ValueError(f"{self.model.__name__} has no field {field_name!r}") from None
            clauses.append(f"{column} = ?")
            values.append(value)
        return " WHERE " + " AND ".join(clauses), values

    def check_params(self, params: Optional[dict[str, Any]]) -> None:
        """Raise ValueError unless every key names a model field."""
        self._where(params)

    def _to_model(self, row: sqlite3.Row) -> T:
        return self.model.model_validate(dict(row))

    def _next_placeholder_id(self, conn: sqlite3.Connection) -> int:
        """Placeholder ids are negative so they never collide with server ids."""
        row = conn.execute(f"SELECT MIN({self.id_column}) AS low FROM {self.table}").fetchone()
        low = row["low"] if row and row["low"] is not None else 0
        return min(low, 0) - 1

    def _insert(self, conn: sqlite3.Connection, record: T) -> T:
        if record.id is None:
            record = record.with_id(self._next_placeholder_id(conn))

        data = record.to_record()
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)
        conn.execute(
            f"INSERT OR REPLACE INTO {self.table} ({columns}) VALUES ({placeholders})",
            list(data.values()),
        )
        return record

    # === Reads ===

    def list_all(self, params: Optional[dict[str, Any]] = None) -> list[T]:
        """All cached records, optionally filtered by field equality."""
        where, values = self._where(params)
        query = f"SELECT * FROM {self.table}{where}"
        if self.order_by:
            query += f" ORDER BY {self.order_by}"

        with self._guard("list"), self.store.connection() as conn:
            rows = conn.execute(query, values).fetchall()
            return [self._to_model(row) for row in rows]

    def get_by_id(self, record_id: int) -> Optional[T]:
        with self._guard("read"), self.store.connection() as conn:
            row = conn.execute(
                f"SELECT * FROM {self.table} WHERE {self.id_column} = ?",
                (record_id,),
            ).fetchone()
            return self._to_model(row) if row else None

    def count(self, params: Optional[dict[str, Any]] = None) -> int:
        where, values = self._where(params)
        with self._guard("count"), self.store.connection() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS n FROM {self.table}{where}", values).fetchone()
            return row["n"]

    # === Writes ===

    def upsert_one(self, record: T) -> T:
        """
        Insert or replace one record by identifier.

        Returns:
            The stored record; a record without id gets a placeholder id
        """
        with self._guard("upsert"), self.store.transaction() as conn:
            stored = self._insert(conn, record)
        logger.debug(f"Cached {self.model.ENTITY_NAME} {stored.id}")
        return stored

    def upsert_many(self, records: Iterable[T]) -> list[T]:
        with self._guard("upsert"), self.store.transaction() as conn:
            return [self._insert(conn, record) for record in records]

    def replace_all(
        self,
        records: Iterable[T],
        params: Optional[dict[str, Any]] = None,
    ) -> list[T]:
        """
        Make the cached extent equal to `records` in one transaction.

        Args:
            records: Authoritative records
            params: Restricts the replaced extent to rows matching these
                field values; None replaces the whole table
        """
        where, values = self._where(params)
        with self._guard("replace"), self.store.transaction() as conn:
            conn.execute(f"DELETE FROM {self.table}{where}", values)
            stored = [self._insert(conn, record) for record in records]
        logger.debug(f"Replaced {self.table} extent with {len(stored)} records")
        return stored

    def replace_one(self, old_id: Optional[int], record: T) -> T:
        """Swap the record stored under old_id for `record` atomically."""
        with self._guard("replace"), self.store.transaction() as conn:
            if old_id is not None and old_id != record.id:
                conn.execute(
                    f"DELETE FROM {self.table} WHERE {self.id_column} = ?",
                    (old_id,),
                )
            return self._insert(conn, record)

    def evict(self, record_id: int) -> bool:
        """Remove one record; returns whether a row was deleted."""
        with self._guard("evict"), self.store.transaction() as conn:
            cursor = conn.execute(
                f"DELETE FROM {self.table} WHERE {self.id_column} = ?",
                (record_id,),
            )
            return cursor.rowcount > 0


# =============================================================================
# Entity caches
# =============================================================================

class RaidCache(LocalCache[Raid]):
    model = Raid
    table = "raids"
    order_by = "RAI_TIME_START DESC"


class RaceCache(LocalCache[Race]):
    model = Race
    table = "races"
    order_by = "RAC_TIME_START"


class AddressCache(LocalCache[Address]):
    model = Address
    table = "addresses"


class ClubCache(LocalCache[Club]):
    model = Club
    table = "clubs"
    order_by = "CLU_NAME"


class UserCache(LocalCache[User]):
    model = User
    table = "users"
    order_by = "USE_NAME, USE_LAST_NAME"


class TeamCache(LocalCache[Team]):
    model = Team
    table = "teams"
