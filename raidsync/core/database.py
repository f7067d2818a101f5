"""
SQLite database backing the local cache and the session token.

One file holds a table per entity kind (columns named after the wire
fields) plus the single-row auth_tokens table.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from raidsync.core.errors import LocalStoreError
from raidsync.models.entities import ENTITY_TYPES

logger = logging.getLogger(__name__)

CACHE_TABLES = ("addresses", "users", "clubs", "raids", "races", "teams")


def cache_schema_version() -> int:
    """Stored as PRAGMA user_version; bumping any entity SCHEMA_VERSION changes it."""
    return sum(model.SCHEMA_VERSION for model in ENTITY_TYPES.values())


class LocalStore:
    """SQLite file shared by all local caches."""

    SCHEMA = """
    CREATE TABLE IF NOT EXISTS addresses (
        ADD_ID INTEGER PRIMARY KEY,
        ADD_POSTAL_CODE INTEGER NOT NULL,
        ADD_CITY TEXT NOT NULL,
        ADD_STREET_NAME TEXT NOT NULL,
        ADD_STREET_NUMBER TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS users (
        USE_ID INTEGER PRIMARY KEY,
        ADD_ID INTEGER,
        CLU_ID INTEGER,
        USE_MAIL TEXT NOT NULL,
        USE_NAME TEXT NOT NULL,
        USE_LAST_NAME TEXT NOT NULL,
        USE_BIRTHDATE TEXT,
        USE_PHONE_NUMBER INTEGER,
        USE_LICENCE_NUMBER INTEGER,
        USE_PPS_FORM TEXT,
        USE_MEMBERSHIP_DATE TEXT
    );

    CREATE TABLE IF NOT EXISTS clubs (
        CLU_ID INTEGER PRIMARY KEY,
        USE_ID INTEGER NOT NULL,
        ADD_ID INTEGER NOT NULL,
        CLU_NAME TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS raids (
        RAI_ID INTEGER PRIMARY KEY,
        CLU_ID INTEGER,
        ADD_ID INTEGER,
        USE_ID INTEGER,
        RAI_NAME TEXT NOT NULL,
        RAI_MAIL TEXT,
        RAI_PHONE_NUMBER TEXT,
        RAI_WEB_SITE TEXT,
        RAI_IMAGE TEXT,
        RAI_TIME_START TEXT NOT NULL,
        RAI_TIME_END TEXT NOT NULL,
        RAI_REGISTRATION_START TEXT,
        RAI_REGISTRATION_END TEXT,
        RAI_NB_RACES INTEGER
    );

    CREATE TABLE IF NOT EXISTS races (
        RAC_ID INTEGER PRIMARY KEY,
        RAI_ID INTEGER NOT NULL,
        USE_ID INTEGER,
        RAC_NAME TEXT,
        RAC_TYPE TEXT NOT NULL,
        RAC_DIFFICULTY TEXT NOT NULL,
        RAC_GENDER TEXT,
        RAC_TIME_START TEXT NOT NULL,
        RAC_TIME_END TEXT NOT NULL,
        RAC_MIN_PARTICIPANTS INTEGER DEFAULT 0,
        RAC_MAX_PARTICIPANTS INTEGER DEFAULT 0,
        RAC_MIN_TEAMS INTEGER DEFAULT 0,
        RAC_MAX_TEAMS INTEGER DEFAULT 0,
        RAC_TEAM_MEMBERS INTEGER DEFAULT 0,
        RAC_AGE_MIN INTEGER DEFAULT 0,
        RAC_AGE_MIDDLE INTEGER DEFAULT 0,
        RAC_AGE_MAX INTEGER DEFAULT 0,
        RAC_CHIP_MANDATORY INTEGER DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS teams (
        TEA_ID INTEGER PRIMARY KEY,
        USE_ID INTEGER NOT NULL,
        TEA_NAME TEXT NOT NULL,
        TEA_IMAGE TEXT
    );

    CREATE TABLE IF NOT EXISTS auth_tokens (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        token TEXT NOT NULL,
        saved_at TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_races_raid ON races(RAI_ID);
    CREATE INDEX IF NOT EXISTS idx_raids_start ON raids(RAI_TIME_START);
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._write_lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        """
        Create the directory and the schema.

        Cached records written under another schema version are dropped; the
        session token is kept.
        """
        version = cache_schema_version()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self.connection() as conn:
                stored = conn.execute("PRAGMA user_version").fetchone()[0]
                if stored and stored != version:
                    logger.info(f"Cache schema {stored} superseded by {version}, dropping cached records")
                    conn.executescript("".join(f"DROP TABLE IF EXISTS {t};" for t in CACHE_TABLES))
                conn.executescript(self.SCHEMA)
                conn.execute(f"PRAGMA user_version = {version}")
                conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise LocalStoreError(f"Cannot initialize local store at {self.db_path}: {e}") from e
        logger.info(f"Local store initialized at: {self.db_path}")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(str(self.db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements as one transaction; roll back on any error."""
        with self._write_lock, self.connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
