"""
Session token storage and lookup.

The token is an opaque string persisted in the local store. Looking it up
never touches the network and never checks expiry.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from raidsync.core.database import LocalStore
from raidsync.core.errors import LocalStoreError

logger = logging.getLogger(__name__)


class TokenStore:
    """Persists the single current session token."""

    def __init__(self, store: LocalStore):
        self.store = store

    def save_token(self, token: str) -> None:
        """Save authentication token."""
        try:
            with self.store.transaction() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO auth_tokens (id, token, saved_at)
                    VALUES (1, ?, ?)
                    """,
                    (token, datetime.now(timezone.utc).isoformat()),
                )
        except sqlite3.Error as e:
            raise LocalStoreError(f"Cannot save token: {e}") from e
        logger.info("Session token saved")

    def get_token(self) -> Optional[str]:
        """Get stored authentication token."""
        try:
            with self.store.connection() as conn:
                row = conn.execute("SELECT token FROM auth_tokens WHERE id = 1").fetchone()
        except sqlite3.Error as e:
            raise LocalStoreError(f"Cannot read token: {e}") from e
        return row["token"] if row else None

    def clear_token(self) -> None:
        """Clear stored authentication token."""
        try:
            with self.store.transaction() as conn:
                conn.execute("DELETE FROM auth_tokens WHERE id = 1")
        except sqlite3.Error as e:
            raise LocalStoreError(f"Cannot clear token: {e}") from e
        logger.info("Session token cleared")


class AuthTokenProvider:
    """Supplies the current session token, or None when logged out."""

    def __init__(self, token_store: TokenStore):
        self.token_store = token_store

    def current_token(self) -> Optional[str]:
        """
        Look up the token at call time.

        An unreadable store yields None: the request then goes out without
        credentials and the backend decides.
        """
        try:
            token = self.token_store.get_token()
        except LocalStoreError as e:
            logger.warning(f"Token lookup failed, sending unauthenticated: {e}")
            return None
        return token or None
