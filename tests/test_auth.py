"""
Session Token Tests
"""

from unittest.mock import Mock

import pytest

from raidsync.core.auth import AuthTokenProvider, TokenStore
from raidsync.core.errors import LocalStoreError


class TestTokenStore:
    """Tests for token persistence."""

    def test_no_token_initially(self, token_store):
        assert token_store.get_token() is None

    def test_save_and_get(self, token_store):
        token_store.save_token("abc123")
        assert token_store.get_token() == "abc123"

    def test_save_replaces(self, token_store):
        token_store.save_token("first")
        token_store.save_token("second")
        assert token_store.get_token() == "second"

    def test_clear(self, token_store):
        token_store.save_token("abc123")
        token_store.clear_token()
        assert token_store.get_token() is None

    def test_token_survives_new_store_instance(self, store):
        TokenStore(store).save_token("persisted")
        assert TokenStore(store).get_token() == "persisted"


class TestAuthTokenProvider:
    """Tests for call-time token lookup."""

    def test_returns_current_token(self, token_store, token_provider):
        assert token_provider.current_token() is None
        token_store.save_token("abc123")
        assert token_provider.current_token() == "abc123"

    def test_sees_logout_immediately(self, token_store, token_provider):
        token_store.save_token("abc123")
        token_store.clear_token()
        assert token_provider.current_token() is None

    def test_empty_token_is_none(self, token_store, token_provider):
        token_store.save_token("")
        assert token_provider.current_token() is None

    def test_store_failure_yields_none(self):
        token_store = Mock(spec=TokenStore)
        token_store.get_token.side_effect = LocalStoreError("disk gone")

        assert AuthTokenProvider(token_store).current_token() is None


def test_store_failure_raises_local_store_error(store):
    """Storage errors surface as LocalStoreError."""
    with store.transaction() as conn:
        conn.execute("DROP TABLE auth_tokens")

    with pytest.raises(LocalStoreError):
        TokenStore(store).get_token()
