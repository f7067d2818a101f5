"""
Configuration Tests
"""

import pytest
from pydantic import ValidationError

from raidsync.core.config import Settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.request_timeout == 30.0
        assert settings.probe_timeout == 3.0
        assert settings.availability_ttl == 300.0
        assert settings.health_path == "/health"
        assert settings.clear_token_on_unauthorized is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("RAIDSYNC_API_BASE_URL", "https://raids.example.org/api/")
        monkeypatch.setenv("RAIDSYNC_AVAILABILITY_TTL", "60")

        settings = Settings(_env_file=None)

        assert settings.api_base_url == "https://raids.example.org/api"
        assert settings.availability_ttl == 60.0

    @pytest.mark.parametrize("field", ["request_timeout", "probe_timeout", "availability_ttl"])
    def test_non_positive_rejected(self, field):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: 0})
