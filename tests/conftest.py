"""
Shared fixtures: a temporary local store, an ApiClient over httpx.MockTransport
and wire payload builders.
"""

import tempfile
from pathlib import Path

import httpx
import pytest

from raidsync.core.auth import AuthTokenProvider, TokenStore
from raidsync.core.database import LocalStore
from raidsync.core.http import ApiClient

BASE_URL = "http://backend.test/api"


@pytest.fixture
def store():
    """Create a local store in a temp directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield LocalStore(Path(tmpdir) / "raidsync.db")


@pytest.fixture
def token_store(store):
    return TokenStore(store)


@pytest.fixture
def token_provider(token_store):
    return AuthTokenProvider(token_store)


@pytest.fixture
def make_api():
    """
    Build an ApiClient whose requests are answered by `handler`.

    The handler receives the httpx.Request and returns an httpx.Response or
    raises an httpx exception.
    """
    def factory(handler, **kwargs) -> ApiClient:
        return ApiClient(BASE_URL, 5.0, transport=httpx.MockTransport(handler), **kwargs)

    return factory


@pytest.fixture
def address_payload():
    def build(address_id, city="Caen", **overrides):
        payload = {
            "ADD_ID": address_id,
            "ADD_POSTAL_CODE": 14000,
            "ADD_CITY": city,
            "ADD_STREET_NAME": "Rue des Lilas",
            "ADD_STREET_NUMBER": "12",
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def raid_payload():
    def build(raid_id, name="Raid Normand", **overrides):
        payload = {
            "RAI_ID": raid_id,
            "CLU_ID": 1,
            "ADD_ID": 1,
            "USE_ID": 2,
            "RAI_NAME": name,
            "RAI_MAIL": "contact@raid.fr",
            "RAI_TIME_START": "2026-05-10T08:00:00",
            "RAI_TIME_END": "2026-05-11T18:00:00",
            "RAI_REGISTRATION_START": "2026-03-01T00:00:00",
            "RAI_REGISTRATION_END": "2026-05-01T00:00:00",
            "RAI_NB_RACES": 2,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def race_payload():
    def build(race_id, raid_id=1, name="Parcours A", **overrides):
        payload = {
            "RAC_ID": race_id,
            "RAI_ID": raid_id,
            "USE_ID": 2,
            "RAC_NAME": name,
            "RAC_TYPE": "Compétitif",
            "RAC_DIFFICULTY": "Difficile",
            "RAC_GENDER": "Mixte",
            "RAC_TIME_START": "2026-05-10T09:00:00",
            "RAC_TIME_END": "2026-05-10T17:00:00",
            "RAC_MIN_PARTICIPANTS": 2,
            "RAC_MAX_PARTICIPANTS": 100,
            "RAC_TEAM_MEMBERS": 3,
            "RAC_CHIP_MANDATORY": True,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def user_payload():
    def build(user_id, name="Lou", **overrides):
        payload = {
            "USE_ID": user_id,
            "ADD_ID": 1,
            "CLU_ID": 1,
            "USE_MAIL": f"user{user_id}@example.fr",
            "USE_NAME": name,
            "USE_LAST_NAME": "Martin",
            "USE_BIRTHDATE": "1995-04-12",
            "USE_PHONE_NUMBER": 612345678,
        }
        payload.update(overrides)
        return payload
    return build
