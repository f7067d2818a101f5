"""
API Client Tests

Requests are answered in-process by httpx.MockTransport.
"""

import json
from unittest.mock import Mock

import httpx
import pytest

from raidsync.core.config import Settings
from raidsync.core.errors import (
    AuthenticationError,
    LocalStoreError,
    NetworkError,
    NotFoundError,
    ServerError,
)
from raidsync.core.http import ApiClient, unwrap_envelope


class TestUnwrapEnvelope:
    """Tests for envelope handling."""

    def test_bare_list(self):
        assert unwrap_envelope([1, 2]) == [1, 2]

    def test_data_envelope(self):
        assert unwrap_envelope({"data": {"RAI_ID": 1}, "meta": {}}) == {"RAI_ID": 1}

    def test_bare_object(self):
        assert unwrap_envelope({"RAI_ID": 1}) == {"RAI_ID": 1}


class TestApiClient:
    """Tests for requests and error mapping."""

    @pytest.mark.asyncio
    async def test_get_builds_url_and_headers(self, make_api):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["accept"] = request.headers.get("Accept")
            return httpx.Response(200, json={"data": [{"RAI_ID": 1}]})

        api = make_api(handler)
        payload = await api.get("/raids", token="tok", params={"RAI_ID": 1})

        assert payload == [{"RAI_ID": 1}]
        assert seen["url"] == "http://backend.test/api/raids?RAI_ID=1"
        assert seen["auth"] == "Bearer tok"
        assert seen["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self, make_api):
        seen = []

        def handler(request):
            seen.append(request.headers.get("Authorization"))
            return httpx.Response(200, json=[])

        await make_api(handler).get("/addresses")
        assert seen == [None]

    @pytest.mark.asyncio
    async def test_post_sends_json(self, make_api):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"ADD_ID": 5})

        result = await make_api(handler).post("/addresses", json={"ADD_CITY": "Caen"})

        assert bodies == [{"ADD_CITY": "Caen"}]
        assert result == {"ADD_ID": 5}

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self, make_api):
        api = make_api(lambda request: httpx.Response(204))
        assert await api.delete("/teams/1") is None

    @pytest.mark.asyncio
    async def test_undecodable_body(self, make_api):
        api = make_api(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ServerError):
            await api.get("/raids")

    @pytest.mark.asyncio
    async def test_status_is_classified(self, make_api):
        api = make_api(lambda request: httpx.Response(404))
        with pytest.raises(NotFoundError):
            await api.get("/raids/42")

    @pytest.mark.asyncio
    async def test_transport_error_is_network_failure(self, make_api):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(NetworkError):
            await make_api(handler).get("/raids")

    @pytest.mark.asyncio
    async def test_timeout_is_network_failure(self, make_api):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(NetworkError):
            await make_api(handler).get("/raids")

    @pytest.mark.asyncio
    async def test_unauthorized_calls_hook(self, make_api):
        hook = Mock()
        api = make_api(lambda request: httpx.Response(401), on_unauthorized=hook)

        with pytest.raises(AuthenticationError):
            await api.get("/users")
        hook.assert_called_once()

    @pytest.mark.asyncio
    async def test_failing_hook_keeps_classification(self, make_api):
        hook = Mock(side_effect=LocalStoreError("locked"))
        api = make_api(lambda request: httpx.Response(401), on_unauthorized=hook)

        with pytest.raises(AuthenticationError):
            await api.get("/users")

    @pytest.mark.asyncio
    async def test_probe_returns_status(self, make_api):
        api = make_api(lambda request: httpx.Response(503))
        assert await api.probe("/health", timeout=3.0) == 503

    @pytest.mark.asyncio
    async def test_probe_propagates_transport_errors(self, make_api):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(httpx.ConnectError):
            await make_api(handler).probe("/health", timeout=3.0)

    @pytest.mark.asyncio
    async def test_close_and_reopen(self, make_api):
        api = make_api(lambda request: httpx.Response(200, json=[]))
        await api.get("/raids")
        await api.close()

        assert await api.get("/raids") == []
        await api.close()

    def test_from_settings(self):
        settings = Settings(api_base_url="http://example.org/api/", request_timeout=12)
        api = ApiClient.from_settings(settings)

        assert api.base_url == "http://example.org/api"
        assert api.timeout == 12
        assert api.url_for("/raids") == "http://example.org/api/raids"
        assert api.headers["User-Agent"] == "raidsync/0.1.0"
