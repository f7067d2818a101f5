"""
HTTP transport for the raidsync backend.

Wraps an httpx.AsyncClient with the backend conventions: JSON bodies, bearer
token when one is supplied, `{"data": ...}` envelope unwrapping and error
classification.
"""

import logging
from typing import Any, Callable, Optional

import httpx

from raidsync.core.config import Settings
from raidsync.core.errors import (
    ServerError,
    SyncError,
    classify_exception,
    classify_response,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def unwrap_envelope(body: Any) -> Any:
    """Return the payload of a bare JSON value or a `{"data": value}` envelope."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class ApiClient:
    """Async JSON client for the REST backend."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        user_agent: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = dict(DEFAULT_HEADERS)
        if user_agent:
            self.headers["User-Agent"] = user_agent
        self.on_unauthorized = on_unauthorized
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ApiClient":
        """Build a client from Settings."""
        kwargs.setdefault("user_agent", f"{settings.app_name}/{settings.app_version}")
        return cls(settings.api_base_url, settings.request_timeout, **kwargs)

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers=self.headers,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Perform one request and return the unwrapped JSON payload.

        Args:
            method: HTTP method
            path: Path relative to the base URL, with leading slash
            token: Session token; sent as a bearer header when present
            json: Request body
            params: Query parameters

        Returns:
            The decoded payload, or None for an empty body

        Raises:
            SyncError: classified transport or HTTP failure
        """
        client = await self._get_http_client()
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await client.request(
                method,
                self.url_for(path),
                headers=headers,
                json=json,
                params=params,
            )
        except httpx.RequestError as e:
            logger.debug(f"{method} {path} failed: {e}")
            raise classify_exception(e) from e

        logger.debug(f"{method} {path} - {response.status_code}")

        if response.status_code == 401 and self.on_unauthorized is not None:
            try:
                self.on_unauthorized()
            except SyncError as e:
                logger.warning(f"Unauthorized hook failed: {e}")

        classify_response(response)
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Decode a 2xx body."""
        if response.status_code == 204 or not response.content:
            return None
        try:
            body = response.json()
        except ValueError as e:
            raise ServerError(
                f"Undecodable response body: {e}",
                status_code=response.status_code,
            ) from e
        return unwrap_envelope(body)

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def probe(self, path: str, timeout: float) -> int:
        """
        Issue an unauthenticated GET with its own timeout.

        Returns the raw status code; transport exceptions propagate unchanged.
        """
        client = await self._get_http_client()
        response = await client.get(self.url_for(path), timeout=timeout)
        return response.status_code
