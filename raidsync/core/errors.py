"""
Error taxonomy for remote and local operations.

Every failure a repository can observe is mapped to one of a fixed set of
ErrorKind values. Repository fallback rules look at the kind only, never at
raw status codes or transport exceptions.
"""

import sqlite3
from enum import Enum
from typing import Any, Optional

import httpx


class ErrorKind(Enum):
    """Classified failure kinds."""
    NETWORK_FAILURE = "network_failure"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION_FAILURE = "validation_failure"
    SERVER_FAILURE = "server_failure"
    LOCAL_STORE_FAILURE = "local_store_failure"


# =============================================================================
# Exceptions
# =============================================================================

class SyncError(Exception):
    """Base exception for sync operations."""
    kind: Optional[ErrorKind] = None


class NetworkError(SyncError):
    """Transport failure or timeout."""
    kind = ErrorKind.NETWORK_FAILURE


class NotFoundError(SyncError):
    """The backend answered 404."""
    kind = ErrorKind.NOT_FOUND


class AuthenticationError(SyncError):
    """The backend answered 401."""
    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(SyncError):
    """The backend answered 403."""
    kind = ErrorKind.FORBIDDEN


class ValidationFailedError(SyncError):
    """The backend rejected the payload (422)."""
    kind = ErrorKind.VALIDATION_FAILURE

    def __init__(self, message: str, errors: Optional[dict[str, list[str]]] = None):
        super().__init__(message)
        self.errors = errors or {}


class ServerError(SyncError):
    """Any other non-2xx answer, or a success body that cannot be decoded."""
    kind = ErrorKind.SERVER_FAILURE

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LocalStoreError(SyncError):
    """The local cache could not complete an operation."""
    kind = ErrorKind.LOCAL_STORE_FAILURE


class UnsupportedOperationError(SyncError):
    """The backend offers no such operation for this entity."""


# =============================================================================
# Classification
# =============================================================================

def _validation_errors(response: httpx.Response) -> dict[str, list[str]]:
    """Extract the field-level `errors` map of a 422 body."""
    try:
        body: Any = response.json()
    except ValueError:
        return {}

    if not isinstance(body, dict) or not isinstance(body.get("errors"), dict):
        return {}

    errors = {}
    for field_name, messages in body["errors"].items():
        if isinstance(messages, list):
            errors[str(field_name)] = [str(m) for m in messages]
        else:
            errors[str(field_name)] = [str(messages)]
    return errors


def classify_response(response: httpx.Response) -> None:
    """Raise the classified exception for a non-2xx response."""
    status_code = response.status_code
    if 200 <= status_code < 300:
        return

    try:
        message = f"{response.request.method} {response.request.url} -> {status_code}"
    except RuntimeError:
        # Response built without a request
        message = f"HTTP {status_code}"

    if status_code == 401:
        raise AuthenticationError(f"Unauthorized: {message}")
    if status_code == 403:
        raise ForbiddenError(f"Forbidden: {message}")
    if status_code == 404:
        raise NotFoundError(f"Not found: {message}")
    if status_code == 422:
        errors = _validation_errors(response)
        raise ValidationFailedError(f"Validation failed: {message}", errors)
    raise ServerError(f"Server error: {message}", status_code=status_code)


def classify_exception(exc: Exception) -> SyncError:
    """Map a transport or storage exception to a SyncError."""
    if isinstance(exc, SyncError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return NetworkError(f"Request timed out: {exc}")
    if isinstance(exc, httpx.RequestError):
        return NetworkError(f"Network error: {exc}")
    if isinstance(exc, sqlite3.Error):
        return LocalStoreError(f"Local store error: {exc}")
    return ServerError(f"Unexpected error: {exc}")
