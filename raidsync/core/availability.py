"""
Backend availability probing with a TTL-cached verdict.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from raidsync.core.config import Settings
from raidsync.core.http import ApiClient

logger = logging.getLogger(__name__)


class AvailabilityStatus(Enum):
    """Verdict of the last probe."""
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass
class AvailabilityState:
    """Cached verdict with the clock reading it was taken at."""
    status: AvailabilityStatus = AvailabilityStatus.UNKNOWN
    checked_at: Optional[float] = None

    def is_fresh(self, now: float, ttl: float) -> bool:
        """A verdict is honored only while now - checked_at < ttl."""
        if self.status is AvailabilityStatus.UNKNOWN or self.checked_at is None:
            return False
        return now - self.checked_at < ttl


class AvailabilityMonitor:
    """
    Probes the backend health endpoint and caches the verdict.

    Usage:
        monitor = AvailabilityMonitor(api_client)
        if await monitor.check_availability():
            # Talk to the backend
        else:
            # Use local cache
    """

    DEFAULT_TTL = 300.0
    DEFAULT_PROBE_TIMEOUT = 3.0

    def __init__(
        self,
        api_client: ApiClient,
        *,
        health_path: str = "/health",
        ttl: float = DEFAULT_TTL,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_client = api_client
        self.health_path = health_path
        self.ttl = ttl
        self.probe_timeout = probe_timeout
        self._clock = clock
        self._state = AvailabilityState()

    @classmethod
    def from_settings(
        cls,
        api_client: ApiClient,
        settings: Settings,
        **kwargs,
    ) -> "AvailabilityMonitor":
        return cls(
            api_client,
            health_path=settings.health_path,
            ttl=settings.availability_ttl,
            probe_timeout=settings.probe_timeout,
            **kwargs,
        )

    @property
    def state(self) -> AvailabilityState:
        """Get current availability state."""
        return self._state

    async def check_availability(self) -> bool:
        """
        Return the cached verdict while it is fresh, otherwise probe.

        Any exception or non-200 answer counts as unavailable. The verdict
        and its timestamp are cached in both cases.
        """
        if self._state.is_fresh(self._clock(), self.ttl):
            return self._state.status is AvailabilityStatus.AVAILABLE

        try:
            status_code = await self.api_client.probe(self.health_path, self.probe_timeout)
            available = status_code == 200
            if not available:
                logger.debug(f"Health probe answered {status_code}")
        except Exception as e:
            logger.debug(f"Health probe failed: {e}")
            available = False

        self._state = AvailabilityState(
            status=AvailabilityStatus.AVAILABLE if available else AvailabilityStatus.UNAVAILABLE,
            checked_at=self._clock(),
        )
        logger.info(f"Backend availability: {self._state.status.value}")
        return available

    def reset_cache(self) -> None:
        """Forget the cached verdict."""
        self._state = AvailabilityState()
