import asyncio
import logging

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConcurrencyLimiter:
    """
    Fixed-size permit pool bounding in-flight execution units.

    Every successful ``acquire()`` must be paired with exactly one
    ``release()``; releasing more than was acquired raises instead of
    silently growing the pool.
    """

    def __init__(self, permits: int, name: str = "") -> None:
        if permits < 1:
            raise ConfigurationError(f"concurrency must be >= 1, got {permits}")
        self.permits = permits
        self.name = name
        self._sema = asyncio.Semaphore(permits)
        self.in_flight = 0
        self.peak_in_flight = 0
        logger.debug(f"Created limiter '{name}' with {permits} permits")

    @property
    def available(self) -> int:
        return self.permits - self.in_flight

    async def acquire(self) -> None:
        await self._sema.acquire()
        self.in_flight += 1
        if self.in_flight > self.peak_in_flight:
            self.peak_in_flight = self.in_flight
        logger.debug(f"Limiter '{self.name}' granted permit ({self.in_flight}/{self.permits})")

    def release(self) -> None:
        if self.in_flight <= 0:
            raise RuntimeError(f"Limiter '{self.name}' released more permits than acquired")
        self.in_flight -= 1
        self._sema.release()

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
