"""TTL cache decorator for property handlers.

Wraps any PropertyHandler and keeps resolved raw values, including a
resolved None, for a fixed time-to-live. Expiry is checked lazily on read;
there is no background sweep and no size-bounded eviction.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional

from cascade.authorization.token import utcnow
from cascade.constants import DEFAULT_CACHE_TTL_SECONDS
from cascade.exception.errors import ValidationError
from cascade.properties.handlers.base import Environment, PropertyHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedProperty:
    """Resolved raw value and its absolute expiry.

    Attributes:
        value: Raw value; None records a confirmed absence
        expires: Absolute expiry (aware UTC)
    """

    value: Optional[str]
    expires: datetime

    def is_expired(self, now: datetime) -> bool:
        """An entry is valid only while ``now < expires``."""
        return not now < self.expires


class CachePropertyHandler(PropertyHandler):
    """Caching decorator around another property handler.

    Failures of the wrapped handler propagate unchanged and are never
    cached. Concurrent misses for one key are not deduplicated; each one
    resolves upstream and the last writer wins.

    Attributes:
        handler: Wrapped handler
        ttl: Default time-to-live
        overrides: Per-key time-to-live overrides
    """

    def __init__(
        self,
        handler: PropertyHandler,
        ttl: timedelta = timedelta(seconds=DEFAULT_CACHE_TTL_SECONDS),
        overrides: Optional[Mapping[str, timedelta]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize cache handler.

        Args:
            handler: Handler to decorate
            ttl: Default time-to-live for resolved values
            overrides: Time-to-live per property key
            clock: Source of the current aware UTC time

        Raises:
            ValidationError: If a time-to-live is not positive
        """
        super().__init__()
        for key, value in {"ttl": ttl, **dict(overrides or {})}.items():
            if value <= timedelta(0):
                raise ValidationError(f"Cache TTL must be positive: {key}", field=key)

        self.handler = handler
        self.ttl = ttl
        self.overrides: Dict[str, timedelta] = dict(overrides or {})
        self._clock = clock or utcnow
        self._cache: Dict[str, CachedProperty] = {}
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return f"CachePropertyHandler({self.handler.name})"

    async def _initialize(self, env: Environment) -> None:
        await self.handler.initialize(env)

    async def _ready(self, env: Environment) -> None:
        await self.handler.ready(env)

    def ttl_for(self, key: str) -> timedelta:
        return self.overrides.get(key, self.ttl)

    async def _get_raw_property(self, key: str) -> Optional[str]:
        async with self._lock:
            cached = self._cache.get(key)
            if cached is not None and not cached.is_expired(self._clock()):
                logger.debug(f"Cache hit for '{key}'")
                return cached.value

        logger.debug(f"Cache miss for '{key}', resolving via {self.handler.name}")
        value = await self.handler.get_raw_property(key)

        async with self._lock:
            self._cache[key] = CachedProperty(
                value=value, expires=self._clock() + self.ttl_for(key)
            )
        return value

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Statistics dictionary (no property values)
        """
        now = self._clock()
        expired = sum(1 for entry in self._cache.values() if entry.is_expired(now))
        return {
            "total_entries": len(self._cache),
            "expired_entries": expired,
            "ttl_seconds": self.ttl.total_seconds(),
        }

    async def close(self) -> None:
        await self.handler.close()
