import time
from typing import Callable, Optional

from chainprice.infra.cache.base import DEFAULT_TTL_SECONDS, PriceCache


class InMemoryPriceCache(PriceCache):
    """Process-local cache with per-entry TTL, for single-process deployments and tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, value)

    def connected(self) -> bool:
        return True
