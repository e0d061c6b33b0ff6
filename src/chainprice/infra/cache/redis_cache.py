import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from chainprice.exceptions import BackendUnavailableError
from chainprice.infra.cache.base import DEFAULT_TTL_SECONDS, PriceCache

logger = logging.getLogger(__name__)


class RedisPriceCache(PriceCache):
    """Redis-backed cache. Connection state follows the outcome of the last command."""

    def __init__(self, client: Redis) -> None:
        self._client = client
        self._connected = False

    @classmethod
    def from_url(cls, url: str) -> "RedisPriceCache":
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._client.get(key)
        except (RedisError, OSError) as e:
            self._mark_down(e)
            raise BackendUnavailableError(f"Redis GET failed: {e}") from e
        self._connected = True
        return value

    async def set(self, key: str, value: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        try:
            await self._client.setex(key, ttl_seconds, value)
        except (RedisError, OSError) as e:
            self._mark_down(e)
            raise BackendUnavailableError(f"Redis SETEX failed: {e}") from e
        self._connected = True

    def connected(self) -> bool:
        return self._connected

    async def close(self) -> None:
        await self._client.aclose()

    def _mark_down(self, error: Exception) -> None:
        if self._connected:
            logger.warning("Redis connection lost: %s", error)
        self._connected = False
