"""Key-value cache interface for resolved prices. Never authoritative."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from chainprice.domain.models import ResolvedPrice

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


def price_cache_key(token_address: str, network: str, timestamp: int) -> str:
    return f"price:{token_address}:{network}:{timestamp}"


class PriceCache(ABC):
    """get/set raise BackendUnavailableError when the engine cannot be reached."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None on miss or expiry."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        ...

    @abstractmethod
    def connected(self) -> bool:
        ...

    async def get_price(self, token_address: str, network: str, timestamp: int) -> Optional[ResolvedPrice]:
        raw = await self.get(price_cache_key(token_address, network, timestamp))
        if raw is None:
            return None
        try:
            return ResolvedPrice.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry for %s:%s@%d", network, token_address, timestamp)
            return None

    async def set_price(
        self,
        token_address: str,
        network: str,
        timestamp: int,
        price: ResolvedPrice,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        await self.set(price_cache_key(token_address, network, timestamp), price.model_dump_json(), ttl_seconds)
