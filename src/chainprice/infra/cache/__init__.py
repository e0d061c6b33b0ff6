from chainprice.infra.cache.base import DEFAULT_TTL_SECONDS, PriceCache, price_cache_key
from chainprice.infra.cache.memory import InMemoryPriceCache
from chainprice.infra.cache.redis_cache import RedisPriceCache

__all__ = ["DEFAULT_TTL_SECONDS", "InMemoryPriceCache", "PriceCache", "RedisPriceCache", "price_cache_key"]
