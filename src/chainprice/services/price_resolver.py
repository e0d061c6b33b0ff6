"""PriceResolver — layered historical price lookup with write-through."""

import logging
import time
from typing import Callable, Optional

from chainprice.db.store import PriceStore
from chainprice.domain.enums import PriceSource
from chainprice.domain.models import PricePoint, PriceQuery, QueryStats, ResolvedPrice
from chainprice.domain.validation import normalize_token_address, parse_network, validate_timestamp
from chainprice.exceptions import BackendUnavailableError, PriceNotFoundError, ProviderError
from chainprice.infra.cache import DEFAULT_TTL_SECONDS, PriceCache
from chainprice.infra.price.base import PriceProvider
from chainprice.services.interpolation import can_interpolate, interpolate

logger = logging.getLogger(__name__)


class PriceResolver:
    """Price orchestrator: cache → store → provider → interpolation.

    The first tier that produces a price wins. Lower tiers write their result
    back to the cache; provider results are also persisted. Interpolated
    prices are estimates and only ever reach the cache. Backend and provider
    failures turn a tier into a miss instead of failing the lookup.
    """

    def __init__(
        self,
        cache: PriceCache,
        store: PriceStore,
        provider: Optional[PriceProvider] = None,
        cache_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._cache = cache
        self._store = store
        self._provider = provider
        self._cache_ttl = cache_ttl_seconds
        self._clock = clock

    async def resolve(self, token_address: str, network: str, timestamp: int) -> ResolvedPrice:
        """Resolve a price or raise PriceNotFoundError. Invalid input raises InvalidRequestError."""
        token = normalize_token_address(token_address)
        net = parse_network(network).value
        ts = validate_timestamp(timestamp)
        started = self._clock()

        result = (
            await self._from_cache(token, net, ts)
            or await self._from_store(token, net, ts)
            or await self._from_provider(token, net, ts)
            or await self._from_interpolation(token, net, ts)
        )
        if result is None:
            logger.info("No price for %s:%s@%d at any tier", net, token, ts)
            raise PriceNotFoundError(token, net, ts)

        elapsed_ms = (self._clock() - started) * 1000
        await self._audit(token, net, ts, result, elapsed_ms)
        return result

    async def get_recent_queries(self, limit: int = 10) -> list[PriceQuery]:
        return await self._store.get_recent_queries(limit)

    async def get_stats(self) -> QueryStats:
        return await self._store.get_query_stats()

    def cache_connected(self) -> bool:
        return self._cache.connected()

    # Tiers

    async def _from_cache(self, token: str, network: str, ts: int) -> Optional[ResolvedPrice]:
        try:
            cached = await self._cache.get_price(token, network, ts)
        except BackendUnavailableError as e:
            logger.warning("Cache unavailable, skipping to storage: %s", e)
            return None
        if cached is None:
            return None
        return cached.model_copy(update={"source": PriceSource.CACHE})

    async def _from_store(self, token: str, network: str, ts: int) -> Optional[ResolvedPrice]:
        try:
            point = await self._store.get_price(token, network, ts)
        except BackendUnavailableError as e:
            logger.warning("Store unavailable, skipping to provider: %s", e)
            return None
        if point is None:
            return None

        result = ResolvedPrice(
            price=point.price,
            source=PriceSource.STORAGE,
            market_cap=point.market_cap,
            volume=point.volume,
        )
        await self._write_cache(token, network, ts, result)
        return result

    async def _from_provider(self, token: str, network: str, ts: int) -> Optional[ResolvedPrice]:
        if self._provider is None:
            return None
        try:
            fetched = await self._provider.get_price(token, network, ts)
        except ProviderError as e:
            logger.info("Provider miss for %s:%s@%d: %s", network, token, ts, e)
            return None

        result = ResolvedPrice(
            price=fetched.price,
            source=PriceSource.PROVIDER,
            market_cap=fetched.market_cap,
            volume=fetched.volume,
        )
        await self._write_cache(token, network, ts, result)
        point = PricePoint(
            token_address=token,
            network=network,
            timestamp=ts,
            price=fetched.price,
            market_cap=fetched.market_cap,
            volume=fetched.volume,
        )
        try:
            await self._store.save_price(point)
        except BackendUnavailableError:
            logger.exception("Failed to persist provider price for %s:%s@%d", network, token, ts)
        return result

    async def _from_interpolation(self, token: str, network: str, ts: int) -> Optional[ResolvedPrice]:
        try:
            before, after = await self._store.get_nearest_prices(token, network, ts)
        except BackendUnavailableError as e:
            logger.warning("Store unavailable, cannot interpolate: %s", e)
            return None
        if before is None or after is None or not can_interpolate(before, after, ts):
            return None

        details = interpolate(ts, before, after)
        result = ResolvedPrice(price=details.price, source=PriceSource.INTERPOLATED, details=details)
        await self._write_cache(token, network, ts, result)
        return result

    # Side effects

    async def _write_cache(self, token: str, network: str, ts: int, result: ResolvedPrice) -> None:
        try:
            await self._cache.set_price(token, network, ts, result, self._cache_ttl)
        except BackendUnavailableError as e:
            logger.warning("Cache write skipped for %s:%s@%d: %s", network, token, ts, e)

    async def _audit(self, token: str, network: str, ts: int, result: ResolvedPrice, elapsed_ms: float) -> None:
        query = PriceQuery(
            token_address=token,
            network=network,
            timestamp=ts,
            price=result.price,
            source=result.source,
            response_time_ms=round(elapsed_ms, 3),
        )
        try:
            await self._store.record_query(query)
        except BackendUnavailableError:
            logger.exception("Failed to record price query for %s:%s@%d", network, token, ts)
