"""Abstract price provider consumed by the resolver and the backfill worker."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from chainprice.domain.models import ProviderPrice

logger = logging.getLogger(__name__)

BATCH_CHUNK_SIZE = 10
BATCH_CHUNK_DELAY = 1.0  # Seconds between chunks, keeps bursts under provider rate limits


class PriceProvider(ABC):
    """External historical price source.

    Implementations apply their retry policy inside each call; an error that
    escapes has already exhausted retries (or was not retryable).
    """

    chunk_size: int = BATCH_CHUNK_SIZE
    chunk_delay: float = BATCH_CHUNK_DELAY

    @abstractmethod
    async def get_price(self, token_address: str, network: str, timestamp: int) -> ProviderPrice:
        """Price at timestamp. Raises RateLimitedError, TransientProviderError or PriceNotAvailableError."""

    @abstractmethod
    async def get_creation_timestamp(self, token_address: str, network: str) -> int:
        """Unix time of the token's first on-chain activity. Raises ProviderError on failure."""

    async def get_prices_batch(
        self, token_address: str, network: str, timestamps: Sequence[int]
    ) -> list[Optional[ProviderPrice]]:
        """One slot per input timestamp, in input order. Failed items become None; never raises per item.

        Timestamps are fetched concurrently in chunks of chunk_size, with chunk_delay
        seconds between chunks.
        """
        results: list[Optional[ProviderPrice]] = []
        for start in range(0, len(timestamps), self.chunk_size):
            if start > 0 and self.chunk_delay > 0:
                await asyncio.sleep(self.chunk_delay)
            chunk = timestamps[start:start + self.chunk_size]
            outcomes = await asyncio.gather(
                *(self.get_price(token_address, network, ts) for ts in chunk),
                return_exceptions=True,
            )
            for ts, outcome in zip(chunk, outcomes):
                if isinstance(outcome, Exception):
                    logger.debug("No price for %s:%s@%d: %s", network, token_address, ts, outcome)
                    results.append(None)
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    results.append(outcome)
        return results
