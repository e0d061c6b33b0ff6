"""BackfillJobManager: schedules and executes bulk daily price backfills.

A job row is created in ``pending`` before anything is queued; the queue only
carries a wake-up with the job id. Execution claims the row
(``pending -> processing``) so each job runs at most once, then walks daily
timestamps from the token's creation time to now in fixed-size batches.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from chainprice.db.store import PriceStore
from chainprice.domain.models import BulkFetchJob, PricePoint
from chainprice.domain.validation import normalize_token_address, parse_network
from chainprice.exceptions import BackendUnavailableError, JobNotFoundError, ProviderError
from chainprice.infra.price.base import PriceProvider

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
DEFAULT_BATCH_SIZE = 10


class JobQueue(ABC):
    """Wake-up channel for workers. Losing a message must not lose the job."""

    @abstractmethod
    async def enqueue(self, job_id: int) -> None:
        ...


def daily_timestamps(start: int, now: int) -> list[int]:
    """start, start + 1 day, ... up to and including now."""
    return list(range(start, now + 1, SECONDS_PER_DAY))


def progress_percent(processed: int, total: int) -> int:
    if total <= 0:
        return 100
    return min(100, processed * 100 // total)


class BackfillJobManager:
    def __init__(
        self,
        store: PriceStore,
        provider: PriceProvider,
        queue: Optional[JobQueue] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._provider = provider
        self._queue = queue
        self._batch_size = batch_size
        self._clock = clock

    def attach_queue(self, queue: JobQueue) -> None:
        self._queue = queue

    async def schedule(self, token_address: str, network: str) -> int:
        """Create a pending job and signal a worker. Returns the job id even if signalling fails."""
        token = normalize_token_address(token_address)
        net = parse_network(network).value

        job = await self._store.create_job(token, net)
        logger.info("Scheduled bulk fetch job %d for %s:%s", job.id, net, token)

        if self._queue is not None:
            try:
                await self._queue.enqueue(job.id)
            except Exception:
                logger.warning("Could not enqueue job %d; it stays pending for the poller", job.id, exc_info=True)
        return job.id

    async def get_job(self, job_id: int) -> BulkFetchJob:
        job = await self._store.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def get_active_jobs(self) -> list[BulkFetchJob]:
        return await self._store.get_active_jobs()

    async def get_pending_job_ids(self) -> list[int]:
        return await self._store.get_pending_job_ids()

    async def run_job(self, job_id: int) -> Optional[BulkFetchJob]:
        """Execute one job to a terminal state. Returns None if another worker owns it."""
        if not await self._store.claim_job(job_id):
            logger.info("Job %d is not pending, skipping", job_id)
            return None

        try:
            await self._execute(await self.get_job(job_id))
        except Exception as e:
            logger.exception("Bulk fetch job %d failed", job_id)
            try:
                await self._store.fail_job(job_id, str(e) or type(e).__name__)
            except BackendUnavailableError:
                logger.exception("Could not mark job %d as failed", job_id)
        return await self._store.get_job(job_id)

    async def _execute(self, job: BulkFetchJob) -> None:
        try:
            creation_ts = await self._provider.get_creation_timestamp(job.token_address, job.network)
        except ProviderError as e:
            raise ProviderError(f"Could not determine token creation date: {e}") from e

        timestamps = daily_timestamps(creation_ts, int(self._clock()))
        total = len(timestamps)
        await self._store.update_job(job.id, total_days=total)
        logger.info("Job %d: %d daily timestamps from %d", job.id, total, creation_ts)

        progress = job.progress
        stored = 0
        for start in range(0, total, self._batch_size):
            batch = timestamps[start:start + self._batch_size]
            prices = await self._provider.get_prices_batch(job.token_address, job.network, batch)

            for ts, fetched in zip(batch, prices):
                if fetched is None:
                    continue
                point = PricePoint(
                    token_address=job.token_address,
                    network=job.network,
                    timestamp=ts,
                    price=fetched.price,
                    market_cap=fetched.market_cap,
                    volume=fetched.volume,
                )
                if await self._store.save_price(point):
                    stored += 1

            progress = max(progress, progress_percent(start + len(batch), total))
            await self._store.update_job(job.id, progress=progress)

        await self._store.complete_job(job.id)
        logger.info("Job %d completed: %d/%d prices stored", job.id, stored, total)
