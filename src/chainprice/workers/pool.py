"""In-process worker pool for bulk fetch jobs.

Workers pull job ids from an asyncio queue. A poller also feeds ``pending``
rows from the store into the queue, so jobs whose wake-up never arrived (or
were created while the pool was down) still run.
"""

import asyncio
import logging

from chainprice.services.backfill import BackfillJobManager, JobQueue

logger = logging.getLogger(__name__)


class BackfillWorkerPool(JobQueue):
    def __init__(self, manager: BackfillJobManager, concurrency: int = 3, poll_interval: float = 5.0) -> None:
        self._manager = manager
        self._concurrency = concurrency
        self._poll_interval = poll_interval
        self._queue: asyncio.Queue[int] = asyncio.Queue()
        self._scheduled: set[int] = set()  # Queued or running
        self._tasks: list[asyncio.Task] = []

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def enqueue(self, job_id: int) -> None:
        if job_id in self._scheduled:
            return
        self._scheduled.add(job_id)
        self._queue.put_nowait(job_id)

    async def start(self) -> None:
        if self._tasks:
            return
        for index in range(self._concurrency):
            self._tasks.append(asyncio.create_task(self._worker(index), name=f"backfill-worker-{index}"))
        if self._poll_interval > 0:
            self._tasks.append(asyncio.create_task(self._poll_loop(), name="backfill-poller"))
        logger.info("Started %d backfill workers", self._concurrency)

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Stopped backfill workers")

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    async def poll_once(self) -> int:
        """Queue pending jobs not already scheduled. Returns how many were added."""
        added = 0
        for job_id in await self._manager.get_pending_job_ids():
            if job_id not in self._scheduled:
                await self.enqueue(job_id)
                added += 1
        return added

    async def _poll_loop(self) -> None:
        while True:
            try:
                added = await self.poll_once()
                if added:
                    logger.info("Picked up %d pending jobs", added)
            except Exception:
                logger.exception("Polling for pending jobs failed")
            await asyncio.sleep(self._poll_interval)

    async def _worker(self, index: int) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                await self._manager.run_job(job_id)
            except Exception:
                logger.exception("Backfill worker %d crashed on job %d", index, job_id)
            finally:
                self._scheduled.discard(job_id)
                self._queue.task_done()
