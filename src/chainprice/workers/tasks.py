"""Celery tasks for background processing."""

import asyncio
import logging

from chainprice.services.backfill import JobQueue
from chainprice.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="run_backfill_job")
def run_backfill_job_task(self, job_id: int) -> dict:
    """Run one bulk fetch job.

    Bridges to async code via asyncio.run() — each task invocation
    creates its own engine + session (no shared state with FastAPI).
    """
    return asyncio.run(_run_backfill_async(job_id))


@celery_app.task(name="requeue_pending_jobs")
def requeue_pending_jobs_task() -> int:
    """Re-dispatch pending jobs whose wake-up message was lost. Claiming makes duplicates harmless."""
    return asyncio.run(_requeue_pending_async())


async def _run_backfill_async(job_id: int) -> dict:
    from chainprice.config import settings
    from chainprice.db.session import build_engine, build_session_factory
    from chainprice.db.store import SqlPriceStore
    from chainprice.infra.http.rate_limited_client import RateLimitedClient
    from chainprice.infra.price.alchemy import AlchemyProvider
    from chainprice.infra.retry import RetryPolicy
    from chainprice.services.backfill import BackfillJobManager

    engine = build_engine(settings.database_url, echo=False)
    try:
        store = SqlPriceStore(build_session_factory(engine))
        async with RateLimitedClient(
            rate_per_second=settings.provider_rate_per_second, timeout=settings.provider_timeout
        ) as http_client:
            provider = AlchemyProvider(
                http_client,
                api_key=settings.alchemy_api_key,
                retry_policy=RetryPolicy.from_settings(settings),
                chunk_delay=settings.provider_batch_delay,
            )
            manager = BackfillJobManager(store, provider, batch_size=settings.backfill_batch_size)
            job = await manager.run_job(job_id)
    finally:
        await engine.dispose()

    if job is None:
        return {"status": "skipped", "job_id": job_id}
    logger.info("Job %d finished as %s", job_id, job.status.value)
    return {"status": job.status.value, "job_id": job_id, "progress": job.progress}


async def _requeue_pending_async() -> int:
    from chainprice.config import settings
    from chainprice.db.session import build_engine, build_session_factory
    from chainprice.db.store import SqlPriceStore

    engine = build_engine(settings.database_url, echo=False)
    try:
        pending = await SqlPriceStore(build_session_factory(engine)).get_pending_job_ids()
    finally:
        await engine.dispose()

    for job_id in pending:
        run_backfill_job_task.delay(job_id)
    return len(pending)


class CeleryJobQueue(JobQueue):
    """Dispatch job wake-ups to Celery workers over the Redis broker."""

    async def enqueue(self, job_id: int) -> None:
        run_backfill_job_task.delay(job_id)
