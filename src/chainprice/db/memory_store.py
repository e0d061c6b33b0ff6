"""In-process PriceStore with a sorted timestamp index per (token_address, network).

All methods complete without awaiting, so each call is atomic with respect to
other coroutines on the same event loop.
"""

import bisect
import itertools
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

from chainprice.db.store import PriceStore, build_query_stats
from chainprice.domain.enums import JobStatus
from chainprice.domain.models import BulkFetchJob, PricePoint, PriceQuery, QueryStats


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryPriceStore(PriceStore):
    def __init__(self) -> None:
        self._prices: dict[tuple[str, str, int], PricePoint] = {}
        self._index: dict[tuple[str, str], list[int]] = defaultdict(list)
        self._queries: list[PriceQuery] = []
        self._jobs: dict[int, BulkFetchJob] = {}
        self._query_ids = itertools.count(1)
        self._job_ids = itertools.count(1)

    async def get_price(self, token_address: str, network: str, timestamp: int) -> Optional[PricePoint]:
        return self._prices.get((token_address, network, timestamp))

    async def get_nearest_prices(
        self, token_address: str, network: str, timestamp: int
    ) -> tuple[Optional[PricePoint], Optional[PricePoint]]:
        timestamps = self._index.get((token_address, network), [])
        lo = bisect.bisect_left(timestamps, timestamp)
        hi = bisect.bisect_right(timestamps, timestamp)
        before = self._prices[(token_address, network, timestamps[lo - 1])] if lo > 0 else None
        after = self._prices[(token_address, network, timestamps[hi])] if hi < len(timestamps) else None
        return before, after

    async def save_price(self, point: PricePoint) -> bool:
        key = point.identity_key
        if key in self._prices:
            return False
        if point.created_at is None:
            point = point.model_copy(update={"created_at": _now()})
        self._prices[key] = point
        bisect.insort(self._index[(point.token_address, point.network)], point.timestamp)
        return True

    async def record_query(self, query: PriceQuery) -> PriceQuery:
        stored = query.model_copy(update={"id": next(self._query_ids), "created_at": _now()})
        self._queries.append(stored)
        return stored

    async def get_recent_queries(self, limit: int = 10) -> list[PriceQuery]:
        return list(reversed(self._queries[-limit:])) if limit > 0 else []

    async def get_query_stats(self) -> QueryStats:
        by_source: dict[str, int] = {}
        timings = []
        for q in self._queries:
            by_source[q.source.value] = by_source.get(q.source.value, 0) + 1
            if q.response_time_ms is not None:
                timings.append(q.response_time_ms)
        avg = sum(timings) / len(timings) if timings else None
        return build_query_stats(by_source, avg)

    async def create_job(self, token_address: str, network: str) -> BulkFetchJob:
        job = BulkFetchJob(
            id=next(self._job_ids),
            token_address=token_address,
            network=network,
            status=JobStatus.PENDING,
            progress=0,
            created_at=_now(),
        )
        self._jobs[job.id] = job
        return job

    async def get_job(self, job_id: int) -> Optional[BulkFetchJob]:
        return self._jobs.get(job_id)

    async def get_active_jobs(self) -> list[BulkFetchJob]:
        return [job for job in self._jobs.values() if job.status.is_active]

    async def get_pending_job_ids(self) -> list[int]:
        return [job.id for job in self._jobs.values() if job.status == JobStatus.PENDING]

    async def claim_job(self, job_id: int) -> bool:
        return self._transition(job_id, (JobStatus.PENDING,), status=JobStatus.PROCESSING)

    async def update_job(self, job_id: int, *, progress: Optional[int] = None, total_days: Optional[int] = None) -> None:
        values: dict = {}
        if progress is not None:
            values["progress"] = progress
        if total_days is not None:
            values["total_days"] = total_days
        if values:
            self._transition(job_id, (JobStatus.PROCESSING,), **values)

    async def complete_job(self, job_id: int) -> None:
        self._transition(
            job_id, (JobStatus.PROCESSING,), status=JobStatus.COMPLETED, progress=100, completed_at=_now()
        )

    async def fail_job(self, job_id: int, error_message: Optional[str] = None) -> None:
        self._transition(
            job_id, (JobStatus.PENDING, JobStatus.PROCESSING), status=JobStatus.FAILED, error_message=error_message
        )

    def _transition(self, job_id: int, allowed: tuple[JobStatus, ...], **updates) -> bool:
        job = self._jobs.get(job_id)
        if job is None or job.status not in allowed:
            return False
        self._jobs[job_id] = job.model_copy(update=updates)
        return True
