"""Persistence interface for price points, the query audit log and backfill jobs.

The resolver and the backfill worker only talk to ``PriceStore``. ``SqlPriceStore``
is the production engine (one short transaction per call, safe to share across
concurrent resolves and workers); ``MemoryPriceStore`` lives in
``chainprice.db.memory_store``.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chainprice.db.repos import BulkFetchJobRepo, HistoricalPriceRepo, PriceQueryRepo
from chainprice.domain.enums import PriceSource
from chainprice.domain.models import BulkFetchJob, PricePoint, PriceQuery, QueryStats
from chainprice.exceptions import BackendUnavailableError

logger = logging.getLogger(__name__)


class PriceStore(ABC):
    """Authoritative store. Price points are write-once on their identity key."""

    # Price points

    @abstractmethod
    async def get_price(self, token_address: str, network: str, timestamp: int) -> Optional[PricePoint]:
        """Exact match on the identity key."""

    @abstractmethod
    async def get_nearest_prices(
        self, token_address: str, network: str, timestamp: int
    ) -> tuple[Optional[PricePoint], Optional[PricePoint]]:
        """Nearest points strictly before and strictly after timestamp."""

    @abstractmethod
    async def save_price(self, point: PricePoint) -> bool:
        """Insert if absent. Returns False when the identity key already exists."""

    # Query audit log

    @abstractmethod
    async def record_query(self, query: PriceQuery) -> PriceQuery:
        ...

    @abstractmethod
    async def get_recent_queries(self, limit: int = 10) -> list[PriceQuery]:
        """Most recent first."""

    @abstractmethod
    async def get_query_stats(self) -> QueryStats:
        ...

    # Bulk fetch jobs

    @abstractmethod
    async def create_job(self, token_address: str, network: str) -> BulkFetchJob:
        ...

    @abstractmethod
    async def get_job(self, job_id: int) -> Optional[BulkFetchJob]:
        ...

    @abstractmethod
    async def get_active_jobs(self) -> list[BulkFetchJob]:
        """Jobs in pending or processing, oldest first."""

    @abstractmethod
    async def get_pending_job_ids(self) -> list[int]:
        ...

    @abstractmethod
    async def claim_job(self, job_id: int) -> bool:
        """pending -> processing. Only one caller wins per job."""

    @abstractmethod
    async def update_job(self, job_id: int, *, progress: Optional[int] = None, total_days: Optional[int] = None) -> None:
        """Update a processing job. No-op for jobs in any other state."""

    @abstractmethod
    async def complete_job(self, job_id: int) -> None:
        """processing -> completed, progress 100, completed_at stamped."""

    @abstractmethod
    async def fail_job(self, job_id: int, error_message: Optional[str] = None) -> None:
        """pending/processing -> failed. Progress is left untouched."""


def build_query_stats(by_source: dict[str, int], avg_response_time_ms: Optional[float]) -> QueryStats:
    return QueryStats(
        total_queries=sum(by_source.values()),
        interpolated_count=by_source.get(PriceSource.INTERPOLATED.value, 0),
        avg_response_time_ms=avg_response_time_ms,
        by_source=by_source,
    )


class SqlPriceStore(PriceStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as e:
            raise BackendUnavailableError(f"Price store unavailable: {e}") from e

    async def get_price(self, token_address: str, network: str, timestamp: int) -> Optional[PricePoint]:
        async with self._transaction() as session:
            record = await HistoricalPriceRepo(session).get(token_address, network, timestamp)
            return PricePoint.model_validate(record) if record else None

    async def get_nearest_prices(
        self, token_address: str, network: str, timestamp: int
    ) -> tuple[Optional[PricePoint], Optional[PricePoint]]:
        async with self._transaction() as session:
            repo = HistoricalPriceRepo(session)
            before = await repo.get_before(token_address, network, timestamp)
            after = await repo.get_after(token_address, network, timestamp)
            return (
                PricePoint.model_validate(before) if before else None,
                PricePoint.model_validate(after) if after else None,
            )

    async def save_price(self, point: PricePoint) -> bool:
        try:
            async with self._transaction() as session:
                await HistoricalPriceRepo(session).create(
                    token_address=point.token_address,
                    network=point.network,
                    timestamp=point.timestamp,
                    price=point.price,
                    market_cap=point.market_cap,
                    volume=point.volume,
                )
        except IntegrityError:
            # Concurrent writer got there first; the stored value stays authoritative
            logger.debug("Price point %s already stored", point.identity_key)
            return False
        return True

    async def record_query(self, query: PriceQuery) -> PriceQuery:
        async with self._transaction() as session:
            record = await PriceQueryRepo(session).create(
                token_address=query.token_address,
                network=query.network,
                timestamp=query.timestamp,
                source=query.source.value,
                price=query.price,
                response_time_ms=query.response_time_ms,
            )
            await session.refresh(record)
            return PriceQuery.model_validate(record)

    async def get_recent_queries(self, limit: int = 10) -> list[PriceQuery]:
        async with self._transaction() as session:
            records = await PriceQueryRepo(session).list_recent(limit)
            return [PriceQuery.model_validate(r) for r in records]

    async def get_query_stats(self) -> QueryStats:
        async with self._transaction() as session:
            repo = PriceQueryRepo(session)
            by_source = await repo.count_by_source()
            avg = await repo.avg_response_time_ms()
        return build_query_stats(by_source, avg)

    async def create_job(self, token_address: str, network: str) -> BulkFetchJob:
        async with self._transaction() as session:
            record = await BulkFetchJobRepo(session).create(token_address, network)
            return BulkFetchJob.model_validate(record)

    async def get_job(self, job_id: int) -> Optional[BulkFetchJob]:
        async with self._transaction() as session:
            record = await BulkFetchJobRepo(session).get_by_id(job_id)
            return BulkFetchJob.model_validate(record) if record else None

    async def get_active_jobs(self) -> list[BulkFetchJob]:
        async with self._transaction() as session:
            records = await BulkFetchJobRepo(session).list_active()
            return [BulkFetchJob.model_validate(r) for r in records]

    async def get_pending_job_ids(self) -> list[int]:
        async with self._transaction() as session:
            return await BulkFetchJobRepo(session).list_pending_ids()

    async def claim_job(self, job_id: int) -> bool:
        async with self._transaction() as session:
            return await BulkFetchJobRepo(session).claim(job_id)

    async def update_job(self, job_id: int, *, progress: Optional[int] = None, total_days: Optional[int] = None) -> None:
        values: dict = {}
        if progress is not None:
            values["progress"] = progress
        if total_days is not None:
            values["total_days"] = total_days
        if not values:
            return
        async with self._transaction() as session:
            await BulkFetchJobRepo(session).update_processing(job_id, **values)

    async def complete_job(self, job_id: int) -> None:
        async with self._transaction() as session:
            await BulkFetchJobRepo(session).complete(job_id)

    async def fail_job(self, job_id: int, error_message: Optional[str] = None) -> None:
        async with self._transaction() as session:
            await BulkFetchJobRepo(session).fail(job_id, error_message)
