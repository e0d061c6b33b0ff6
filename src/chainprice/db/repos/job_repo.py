from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chainprice.db.models.bulk_fetch_job import BulkFetchJobRecord
from chainprice.domain.enums import JobStatus

_ACTIVE = (JobStatus.PENDING.value, JobStatus.PROCESSING.value)


class BulkFetchJobRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, token_address: str, network: str) -> BulkFetchJobRecord:
        job = BulkFetchJobRecord(
            token_address=token_address,
            network=network,
            status=JobStatus.PENDING.value,
            progress=0,
        )
        self._session.add(job)
        await self._session.flush()
        await self._session.refresh(job)
        return job

    async def get_by_id(self, job_id: int) -> Optional[BulkFetchJobRecord]:
        result = await self._session.execute(
            select(BulkFetchJobRecord).where(BulkFetchJobRecord.id == job_id)
        )
        return result.scalar_one_or_none()

    async def list_active(self) -> list[BulkFetchJobRecord]:
        result = await self._session.execute(
            select(BulkFetchJobRecord)
            .where(BulkFetchJobRecord.status.in_(_ACTIVE))
            .order_by(BulkFetchJobRecord.id.asc())
        )
        return list(result.scalars().all())

    async def list_pending_ids(self) -> list[int]:
        result = await self._session.execute(
            select(BulkFetchJobRecord.id)
            .where(BulkFetchJobRecord.status == JobStatus.PENDING.value)
            .order_by(BulkFetchJobRecord.id.asc())
        )
        return list(result.scalars().all())

    async def claim(self, job_id: int) -> bool:
        """Atomically move a job from pending to processing. False if someone else got it."""
        result = await self._session.execute(
            update(BulkFetchJobRecord)
            .where(
                BulkFetchJobRecord.id == job_id,
                BulkFetchJobRecord.status == JobStatus.PENDING.value,
            )
            .values(status=JobStatus.PROCESSING.value)
        )
        return result.rowcount == 1

    async def update_processing(self, job_id: int, **values) -> bool:
        """Update fields of a job that is still processing. Terminal jobs are left alone."""
        result = await self._session.execute(
            update(BulkFetchJobRecord)
            .where(
                BulkFetchJobRecord.id == job_id,
                BulkFetchJobRecord.status == JobStatus.PROCESSING.value,
            )
            .values(**values)
        )
        return result.rowcount == 1

    async def complete(self, job_id: int) -> bool:
        return await self.update_processing(
            job_id,
            status=JobStatus.COMPLETED.value,
            progress=100,
            completed_at=datetime.now(timezone.utc),
        )

    async def fail(self, job_id: int, error_message: Optional[str] = None) -> bool:
        """Fail a job from pending or processing."""
        result = await self._session.execute(
            update(BulkFetchJobRecord)
            .where(
                BulkFetchJobRecord.id == job_id,
                BulkFetchJobRecord.status.in_(_ACTIVE),
            )
            .values(status=JobStatus.FAILED.value, error_message=error_message)
        )
        return result.rowcount == 1
