from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chainprice.db.models.price_query import PriceQueryRecord


class PriceQueryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        token_address: str,
        network: str,
        timestamp: int,
        source: str,
        price: Optional[Decimal] = None,
        response_time_ms: Optional[float] = None,
    ) -> PriceQueryRecord:
        record = PriceQueryRecord(
            token_address=token_address,
            network=network,
            timestamp=timestamp,
            source=source,
            price=price,
            response_time_ms=response_time_ms,
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def list_recent(self, limit: int = 10) -> list[PriceQueryRecord]:
        result = await self._session.execute(
            select(PriceQueryRecord)
            .order_by(PriceQueryRecord.created_at.desc(), PriceQueryRecord.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_source(self) -> dict[str, int]:
        result = await self._session.execute(
            select(PriceQueryRecord.source, func.count()).group_by(PriceQueryRecord.source)
        )
        return dict(result.all())

    async def avg_response_time_ms(self) -> Optional[float]:
        result = await self._session.execute(select(func.avg(PriceQueryRecord.response_time_ms)))
        avg = result.scalar_one()
        return float(avg) if avg is not None else None
