from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chainprice.db.models.historical_price import HistoricalPriceRecord


class HistoricalPriceRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, token_address: str, network: str, timestamp: int) -> Optional[HistoricalPriceRecord]:
        result = await self._session.execute(
            select(HistoricalPriceRecord).where(
                HistoricalPriceRecord.token_address == token_address,
                HistoricalPriceRecord.network == network,
                HistoricalPriceRecord.timestamp == timestamp,
            )
        )
        return result.scalar_one_or_none()

    async def get_before(self, token_address: str, network: str, timestamp: int) -> Optional[HistoricalPriceRecord]:
        """Nearest point strictly before timestamp."""
        result = await self._session.execute(
            select(HistoricalPriceRecord)
            .where(
                HistoricalPriceRecord.token_address == token_address,
                HistoricalPriceRecord.network == network,
                HistoricalPriceRecord.timestamp < timestamp,
            )
            .order_by(HistoricalPriceRecord.timestamp.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_after(self, token_address: str, network: str, timestamp: int) -> Optional[HistoricalPriceRecord]:
        """Nearest point strictly after timestamp."""
        result = await self._session.execute(
            select(HistoricalPriceRecord)
            .where(
                HistoricalPriceRecord.token_address == token_address,
                HistoricalPriceRecord.network == network,
                HistoricalPriceRecord.timestamp > timestamp,
            )
            .order_by(HistoricalPriceRecord.timestamp.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        token_address: str,
        network: str,
        timestamp: int,
        price: Decimal,
        market_cap: Optional[Decimal] = None,
        volume: Optional[Decimal] = None,
    ) -> HistoricalPriceRecord:
        record = HistoricalPriceRecord(
            token_address=token_address,
            network=network,
            timestamp=timestamp,
            price=price,
            market_cap=market_cap,
            volume=volume,
        )
        self._session.add(record)
        await self._session.flush()
        return record
