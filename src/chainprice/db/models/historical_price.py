"""Persisted historical token prices. Write-once per (token_address, network, timestamp)."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from chainprice.db.session import Base, CreatedAtMixin
from chainprice.db.types import ExactDecimal


class HistoricalPriceRecord(CreatedAtMixin, Base):
    __tablename__ = "historical_prices"
    __table_args__ = (
        UniqueConstraint("token_address", "network", "timestamp", name="uq_historical_prices_identity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_address: Mapped[str] = mapped_column(String(42), index=True)
    network: Mapped[str] = mapped_column(String(20))
    timestamp: Mapped[int] = mapped_column(BigInteger, index=True)  # Unix epoch seconds
    price: Mapped[Decimal] = mapped_column(ExactDecimal)
    market_cap: Mapped[Optional[Decimal]] = mapped_column(ExactDecimal, default=None)
    volume: Mapped[Optional[Decimal]] = mapped_column(ExactDecimal, default=None)
