from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chainprice.db.session import Base, CreatedAtMixin
from chainprice.db.types import ExactDecimal


class PriceQueryRecord(CreatedAtMixin, Base):
    """Append-only audit log of resolved price lookups."""

    __tablename__ = "price_queries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_address: Mapped[str] = mapped_column(String(42), index=True)
    network: Mapped[str] = mapped_column(String(20))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    price: Mapped[Optional[Decimal]] = mapped_column(ExactDecimal, default=None)
    source: Mapped[str] = mapped_column(String(20), index=True)  # cache / storage / provider / interpolated
    response_time_ms: Mapped[Optional[float]] = mapped_column(Float, default=None)
