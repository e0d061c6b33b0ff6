"""Domain types for price points, resolution results and the query audit log."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from chainprice.domain.enums import PriceSource


class PricePoint(BaseModel):
    """One persisted observation. Identity key = (token_address, network, timestamp)."""

    token_address: str
    network: str
    timestamp: int  # Unix seconds
    price: Decimal
    market_cap: Optional[Decimal] = None
    volume: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "frozen": True}

    @property
    def identity_key(self) -> tuple[str, str, int]:
        return self.token_address, self.network, self.timestamp


class ProviderPrice(BaseModel):
    """Price as returned by an external provider, before it is persisted."""

    price: Decimal
    timestamp: int
    market_cap: Optional[Decimal] = None
    volume: Optional[Decimal] = None


class InterpolationResult(BaseModel):
    price: Decimal
    ratio: Decimal
    before_price: Decimal
    after_price: Decimal
    before_timestamp: int
    after_timestamp: int


class ResolvedPrice(BaseModel):
    price: Decimal
    source: PriceSource
    market_cap: Optional[Decimal] = None
    volume: Optional[Decimal] = None
    details: Optional[InterpolationResult] = None  # Only set for interpolated prices


class PriceQuery(BaseModel):
    """Audit record written once per successful resolve."""

    id: Optional[int] = None
    token_address: str
    network: str
    timestamp: int
    price: Optional[Decimal] = None
    source: PriceSource
    response_time_ms: Optional[float] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class QueryStats(BaseModel):
    total_queries: int = 0
    interpolated_count: int = 0
    avg_response_time_ms: Optional[float] = None  # None until a timed query exists
    by_source: dict[str, int] = {}
