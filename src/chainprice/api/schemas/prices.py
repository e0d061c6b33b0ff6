from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from chainprice.domain.enums import Network, PriceSource

EVM_ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


class PriceRequest(BaseModel):
    token: str = Field(pattern=EVM_ADDRESS_PATTERN)
    network: Network
    timestamp: int = Field(gt=0, description="Unix seconds")

    @field_validator("token")
    @classmethod
    def normalize_token(cls, v: str) -> str:
        return v.strip().lower()


class InterpolationDetails(BaseModel):
    before_price: float
    after_price: float
    before_timestamp: int
    after_timestamp: int
    ratio: float


class PriceResponse(BaseModel):
    price: float
    source: PriceSource
    market_cap: Optional[float] = None
    volume: Optional[float] = None
    details: Optional[InterpolationDetails] = None


class PriceQueryResponse(BaseModel):
    id: Optional[int] = None
    token_address: str
    network: str
    timestamp: int
    price: Optional[float] = None
    source: PriceSource
    response_time_ms: Optional[float] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class QueryStatsResponse(BaseModel):
    total_queries: int
    interpolated_count: int
    interpolated_percent: int
    avg_response_time_ms: Optional[float] = None
    by_source: dict[str, int] = {}
