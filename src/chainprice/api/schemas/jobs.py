from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from chainprice.api.schemas.prices import EVM_ADDRESS_PATTERN, PriceQueryResponse, QueryStatsResponse
from chainprice.domain.enums import JobStatus, Network


class BulkFetchRequest(BaseModel):
    token: str = Field(pattern=EVM_ADDRESS_PATTERN)
    network: Network

    @field_validator("token")
    @classmethod
    def normalize_token(cls, v: str) -> str:
        return v.strip().lower()


class ScheduleResponse(BaseModel):
    job_id: int
    message: str = "Bulk fetch job scheduled successfully"


class JobResponse(BaseModel):
    id: int
    token_address: str
    network: str
    status: JobStatus
    progress: int
    total_days: Optional[int] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CacheStatus(BaseModel):
    connected: bool
    ttl_seconds: int


class QueueStatus(BaseModel):
    backend: str
    workers: int
    active_jobs: int


class StatusResponse(BaseModel):
    cache: CacheStatus
    queue: QueueStatus
    active_jobs: list[JobResponse]
    recent_queries: list[PriceQueryResponse]
    stats: QueryStatsResponse
