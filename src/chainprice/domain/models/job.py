from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from chainprice.domain.enums import JobStatus


class BulkFetchJob(BaseModel):
    """Backfill job row. The row is the source of truth; queues only carry its id."""

    id: int
    token_address: str
    network: str
    status: JobStatus
    progress: int = 0  # 0-100, monotonic while processing
    total_days: Optional[int] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
