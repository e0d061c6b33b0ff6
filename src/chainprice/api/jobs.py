from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from chainprice.api.deps import get_job_manager
from chainprice.api.schemas.jobs import BulkFetchRequest, JobResponse, ScheduleResponse
from chainprice.exceptions import JobNotFoundError
from chainprice.services.backfill import BackfillJobManager

router = APIRouter(prefix="/api", tags=["jobs"])

ManagerDep = Annotated[BackfillJobManager, Depends(get_job_manager)]


@router.post("/schedule", response_model=ScheduleResponse)
async def schedule_bulk_fetch(body: BulkFetchRequest, manager: ManagerDep) -> ScheduleResponse:
    """Create a backfill job for the token's full daily price history."""
    job_id = await manager.schedule(body.token, body.network.value)
    return ScheduleResponse(job_id=job_id)


@router.get("/jobs", response_model=list[JobResponse])
async def list_active_jobs(manager: ManagerDep) -> list[JobResponse]:
    return [JobResponse.model_validate(j) for j in await manager.get_active_jobs()]


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, manager: ManagerDep) -> JobResponse:
    try:
        job = await manager.get_job(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return JobResponse.model_validate(job)
