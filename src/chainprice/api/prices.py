from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from chainprice.api.deps import get_job_manager, get_price_resolver, get_settings
from chainprice.api.schemas.jobs import CacheStatus, JobResponse, QueueStatus, StatusResponse
from chainprice.api.schemas.prices import (
    InterpolationDetails,
    PriceQueryResponse,
    PriceRequest,
    PriceResponse,
    QueryStatsResponse,
)
from chainprice.config import Settings
from chainprice.domain.models import QueryStats, ResolvedPrice
from chainprice.exceptions import PriceNotFoundError
from chainprice.services.backfill import BackfillJobManager
from chainprice.services.price_resolver import PriceResolver

router = APIRouter(prefix="/api", tags=["prices"])

ResolverDep = Annotated[PriceResolver, Depends(get_price_resolver)]
ManagerDep = Annotated[BackfillJobManager, Depends(get_job_manager)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def _to_response(result: ResolvedPrice) -> PriceResponse:
    details = None
    if result.details is not None:
        details = InterpolationDetails.model_validate(result.details.model_dump())
    return PriceResponse(
        price=result.price,
        source=result.source,
        market_cap=result.market_cap,
        volume=result.volume,
        details=details,
    )


def _stats_response(stats: QueryStats) -> QueryStatsResponse:
    percent = round(stats.interpolated_count * 100 / stats.total_queries) if stats.total_queries else 0
    return QueryStatsResponse(
        total_queries=stats.total_queries,
        interpolated_count=stats.interpolated_count,
        interpolated_percent=percent,
        avg_response_time_ms=stats.avg_response_time_ms,
        by_source=stats.by_source,
    )


@router.post("/price", response_model=PriceResponse)
async def get_price(body: PriceRequest, resolver: ResolverDep) -> PriceResponse:
    try:
        result = await resolver.resolve(body.token, body.network.value, body.timestamp)
    except PriceNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No historical price data available for the specified timestamp",
        )
    return _to_response(result)


@router.get("/queries", response_model=list[PriceQueryResponse])
async def recent_queries(resolver: ResolverDep, limit: int = Query(10, ge=1, le=200)) -> list[PriceQueryResponse]:
    queries = await resolver.get_recent_queries(limit)
    return [PriceQueryResponse.model_validate(q) for q in queries]


@router.get("/stats", response_model=QueryStatsResponse)
async def query_stats(resolver: ResolverDep) -> QueryStatsResponse:
    return _stats_response(await resolver.get_stats())


@router.get("/status", response_model=StatusResponse)
async def system_status(resolver: ResolverDep, manager: ManagerDep, settings: SettingsDep) -> StatusResponse:
    active_jobs = await manager.get_active_jobs()
    recent = await resolver.get_recent_queries(10)
    stats = await resolver.get_stats()
    return StatusResponse(
        cache=CacheStatus(connected=resolver.cache_connected(), ttl_seconds=settings.cache_ttl_seconds),
        queue=QueueStatus(
            backend=settings.job_queue_backend,
            workers=settings.worker_concurrency,
            active_jobs=len(active_jobs),
        ),
        active_jobs=[JobResponse.model_validate(j) for j in active_jobs],
        recent_queries=[PriceQueryResponse.model_validate(q) for q in recent],
        stats=_stats_response(stats),
    )
