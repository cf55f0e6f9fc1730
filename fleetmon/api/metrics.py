"""Historical health metrics API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from fleetmon.api.dependencies import get_query_service
from fleetmon.errors import StoreUnavailable
from fleetmon.query.service import InvalidRange, QueryService, Resolution
from fleetmon.schemas.metrics import (
    HealthHourlyResponse,
    HealthSampleResponse,
    HistoryResponse,
    HourlyResponse,
    SamplesResponse,
    ServerMetricsSummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


def get_time_range(
    from_: datetime | None = Query(default=None, alias="from", description="Range start (ISO 8601, inclusive)"),
    to: datetime | None = Query(default=None, description="Range end (ISO 8601, inclusive)"),
    start: datetime | None = Query(default=None, description="Alternative name for from"),
    end: datetime | None = Query(default=None, description="Alternative name for to"),
) -> tuple[datetime, datetime]:
    """Resolve the query range from `from`/`to`, falling back to `start`/`end`."""
    range_start = from_ if from_ is not None else start
    range_end = to if to is not None else end
    if range_start is None or range_end is None:
        raise HTTPException(status_code=422, detail="Query parameters 'from' and 'to' are required")
    return range_start, range_end


@router.get("/samples", response_model=SamplesResponse)
async def get_samples(
    time_range: tuple[datetime, datetime] = Depends(get_time_range),
    server: str | None = Query(default=None, description="Server name, e.g. nas-input-1"),
    protocol: str | None = Query(default=None, description="Protocol, e.g. FTP (case-insensitive)"),
    query: QueryService = Depends(get_query_service),
) -> SamplesResponse:
    """Raw samples for a time range. Best for ranges under 24 hours."""
    start, end = time_range
    try:
        samples = await query.samples(start, end, server=server, protocol=protocol)
    except InvalidRange as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    return SamplesResponse(
        samples=[HealthSampleResponse.model_validate(s) for s in samples],
        total_count=len(samples),
        query_start=start,
        query_end=end,
    )


@router.get("/hourly", response_model=HourlyResponse)
async def get_hourly(
    time_range: tuple[datetime, datetime] = Depends(get_time_range),
    server: str | None = Query(default=None),
    protocol: str | None = Query(default=None),
    query: QueryService = Depends(get_query_service),
) -> HourlyResponse:
    """Hourly rollups for a time range. Best for ranges over 24 hours."""
    start, end = time_range
    try:
        hourly = await query.hourly(start, end, server=server, protocol=protocol)
    except InvalidRange as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    return HourlyResponse(
        hourly=[HealthHourlyResponse.model_validate(h) for h in hourly],
        total_count=len(hourly),
        query_start=start,
        query_end=end,
    )


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    time_range: tuple[datetime, datetime] = Depends(get_time_range),
    resolution: Resolution = Query(default=Resolution.HOURLY),
    server: str | None = Query(default=None),
    protocol: str | None = Query(default=None),
    query: QueryService = Depends(get_query_service),
) -> HistoryResponse:
    """Samples or rollups for a range at the requested resolution."""
    start, end = time_range
    try:
        rows = await query.history(resolution, start, end, server=server, protocol=protocol)
    except InvalidRange as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    response = HistoryResponse(
        resolution=resolution.value,
        total_count=len(rows),
        query_start=start,
        query_end=end,
    )
    if resolution is Resolution.RAW:
        response.samples = [HealthSampleResponse.model_validate(r) for r in rows]
    else:
        response.hourly = [HealthHourlyResponse.model_validate(r) for r in rows]
    return response


@router.get("/servers", response_model=list[ServerMetricsSummaryResponse])
async def get_servers_with_metrics(
    query: QueryService = Depends(get_query_service),
) -> list[ServerMetricsSummaryResponse]:
    """Servers with stored metrics and the date range available for each."""
    try:
        summaries = await query.server_summaries()
    except StoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    logger.debug(f"Returned {len(summaries)} servers with metrics")
    return [ServerMetricsSummaryResponse.model_validate(s) for s in summaries]
