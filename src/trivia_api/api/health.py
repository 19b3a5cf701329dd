# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from attrs import asdict
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..bootstrap import AppServices
from ..schemas.responses import HealthResponse, PoolHealthResponse
from .dependencies import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Database unreachable"}},
)
async def health_check(
    services: AppServices = Depends(get_services),
) -> JSONResponse:
    """Report whether the database answers a liveness probe."""
    settings = services.settings
    result = await services.database.health_check(timeout=settings.pool_probe_timeout)

    if result.is_ok():
        body = HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc),
            service=settings.service_name,
            database="connected",
        )
        status_code = 200
    else:
        logger.error(f"Health check failed: {result.unwrap_err()}")
        body = HealthResponse(
            status="unhealthy",
            timestamp=datetime.now(timezone.utc),
            service=settings.service_name,
            database="disconnected",
            error=None if settings.is_production else result.unwrap_err(),
        )
        status_code = 503

    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


@router.get("/health/pool", response_model=PoolHealthResponse)
async def pool_health(
    services: AppServices = Depends(get_services),
) -> PoolHealthResponse:
    """Expose pool, admission queue and cache counters."""
    cache_stats = services.cache.stats()
    return PoolHealthResponse(
        timestamp=datetime.now(timezone.utc),
        pool=asdict(services.database.get_pool_stats()),
        admission=services.admission.as_dict(),
        cache={**asdict(cache_stats), "hit_rate": cache_stats.hit_rate},
    )
