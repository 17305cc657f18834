"""Visitor-facing endpoints: variant allocation and outcome recording.

These are unauthenticated and rate limited per client IP.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
import redis

from app.config import get_settings
from app.database import get_db
from app.middleware.logging import get_logger
from app.schemas.outcome import AllocationResponse, OutcomeEventRequest, ResultResponse
from app.services.allocator import TrafficAllocator
from app.services.metrics import MetricsService
from app.services.rate_limiter import RateLimiter

router = APIRouter()
settings = get_settings()
logger = get_logger()

redis_client = redis.from_url(settings.redis_url)
rate_limiter = RateLimiter(
    redis_client,
    limit=settings.visitor_rate_limit_requests,
    window=settings.visitor_rate_limit_window
)


def get_rate_limiter() -> Optional[RateLimiter]:
    """Visitor rate limiter, or None when limiting is disabled."""
    if not settings.visitor_rate_limit_enabled:
        return None
    return rate_limiter


async def enforce_visitor_rate_limit(
    request: Request,
    response: Response,
    limiter: Optional[RateLimiter] = Depends(get_rate_limiter)
):
    """Reject visitors exceeding their request window with 429."""
    if limiter is None:
        return

    client_key = request.client.host if request.client else "unknown"
    allowed, count = limiter.check_rate_limit(client_key)

    if not allowed:
        logger.warning("visitor_rate_limit_exceeded", client=client_key, count=count)
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Limit: {limiter.limit} requests per {limiter.window}s",
            headers={"X-RateLimit-Limit": str(limiter.limit), "X-RateLimit-Remaining": "0"}
        )

    response.headers["X-RateLimit-Limit"] = str(limiter.limit)
    response.headers["X-RateLimit-Remaining"] = str(limiter.get_remaining(client_key))


@router.get(
    "/experiments/{experiment_id}/variant",
    response_model=AllocationResponse,
    dependencies=[Depends(enforce_visitor_rate_limit)]
)
async def allocate_variant(
    experiment_id: UUID,
    session_id: str = Query(..., min_length=1, max_length=255),
    db: Session = Depends(get_db)
):
    """
    Get the variant a visitor session should see.

    The first call for a session creates a sticky assignment; later calls
    return the same variant without counting another exposure.
    """
    variant = TrafficAllocator(db).allocate(experiment_id, session_id)

    return AllocationResponse(
        experiment_id=experiment_id,
        session_id=session_id,
        variant_id=variant.id,
        name=variant.name,
        theme_config=variant.theme_config
    )


@router.post(
    "/experiments/{experiment_id}/results",
    response_model=ResultResponse,
    dependencies=[Depends(enforce_visitor_rate_limit)]
)
async def record_result(
    experiment_id: UUID,
    result_request: OutcomeEventRequest,
    db: Session = Depends(get_db)
):
    """Record an outcome event and refresh the variant's statistics."""
    event = MetricsService(db).record_result(experiment_id, result_request)
    return ResultResponse(status="success", event_id=event.id)
