"""
Operational endpoints.

/health is the liveness probe and touches nothing. /ready answers 503
until the database accepts queries. /health/cache exposes the card cache
counters so hit rates can be watched without log scraping.

None of these require the X-User-Id header, and none contact Scryfall.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.api.dependencies import get_card_cache
from cardledger.db.database import get_session
from cardledger.services.card_cache import CardCacheProtocol

router = APIRouter(tags=["health"])


class ProbeResponse(BaseModel):
    status: str
    database: str | None = None


class CacheStatsResponse(BaseModel):
    """Card cache counters since process start."""

    hits: int
    misses: int
    size: int
    hit_rate: float


@router.get("/health", response_model=ProbeResponse)
async def liveness() -> ProbeResponse:
    return ProbeResponse(status="healthy")


@router.get(
    "/ready",
    response_model=ProbeResponse,
    responses={503: {"model": ProbeResponse}},
)
async def readiness(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ProbeResponse:
    """Report ready once a trivial query succeeds; 503 otherwise."""
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ProbeResponse(status="not ready", database="disconnected")
    return ProbeResponse(status="ready", database="connected")


@router.get("/health/cache", response_model=CacheStatsResponse)
async def card_cache_stats(
    cache: Annotated[CardCacheProtocol, Depends(get_card_cache)],
) -> CacheStatsResponse:
    stats = cache.stats()
    return CacheStatsResponse(
        hits=stats.hits,
        misses=stats.misses,
        size=stats.size,
        hit_rate=stats.hit_rate,
    )
