import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardledger.api import cards_router, collections_router, health_router
from cardledger.config import settings
from cardledger.db.database import dispose_db, init_db
from cardledger.models.failure import KnownError
from cardledger.services.card_cache import CardCache
from cardledger.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()

    # One cache and one connection pool shared by every request
    app.state.card_cache = CardCache(
        ttl_ms=settings.card_cache_ttl_seconds * 1000,
        sweep_every=settings.card_cache_sweep_every,
    )
    app.state.scryfall_client = ScryfallClient.from_settings()
    try:
        yield
    finally:
        await app.state.scryfall_client.aclose()
        await dispose_db()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardledger"),
    lifespan=lifespan,
)

app.include_router(cards_router)
app.include_router(collections_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render known failures as a FailureDetail body."""
    if exc.status_code >= 500:
        logger.warning("KNOWN_ERROR", extra={"kind": exc.kind.value, "detail": exc.detail})
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_detail().model_dump(mode="json"),
    )
