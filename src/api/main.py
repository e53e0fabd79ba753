"""
FastAPI application for the Domain Ownership Verification service.

Startup opens the PostgreSQL pool, applies migrations and builds one
VerificationService shared by every request. Routes live in src.api.v1.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.api.dependencies import build_verification_service
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.exceptions import ProofConflict, VerificationError

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "v1",
        "description": "Domain Ownership Verification API v1 - Prove control of a website domain",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open shared resources for the lifetime of the app.

    - Configures root logging (review notifications are INFO records)
    - Creates the database connection pool and applies migrations
    - Stores the pool and the verification service in app.state
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Connecting to database (pool %d-%d)...", settings.pool_min_size, settings.pool_max_size)
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=True,
    )

    try:
        run_migrations(pool)
    except Exception:
        pool.close()
        raise

    app.state.pool = pool
    app.state.verification_service = build_verification_service(pool, settings)
    logger.info(
        "Verification service ready: ttl=%dd max_retries=%d check_timeout=%dms",
        settings.token_ttl_days,
        settings.max_retries,
        settings.check_timeout_ms,
    )

    yield

    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="rapid-verify",
    description="Domain Ownership Verification API - Proves a developer controls "
    "the website domain they claim via DNS TXT, meta tag, hosted file or manual review",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.include_router(v1_router, prefix="/v1")


@app.exception_handler(VerificationError)
async def verification_error_handler(request: Request, exc: VerificationError) -> JSONResponse:
    """
    Last-resort mapping for domain errors a route did not translate.

    Routes handle the expected cases themselves; what reaches here is a
    token or id collision on insert (409) or a programming error (500).
    """
    if isinstance(exc, ProofConflict):
        logger.warning("Proof insert collided: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "Verification could not be created, please retry"},
        )

    logger.error("Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Liveness plus database round trip.

    Plain def: the pool call blocks, so it runs in the threadpool.
    """
    with request.app.state.pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
