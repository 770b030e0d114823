"""
Deal Scout - Main Application Entry Point

Collects business-for-sale posts from Reddit, extracts structured deal data
with Gemini, and backfills embeddings for semantic search.

The HTTP endpoints are thin triggers over the pipeline stages; the same stages
run on cron via APScheduler (see scheduler.jobs).
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Security
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from .archivist import close_db, init_db
from .archivist.database import get_pool_status
from .config import get_pipeline_config, settings
from .scheduler import (
    run_cleanup_stage,
    run_embed_stage,
    run_extract_stage,
    run_ingest_stage,
    setup_scheduler,
    shutdown_scheduler,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ----- API Key Security -----

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)):
    """Verify API key for trigger endpoints. Open when no keys are configured."""
    if not settings.valid_api_keys:
        return None
    if not api_key:
        raise HTTPException(status_code=401, detail="API key required")
    if api_key not in settings.valid_api_keys:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return api_key


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Deal Scout...")

    try:
        await init_db()
    except Exception as e:
        logger.warning(f"Could not initialize database: {e}")

    if settings.scheduler_enabled:
        try:
            setup_scheduler()
        except Exception as e:
            logger.warning(f"Could not start scheduler: {e}")

    yield

    logger.info("Shutting down...")
    shutdown_scheduler()

    try:
        await close_db()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Error closing database: {e}")


app = FastAPI(
    title="Deal Scout",
    description="Micro-SaaS acquisition deal pipeline",
    version="1.0.0",
    lifespan=lifespan,
)


# ----- Response Models -----

class PoolStatus(BaseModel):
    pool_size: int
    checked_in: int
    checked_out: int
    overflow: int


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    pool_status: Optional[PoolStatus] = None


# ----- Endpoints -----

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint with pool monitoring."""
    try:
        pool_status = PoolStatus(**get_pool_status())
    except Exception as e:
        logger.warning(f"Failed to get pool status: {e}")
        pool_status = None

    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        pool_status=pool_status,
    )


@app.get("/fetch", dependencies=[Depends(verify_api_key)])
async def trigger_ingestion():
    """Ingest top posts from every configured subreddit."""
    try:
        result = await run_ingest_stage()
    except Exception as e:
        logger.exception("Ingestion failed")
        raise HTTPException(status_code=500, detail=f"Ingestion failed: {e}")
    return result.model_dump(by_alias=True)


@app.get("/process", dependencies=[Depends(verify_api_key)])
async def trigger_extraction():
    """Extract one on-demand batch of unprocessed posts."""
    batch_size = get_pipeline_config().extraction_on_demand_batch_size
    try:
        result = await run_extract_stage(batch_size)
    except Exception as e:
        logger.exception("Extraction failed")
        raise HTTPException(status_code=500, detail=f"Extraction failed: {e}")
    return result.model_dump(by_alias=True)


@app.get("/embeddings", dependencies=[Depends(verify_api_key)])
async def trigger_embeddings():
    """Embed one batch of deals missing vectors."""
    try:
        result = await run_embed_stage()
    except Exception as e:
        logger.exception("Embedding backfill failed")
        raise HTTPException(status_code=500, detail=f"Embedding backfill failed: {e}")
    return result.model_dump(by_alias=True)


@app.get("/cleanup", dependencies=[Depends(verify_api_key)])
async def trigger_cleanup():
    """Delete processed raw posts."""
    try:
        result = await run_cleanup_stage()
    except Exception as e:
        logger.exception("Cleanup failed")
        raise HTTPException(status_code=500, detail=f"Cleanup failed: {e}")
    return result.model_dump(by_alias=True)
