"""
APScheduler job definitions for the deal pipeline.

Four independent cron jobs (UTC), one per stage:
- Ingest: pull top posts from every configured subreddit
- Extract: promote a batch of unprocessed posts into Deals
- Embed: attach vectors to deals missing one
- Cleanup: reap processed raw posts

Each job opens its own session, so a failing stage never affects the others.
The run_*_stage coroutines are shared with the HTTP triggers and the CLI.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..analyst import GeminiExtractor, run_extraction, ExtractionResult
from ..archivist.database import get_session
from ..archivist.retention import RetentionResult, run_retention
from ..archivist.storage import SQLDealStore
from ..config.pipeline import get_pipeline_config
from ..config.settings import settings
from ..enrichment import EmbeddingBackfillResult, GeminiEmbeddingClient, run_embedding_backfill
from ..harvester import IngestionResult, RedditClient, run_ingestion

logger = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None


async def run_ingest_stage() -> IngestionResult:
    """Ingest top posts from every configured source."""
    config = get_pipeline_config()
    async with get_session() as session:
        async with RedditClient() as client:
            return await run_ingestion(SQLDealStore(session), client, config)


async def run_extract_stage(batch_size: Optional[int] = None) -> ExtractionResult:
    """Extract one batch. Defaults to the background sweep batch size."""
    config = get_pipeline_config()
    size = batch_size or config.extraction_batch_size
    async with get_session() as session:
        async with GeminiExtractor() as extractor:
            return await run_extraction(SQLDealStore(session), extractor, size)


async def run_embed_stage(batch_size: Optional[int] = None) -> EmbeddingBackfillResult:
    """Embed one batch of deals missing vectors."""
    config = get_pipeline_config()
    size = batch_size or config.embedding_batch_size
    async with get_session() as session:
        async with GeminiEmbeddingClient() as embedder:
            return await run_embedding_backfill(SQLDealStore(session), embedder, size)


async def run_cleanup_stage() -> RetentionResult:
    """Delete processed raw posts."""
    async with get_session() as session:
        return await run_retention(SQLDealStore(session))


async def _run_scheduled(name: str, coro) -> None:
    """Run one stage; log and swallow failures so the scheduler keeps going."""
    logger.info(f"Scheduled {name} job starting")
    try:
        result = await coro
    except Exception:
        logger.exception(f"Scheduled {name} job failed")
        return
    logger.info(f"Scheduled {name} job finished: {result.model_dump(by_alias=True)}")


async def scheduled_ingest_job():
    await _run_scheduled("ingest", run_ingest_stage())


async def scheduled_extract_job():
    await _run_scheduled("extract", run_extract_stage())


async def scheduled_embed_job():
    await _run_scheduled("embed", run_embed_stage())


async def scheduled_cleanup_job():
    await _run_scheduled("cleanup", run_cleanup_stage())


def get_job_schedule() -> list[tuple]:
    """(job function, job id, cron expression) for every pipeline stage."""
    return [
        (scheduled_ingest_job, "ingest", settings.ingest_cron),
        (scheduled_extract_job, "extract", settings.extract_cron),
        (scheduled_embed_job, "embed", settings.embed_cron),
        (scheduled_cleanup_job, "cleanup", settings.cleanup_cron),
    ]


def setup_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the APScheduler.

    Configures:
    - One cron job per stage (expressions from settings, UTC)
    - Job store in memory (stateless)
    - max_instances=1 so a slow run never overlaps itself
    """
    global scheduler

    scheduler = AsyncIOScheduler(
        timezone="UTC",
        job_defaults={
            "coalesce": True,  # Collapse missed runs into one
            "max_instances": 1,
            "misfire_grace_time": 300,
        }
    )

    for func, job_id, cron in get_job_schedule():
        scheduler.add_job(
            func,
            trigger=CronTrigger.from_crontab(cron, timezone="UTC"),
            id=job_id,
            name=f"Deal pipeline {job_id} ({cron})",
            replace_existing=True,
        )

    scheduler.start()
    logger.info("Scheduler started")

    for job in scheduler.get_jobs():
        logger.info(f"Scheduled job: {job.id} - next run: {job.next_run_time}")

    return scheduler


def shutdown_scheduler():
    """Shutdown the scheduler without waiting for running jobs."""
    global scheduler
    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shutdown complete")
        scheduler = None
