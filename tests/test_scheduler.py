"""
Tests for scheduler job wiring.
"""

import logging
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.triggers.cron import CronTrigger

from src.analyst.processor import ExtractionResult
from src.config.pipeline import PipelineConfig
from src.harvester.ingestion import IngestionResult
from src.scheduler import jobs


class TestJobSchedule:

    def test_every_stage_scheduled(self):
        ids = [job_id for _, job_id, _ in jobs.get_job_schedule()]
        assert ids == ["ingest", "extract", "embed", "cleanup"]

    def test_cron_expressions_parse(self):
        for _, job_id, cron in jobs.get_job_schedule():
            trigger = CronTrigger.from_crontab(cron, timezone="UTC")
            assert trigger is not None, job_id


class TestRunScheduled:

    @pytest.mark.asyncio
    async def test_failure_logged_not_raised(self, caplog):
        async def boom():
            raise RuntimeError("stage exploded")

        with caplog.at_level(logging.ERROR, logger="src.scheduler.jobs"):
            await jobs._run_scheduled("extract", boom())

        assert "Scheduled extract job failed" in caplog.text

    @pytest.mark.asyncio
    async def test_success_logged(self, caplog):
        async def ok():
            return IngestionResult(new_post_ids=["a"])

        with caplog.at_level(logging.INFO, logger="src.scheduler.jobs"):
            await jobs._run_scheduled("ingest", ok())

        assert "Scheduled ingest job finished" in caplog.text
        assert "newPostIds" in caplog.text


@asynccontextmanager
async def fake_session():
    yield MagicMock()


class FakeExtractorClient:

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


class TestRunExtractStage:

    @pytest.mark.asyncio
    async def test_background_sweep_uses_extraction_batch_size(self):
        config = PipelineConfig(sources=["a"], extraction_batch_size=2, extraction_on_demand_batch_size=3)
        run = AsyncMock(return_value=ExtractionResult(message="No unprocessed deals found"))

        with patch.object(jobs, "get_pipeline_config", return_value=config), \
                patch.object(jobs, "get_session", fake_session), \
                patch.object(jobs, "GeminiExtractor", FakeExtractorClient), \
                patch.object(jobs, "run_extraction", run):
            await jobs.run_extract_stage()

        assert run.await_args.args[2] == 2

    @pytest.mark.asyncio
    async def test_explicit_batch_size_wins(self):
        config = PipelineConfig(sources=["a"])
        run = AsyncMock(return_value=ExtractionResult(message="No unprocessed deals found"))

        with patch.object(jobs, "get_pipeline_config", return_value=config), \
                patch.object(jobs, "get_session", fake_session), \
                patch.object(jobs, "GeminiExtractor", FakeExtractorClient), \
                patch.object(jobs, "run_extraction", run):
            await jobs.run_extract_stage(7)

        assert run.await_args.args[2] == 7
