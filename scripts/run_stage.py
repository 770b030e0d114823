#!/usr/bin/env python3
"""
Run one deal pipeline stage from the command line.

Useful for cron on a box without the API server, or for backfilling by hand.

USAGE:
    python scripts/run_stage.py ingest
    python scripts/run_stage.py extract --batch-size 10
    python scripts/run_stage.py embed
    python scripts/run_stage.py cleanup
    python scripts/run_stage.py init-db
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.archivist.database import close_db, init_db
from src.config.pipeline import get_pipeline_config
from src.scheduler.jobs import (
    run_cleanup_stage,
    run_embed_stage,
    run_extract_stage,
    run_ingest_stage,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main(stage: str, batch_size: int = None) -> int:
    try:
        if stage == "init-db":
            await init_db()
            logger.info("Database initialized")
            return 0

        if stage == "ingest":
            result = await run_ingest_stage()
        elif stage == "extract":
            result = await run_extract_stage(
                batch_size or get_pipeline_config().extraction_on_demand_batch_size
            )
        elif stage == "embed":
            result = await run_embed_stage(batch_size)
        else:
            result = await run_cleanup_stage()

        print(json.dumps(result.model_dump(by_alias=True), indent=2, default=str))
        return 0
    except Exception:
        logger.exception(f"Stage {stage} failed")
        return 1
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a deal pipeline stage")
    parser.add_argument("stage", choices=["ingest", "extract", "embed", "cleanup", "init-db"])
    parser.add_argument("--batch-size", type=int, default=None, help="Override batch size (extract/embed)")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.stage, args.batch_size)))
