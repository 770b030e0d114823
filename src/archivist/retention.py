"""
Retention sweep - delete raw posts the extraction stage has already consumed.

Full sweep with no batch limit: a processed raw post is never read again, and
an unbounded raw table is the failure mode this prevents. Unprocessed rows are
never touched.
"""

import logging

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .storage import DealStore

logger = logging.getLogger(__name__)


class RetentionResult(BaseModel):
    """Summary returned to the trigger dispatcher."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    deleted_count: int = 0
    remaining_raw_count: int = 0


async def run_retention(store: DealStore) -> RetentionResult:
    """Delete every processed RawDeal and report what is left."""
    processed_count = await store.raw_count_processed()

    if processed_count == 0:
        remaining = await store.raw_count_all()
        logger.info(f"Cleanup: no processed raw deals to delete ({remaining} raw deals pending)")
        return RetentionResult(
            message="No processed raw deals to clean up",
            deleted_count=0,
            remaining_raw_count=remaining,
        )

    deleted = await store.raw_delete_processed()
    remaining = await store.raw_count_all()

    logger.info(f"Cleanup: deleted {deleted} processed raw deals, {remaining} remaining")
    return RetentionResult(
        message="Cleanup completed successfully",
        deleted_count=deleted,
        remaining_raw_count=remaining,
    )
