"""
Extraction Stage - turn unprocessed raw posts into Deals.

Per raw post:  UNPROCESSED -> PROCESSED (one way, exactly once)

1. Early exit when nothing is unprocessed (no AI round trip)
2. Select the oldest batch_size unprocessed posts
3. Extract with Gemini, then run the validation gate
4. Valid -> create the Deal snapshot; Invalid -> record the skip reason
5. Mark the raw post processed either way (skips are never retried)

Deal creation and the processed flag are separate commits. If a run dies
between the two, the next run re-extracts the post and the unique violation on
deals.external_id is treated as the earlier promotion having succeeded.
"""

import logging
from typing import Any, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..archivist.models import Deal, RawDeal
from ..archivist.storage import DealStore
from .schemas import ExtractedFields, InvalidExtraction, ValidExtraction, validate_extraction

logger = logging.getLogger(__name__)


class Extractor(Protocol):
    async def extract(self, title: str, body_text: Optional[str]) -> Optional[Any]:
        ...


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractionSummary(_CamelModel):
    total_processed: int = 0
    successfully_saved: int = 0
    skipped: int = 0


class ProcessedDeal(_CamelModel):
    external_id: str
    title: str
    ai_processed_data: Any = None


class SkippedDeal(_CamelModel):
    external_id: str
    title: str
    reason: str
    ai_result: Any = None


class ExtractionResult(_CamelModel):
    """Summary returned to the trigger dispatcher."""
    message: str
    summary: ExtractionSummary = Field(default_factory=ExtractionSummary)
    processed_deals: List[ProcessedDeal] = []
    skipped_deals: List[SkippedDeal] = []


def build_deal(raw: RawDeal, fields: ExtractedFields) -> Deal:
    """Snapshot the raw post plus AI fields into a new Deal."""
    return Deal(
        external_id=raw.external_id,
        original_title=raw.title,
        url=raw.url,
        score=raw.score,
        source=raw.source,
        images=list(raw.images or []),
        is_sale=fields.is_sale if fields.is_sale is not None else False,
        low_quality=fields.low_quality if fields.low_quality is not None else False,
        professional_summary=fields.professional_summary,
        monthly_revenue=fields.monthly_revenue,
        asking_price=fields.asking_price,
        user_count=fields.user_count,
        link=list(fields.link) if fields.link is not None else [],
        other_important_stuff=fields.other_important_stuff,
    )


async def run_extraction(
    store: DealStore,
    extractor: Extractor,
    batch_size: int,
) -> ExtractionResult:
    """
    Process up to batch_size unprocessed raw posts.

    Args:
        store: Persistence gateway
        extractor: AI extraction client (GeminiExtractor in production)
        batch_size: Maximum raw posts to consume in this run

    Returns:
        ExtractionResult with counts, promoted deals and skipped deals
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    unprocessed_count = await store.raw_count_unprocessed()
    if unprocessed_count == 0:
        logger.info("No unprocessed deals found, exiting early")
        return ExtractionResult(message="No unprocessed deals found")

    raws = await store.raw_select_unprocessed(batch_size)
    logger.info(f"Found {unprocessed_count} unprocessed deals, processing {len(raws)}")

    processed_deals: List[ProcessedDeal] = []
    skipped_deals: List[SkippedDeal] = []

    for raw in raws:
        payload = await extractor.extract(raw.title, raw.body_text)
        outcome = validate_extraction(payload)

        if isinstance(outcome, ValidExtraction):
            created = await store.deal_create(build_deal(raw, outcome.fields))
            if not created:
                logger.warning(
                    f"Deal {raw.external_id} already exists, treating as previously promoted"
                )
            processed_deals.append(ProcessedDeal(
                external_id=raw.external_id,
                title=raw.title,
                ai_processed_data=payload,
            ))
        elif isinstance(outcome, InvalidExtraction):
            logger.info(f"Skipping {raw.external_id}: {outcome.reason}")
            skipped_deals.append(SkippedDeal(
                external_id=raw.external_id,
                title=raw.title,
                reason=outcome.reason,
                ai_result=payload,
            ))

        await store.raw_mark_processed(raw.external_id)

    logger.info(f"Processed {len(processed_deals)}/{len(raws)} deals successfully")
    return ExtractionResult(
        message="Processing batch completed",
        summary=ExtractionSummary(
            total_processed=len(raws),
            successfully_saved=len(processed_deals),
            skipped=len(skipped_deals),
        ),
        processed_deals=processed_deals,
        skipped_deals=skipped_deals,
    )
