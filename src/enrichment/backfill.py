"""
Embedding Backfill - attach vectors to deals that do not have one yet.

Targets deals with no embedding AND both professional_summary and
other_important_stuff present. A failure on one deal is counted and the batch
continues; the deal stays eligible for the next run.
"""

import logging
from typing import List, Optional, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..archivist.storage import DealEmbeddingProjection, DealStore

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    async def embed(self, text: str) -> List[float]:
        ...


class EmbeddingBackfillResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    processed: int = 0
    failed: int = 0
    total_deals: int = 0


def compose_embedding_text(deal: DealEmbeddingProjection) -> str:
    """Title, summary and details, then the labelled metrics that are present."""
    parts: List[Optional[str]] = [
        deal.original_title,
        deal.professional_summary,
        deal.other_important_stuff,
    ]
    if deal.monthly_revenue:
        parts.append(f"Monthly Revenue: {deal.monthly_revenue}")
    if deal.asking_price:
        parts.append(f"Asking Price: {deal.asking_price}")
    if deal.user_count:
        parts.append(f"User Count: {deal.user_count}")
    return " ".join(p for p in parts if p)


async def run_embedding_backfill(
    store: DealStore,
    embedder: Embedder,
    batch_size: int = 3,
) -> EmbeddingBackfillResult:
    """
    Embed up to batch_size eligible deals.

    Args:
        store: Persistence gateway
        embedder: Embedding client (GeminiEmbeddingClient in production)
        batch_size: Maximum deals to embed in this run

    Returns:
        EmbeddingBackfillResult; total_deals is the size of the selected batch
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    deals = await store.deal_select_missing_embedding(batch_size)
    if not deals:
        logger.info("No deals without embeddings found")
        return EmbeddingBackfillResult(message="No deals without embeddings found")

    processed = 0
    failed = 0

    for deal in deals:
        try:
            vector = await embedder.embed(compose_embedding_text(deal))
            await store.deal_set_embedding(deal.id, vector)
            processed += 1
        except Exception as e:
            failed += 1
            logger.error(f"Failed to embed deal {deal.id}: {e}")

    logger.info(f"Embedding backfill: {processed} embedded, {failed} failed of {len(deals)}")
    return EmbeddingBackfillResult(
        message="Embedding processing completed",
        processed=processed,
        failed=failed,
        total_deals=len(deals),
    )
