"""
Ingestion Stage - pull top posts from every configured source into the raw store.

For each source:
1. Fetch up to page_size top posts for the configured period
2. Skip posts with an empty/whitespace body (no business signal)
3. Skip posts already in the raw store (dedup on external_id)
4. Insert the rest as unprocessed RawDeals

A failing source is logged and skipped; the others still run.
"""

import logging
from typing import List

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..archivist.models import RawDeal
from ..archivist.storage import DealStore
from ..common.errors import SourceFetchError
from ..config.pipeline import PipelineConfig
from .reddit_client import RedditClient, RedditPost

logger = logging.getLogger(__name__)


class IngestionResult(BaseModel):
    """Summary returned to the trigger dispatcher."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = "Fetched posts"
    new_post_ids: List[str] = []


def has_body_text(post: RedditPost) -> bool:
    """Posts without selftext carry no business details to extract."""
    return bool(post.body_text and post.body_text.strip())


def to_raw_deal(post: RedditPost, source: str) -> RawDeal:
    """Build an unprocessed RawDeal from a fetched post."""
    return RawDeal(
        external_id=post.external_id,
        title=post.title,
        body_text=post.body_text,
        url=post.permalink_url,
        score=post.score,
        source=source,
        images=list(post.images),
        processed=False,
    )


async def run_ingestion(
    store: DealStore,
    client: RedditClient,
    config: PipelineConfig,
) -> IngestionResult:
    """
    Fetch every configured source and store new posts.

    Returns:
        IngestionResult with the external ids inserted by this run
    """
    new_post_ids: List[str] = []

    for source in config.sources:
        try:
            posts = await client.fetch_top(source, limit=config.page_size, period=config.period)
        except SourceFetchError as e:
            logger.warning(f"Skipping r/{source}: {e}")
            continue
        except httpx.TransportError as e:
            logger.warning(f"Skipping r/{source}: transport error {e}")
            continue

        inserted = 0
        for post in posts:
            if not has_body_text(post):
                continue

            if await store.raw_exists(post.external_id):
                continue

            if await store.raw_insert(to_raw_deal(post, source)):
                new_post_ids.append(post.external_id)
                inserted += 1

        logger.info(f"r/{source}: {len(posts)} posts fetched, {inserted} new")

    logger.info(f"Ingestion: fetched {len(new_post_ids)} new posts")
    return IngestionResult(message="Fetched posts", new_post_ids=new_post_ids)
