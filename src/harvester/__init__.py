from .reddit_client import RedditClient, RedditPost, parse_listing
from .ingestion import run_ingestion, IngestionResult

__all__ = [
    "RedditClient",
    "RedditPost",
    "parse_listing",
    "run_ingestion",
    "IngestionResult",
]
