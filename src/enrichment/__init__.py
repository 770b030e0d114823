"""Deal enrichment: vector embeddings for semantic search."""

from .embeddings import GeminiEmbeddingClient
from .backfill import (
    run_embedding_backfill,
    compose_embedding_text,
    EmbeddingBackfillResult,
)

__all__ = [
    "GeminiEmbeddingClient",
    "run_embedding_backfill",
    "compose_embedding_text",
    "EmbeddingBackfillResult",
]
