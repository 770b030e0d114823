"""Database models and storage utilities."""

from .models import RawDeal, Deal
from .database import get_session, init_db, close_db
from .storage import DealStore, SQLDealStore, DealEmbeddingProjection
from .retention import run_retention, RetentionResult

__all__ = [
    "RawDeal",
    "Deal",
    "get_session",
    "init_db",
    "close_db",
    "DealStore",
    "SQLDealStore",
    "DealEmbeddingProjection",
    "run_retention",
    "RetentionResult",
]
