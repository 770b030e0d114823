"""
Database models using SQLModel (SQLAlchemy + Pydantic).

Schema:
- RawDeal: An ingested, unvalidated post awaiting extraction
- Deal: A validated, AI-derived business-sale listing with an optional embedding
"""

from datetime import datetime, timezone
from typing import Optional, List
from sqlmodel import SQLModel, Field
from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, JSON, Text

from ..config.settings import settings


def utc_now_naive() -> datetime:
    """Return current UTC time as timezone-naive datetime.

    PostgreSQL TIMESTAMP WITHOUT TIME ZONE columns require naive datetimes.
    Using timezone-aware datetimes causes asyncpg DataError.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RawDeal(SQLModel, table=True):
    """A post pulled from a content source, not yet run through extraction.

    Everything except `processed` is immutable after insert. `processed` only
    ever moves False -> True (set by the extraction stage, success or skip).
    """
    __tablename__ = "raw_deals"

    id: Optional[int] = Field(default=None, primary_key=True)
    external_id: str = Field(unique=True, index=True, max_length=64)  # Reddit post id

    title: str
    body_text: str = Field(sa_column=Column(Text, nullable=False))
    url: str  # https://reddit.com{permalink}
    score: int = 0
    source: str = Field(index=True, max_length=100)  # Subreddit name
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    processed: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utc_now_naive, index=True)


class Deal(SQLModel, table=True):
    """A business-for-sale listing promoted from a RawDeal.

    Source fields are a snapshot taken at promotion time, not a live reference.
    """
    __tablename__ = "deals"

    id: Optional[int] = Field(default=None, primary_key=True)
    external_id: str = Field(unique=True, index=True, max_length=64)

    # Snapshot of the raw post
    original_title: str
    url: str
    score: int = 0
    source: str = Field(index=True, max_length=100)
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # AI classification
    is_sale: bool = Field(default=False, index=True)
    low_quality: bool = Field(default=False)

    # AI-extracted details (free-form strings: source text is inconsistent)
    professional_summary: Optional[str] = Field(default=None, sa_column=Column(Text))
    monthly_revenue: Optional[str] = None
    asking_price: Optional[str] = None
    user_count: Optional[str] = None
    link: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    other_important_stuff: Optional[str] = Field(default=None, sa_column=Column(Text))

    # Semantic search vector, written once by the embedding backfill
    embedding: Optional[List[float]] = Field(
        default=None,
        sa_column=Column(Vector(settings.embedding_dimensions))
    )

    created_at: datetime = Field(default_factory=utc_now_naive, index=True)
