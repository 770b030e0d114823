"""
Storage gateway for raw posts and promoted deals.

DealStore is the typed interface every stage depends on; SQLDealStore is the
SQLAlchemy implementation. There is no business logic here: dedup decisions,
validation and state transitions live in the stages.

Every mutating call commits on its own so a batch is durable record by record.
Unique-key conflicts are reported as a False return instead of an exception.
Any other database error rolls the session back before it propagates, so the
next record in a batch starts from a clean transaction.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Deal, RawDeal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DealEmbeddingProjection:
    """The Deal columns the embedding backfill needs."""
    id: int
    original_title: str
    professional_summary: Optional[str]
    other_important_stuff: Optional[str]
    monthly_revenue: Optional[str] = None
    asking_price: Optional[str] = None
    user_count: Optional[str] = None


class DealStore(ABC):
    """Persistence interface over the raw and structured deal stores."""

    # ----- Raw store -----

    @abstractmethod
    async def raw_exists(self, external_id: str) -> bool:
        ...

    @abstractmethod
    async def raw_insert(self, raw: RawDeal) -> bool:
        """Insert a raw post. Returns False if external_id already exists."""
        ...

    @abstractmethod
    async def raw_count_unprocessed(self) -> int:
        ...

    @abstractmethod
    async def raw_select_unprocessed(self, limit: int) -> List[RawDeal]:
        """Oldest unprocessed raw posts first (created_at, then id).

        Returned rows are detached snapshots: later commits or rollbacks in
        the same session never expire them.
        """
        ...

    @abstractmethod
    async def raw_mark_processed(self, external_id: str) -> None:
        ...

    @abstractmethod
    async def raw_count_processed(self) -> int:
        ...

    @abstractmethod
    async def raw_delete_processed(self) -> int:
        """Delete every processed raw post. Returns the number deleted."""
        ...

    @abstractmethod
    async def raw_count_all(self) -> int:
        ...

    # ----- Structured store -----

    @abstractmethod
    async def deal_create(self, deal: Deal) -> bool:
        """Insert a deal. Returns False on a unique violation (already promoted)."""
        ...

    @abstractmethod
    async def deal_select_missing_embedding(self, limit: int) -> List[DealEmbeddingProjection]:
        """Deals with no embedding and both summary fields present, oldest first."""
        ...

    @abstractmethod
    async def deal_set_embedding(self, deal_id: int, vector: Sequence[float]) -> None:
        ...


class SQLDealStore(DealStore):
    """DealStore backed by an AsyncSession (PostgreSQL in production)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def raw_exists(self, external_id: str) -> bool:
        stmt = select(exists().where(RawDeal.external_id == external_id))
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def raw_insert(self, raw: RawDeal) -> bool:
        external_id = raw.external_id
        if not await self._add_and_commit(raw):
            logger.debug(f"Raw post {external_id} already stored, skipping")
            return False
        return True

    async def raw_count_unprocessed(self) -> int:
        return await self._count_raw(RawDeal.processed == False)  # noqa: E712

    async def raw_select_unprocessed(self, limit: int) -> List[RawDeal]:
        stmt = (
            select(RawDeal)
            .where(RawDeal.processed == False)  # noqa: E712
            .order_by(RawDeal.created_at.asc(), RawDeal.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        raws = list(result.scalars().all())
        for raw in raws:
            self.session.expunge(raw)
        return raws

    async def raw_mark_processed(self, external_id: str) -> None:
        stmt = (
            update(RawDeal)
            .where(RawDeal.external_id == external_id)
            .values(processed=True)
            .execution_options(synchronize_session=False)
        )
        await self._execute_write(stmt)

    async def raw_count_processed(self) -> int:
        return await self._count_raw(RawDeal.processed == True)  # noqa: E712

    async def raw_delete_processed(self) -> int:
        stmt = (
            delete(RawDeal)
            .where(RawDeal.processed == True)  # noqa: E712
            .execution_options(synchronize_session=False)
        )
        result = await self._execute_write(stmt)
        return result.rowcount or 0

    async def raw_count_all(self) -> int:
        return await self._count_raw(None)

    async def deal_create(self, deal: Deal) -> bool:
        return await self._add_and_commit(deal)

    async def deal_select_missing_embedding(self, limit: int) -> List[DealEmbeddingProjection]:
        stmt = (
            select(
                Deal.id,
                Deal.original_title,
                Deal.professional_summary,
                Deal.other_important_stuff,
                Deal.monthly_revenue,
                Deal.asking_price,
                Deal.user_count,
            )
            .where(
                Deal.embedding.is_(None),
                Deal.professional_summary.isnot(None),
                Deal.other_important_stuff.isnot(None),
            )
            .order_by(Deal.created_at.asc(), Deal.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [
            DealEmbeddingProjection(
                id=row.id,
                original_title=row.original_title,
                professional_summary=row.professional_summary,
                other_important_stuff=row.other_important_stuff,
                monthly_revenue=row.monthly_revenue,
                asking_price=row.asking_price,
                user_count=row.user_count,
            )
            for row in result.fetchall()
        ]

    async def deal_set_embedding(self, deal_id: int, vector: Sequence[float]) -> None:
        # Guarded on IS NULL so a vector is never overwritten
        stmt = (
            update(Deal)
            .where(Deal.id == deal_id, Deal.embedding.is_(None))
            .values(embedding=list(vector))
            .execution_options(synchronize_session=False)
        )
        await self._execute_write(stmt)

    async def _add_and_commit(self, row) -> bool:
        """Insert one row. False on a unique violation; other errors roll back and raise."""
        self.session.add(row)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return False
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        return True

    async def _execute_write(self, stmt):
        """Execute and commit one DML statement, rolling back on failure."""
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        return result

    async def _count_raw(self, condition) -> int:
        stmt = select(func.count()).select_from(RawDeal)
        if condition is not None:
            stmt = stmt.where(condition)
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)
