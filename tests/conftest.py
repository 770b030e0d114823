"""
Pytest fixtures for test infrastructure.

This module is automatically loaded by pytest and provides shared fixtures.
For skip markers and helper functions, see test_helpers.py.
"""

import itertools
from datetime import datetime, timedelta
from typing import Dict, List, Sequence

import pytest

from src.archivist.models import Deal, RawDeal
from src.archivist.storage import DealEmbeddingProjection, DealStore
from src.config.pipeline import PipelineConfig


# =============================================================================
# In-memory store
# =============================================================================
class FakeDealStore(DealStore):
    """
    DealStore kept in dicts, with the same contract as SQLDealStore.

    Records every call in `calls` so tests can assert on interaction order.
    """

    def __init__(self):
        self.raw: Dict[str, RawDeal] = {}
        self.deals: Dict[str, Deal] = {}
        self.calls: List[tuple] = []
        self._ids = itertools.count(1)
        self._clock = datetime(2026, 1, 1)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def add_raw(self, external_id: str, title: str = "A post", body_text: str = "Body", **kwargs) -> RawDeal:
        """Seed a raw post directly, bypassing call tracking."""
        raw = RawDeal(
            id=next(self._ids),
            external_id=external_id,
            title=title,
            body_text=body_text,
            url=kwargs.pop("url", f"https://reddit.com/r/test/comments/{external_id}/"),
            source=kwargs.pop("source", "acquiresaas"),
            created_at=kwargs.pop("created_at", self._tick()),
            **kwargs,
        )
        self.raw[external_id] = raw
        return raw

    def add_deal(self, external_id: str, **kwargs) -> Deal:
        deal = Deal(
            id=next(self._ids),
            external_id=external_id,
            original_title=kwargs.pop("original_title", f"Deal {external_id}"),
            url=kwargs.pop("url", f"https://reddit.com/r/test/comments/{external_id}/"),
            source=kwargs.pop("source", "acquiresaas"),
            created_at=kwargs.pop("created_at", self._tick()),
            **kwargs,
        )
        self.deals[external_id] = deal
        return deal

    # ----- Raw store -----

    async def raw_exists(self, external_id: str) -> bool:
        self.calls.append(("raw_exists", external_id))
        return external_id in self.raw

    async def raw_insert(self, raw: RawDeal) -> bool:
        self.calls.append(("raw_insert", raw.external_id))
        if raw.external_id in self.raw:
            return False
        raw.id = next(self._ids)
        raw.created_at = self._tick()
        self.raw[raw.external_id] = raw
        return True

    async def raw_count_unprocessed(self) -> int:
        self.calls.append(("raw_count_unprocessed",))
        return sum(1 for r in self.raw.values() if not r.processed)

    async def raw_select_unprocessed(self, limit: int) -> List[RawDeal]:
        self.calls.append(("raw_select_unprocessed", limit))
        pending = [r for r in self.raw.values() if not r.processed]
        pending.sort(key=lambda r: (r.created_at, r.id))
        return pending[:limit]

    async def raw_mark_processed(self, external_id: str) -> None:
        self.calls.append(("raw_mark_processed", external_id))
        if external_id in self.raw:
            self.raw[external_id].processed = True

    async def raw_count_processed(self) -> int:
        self.calls.append(("raw_count_processed",))
        return sum(1 for r in self.raw.values() if r.processed)

    async def raw_delete_processed(self) -> int:
        self.calls.append(("raw_delete_processed",))
        doomed = [k for k, r in self.raw.items() if r.processed]
        for key in doomed:
            del self.raw[key]
        return len(doomed)

    async def raw_count_all(self) -> int:
        self.calls.append(("raw_count_all",))
        return len(self.raw)

    # ----- Structured store -----

    async def deal_create(self, deal: Deal) -> bool:
        self.calls.append(("deal_create", deal.external_id))
        if deal.external_id in self.deals:
            return False
        deal.id = next(self._ids)
        deal.created_at = self._tick()
        self.deals[deal.external_id] = deal
        return True

    async def deal_select_missing_embedding(self, limit: int) -> List[DealEmbeddingProjection]:
        self.calls.append(("deal_select_missing_embedding", limit))
        eligible = [
            d for d in self.deals.values()
            if d.embedding is None
            and d.professional_summary is not None
            and d.other_important_stuff is not None
        ]
        eligible.sort(key=lambda d: (d.created_at, d.id))
        return [
            DealEmbeddingProjection(
                id=d.id,
                original_title=d.original_title,
                professional_summary=d.professional_summary,
                other_important_stuff=d.other_important_stuff,
                monthly_revenue=d.monthly_revenue,
                asking_price=d.asking_price,
                user_count=d.user_count,
            )
            for d in eligible[:limit]
        ]

    async def deal_set_embedding(self, deal_id: int, vector: Sequence[float]) -> None:
        self.calls.append(("deal_set_embedding", deal_id))
        for deal in self.deals.values():
            if deal.id == deal_id and deal.embedding is None:
                deal.embedding = list(vector)


# =============================================================================
# Shared fixtures
# =============================================================================
@pytest.fixture
def store():
    return FakeDealStore()


@pytest.fixture
def pipeline_config():
    return PipelineConfig(sources=["acquiresaas", "microacquisitions"], page_size=10, period="day")


@pytest.fixture
def valid_payload():
    """A Gemini extraction payload that passes the validation gate."""
    return {
        "isSale": True,
        "lowQuality": False,
        "professionalSummary": "Profitable B2B SaaS for invoice automation.",
        "monthlyRevenue": "$4,500 MRR",
        "askingPrice": "$120,000",
        "userCount": "320 paying customers",
        "link": ["https://example.com"],
        "otherImportantStuff": "Owner will stay on for a 30 day handover.",
    }


@pytest.fixture
def reddit_listing():
    """Minimal Reddit top.json listing with one text post and one link post."""
    return {
        "kind": "Listing",
        "data": {
            "children": [
                {
                    "kind": "t3",
                    "data": {
                        "id": "abc123",
                        "title": "Selling my SaaS",
                        "selftext": "MRR $2k, asking $40k",
                        "permalink": "/r/acquiresaas/comments/abc123/selling_my_saas/",
                        "score": 42,
                        "url": "https://www.reddit.com/r/acquiresaas/comments/abc123/selling_my_saas/",
                    },
                },
                {
                    "kind": "t3",
                    "data": {
                        "id": "def456",
                        "title": "Screenshot of my dashboard",
                        "selftext": "",
                        "permalink": "/r/acquiresaas/comments/def456/screenshot/",
                        "score": 7,
                        "url": "https://i.redd.it/xyz.png",
                    },
                },
            ]
        },
    }
