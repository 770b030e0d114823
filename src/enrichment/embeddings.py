"""
Embedding Client - Gemini embedContent for deal semantic search.

Mirrors analyst.extractor.GeminiExtractor: one shared httpx client, the same
bounded retry policy, and settings-driven model + API key. Unlike extraction,
failures raise EmbeddingError so the backfill stage can count them per deal.
"""

import logging
from typing import List, Optional

import httpx

from ..common.errors import EmbeddingError, RetryExhaustedError
from ..common.http_client import create_api_client
from ..common.retry import RetryPolicy, Sleep, call_with_retry, default_retry_policy
from ..config.settings import settings

logger = logging.getLogger(__name__)


def build_embed_payload(model: str, text: str) -> dict:
    """Request body for embedContent."""
    return {
        "model": f"models/{model}",
        "content": {"parts": [{"text": text}]},
    }


class GeminiEmbeddingClient:
    """
    Async Gemini client producing fixed-dimension text embeddings.

    Usage:
        async with GeminiEmbeddingClient() as embedder:
            vector = await embedder.embed("SaaS for sale ...")
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.embedding_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.dimensions = dimensions or settings.embedding_dimensions
        self.retry_policy = retry_policy or default_retry_policy()
        self._sleep = sleep
        self._client = client
        self._owns_client = client is None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:embedContent"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = create_api_client()
            self._owns_client = True
        return self._client

    async def close(self):
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def embed(self, text: str) -> List[float]:
        """
        Embed one text.

        Raises:
            EmbeddingError: Missing key, failed call, or a malformed/mis-sized vector
        """
        if not self.api_key:
            raise EmbeddingError("GEMINI_API_KEY not configured")

        payload = build_embed_payload(self.model, text)
        client = await self._get_client()

        async def send() -> httpx.Response:
            return await client.post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
            )

        try:
            response = await call_with_retry(send, self.retry_policy, sleep=self._sleep)
        except RetryExhaustedError as e:
            raise EmbeddingError(f"Embedding API rate limited: {e}") from e
        except httpx.TransportError as e:
            raise EmbeddingError(f"Embedding API transport error: {e}") from e

        if not response.is_success:
            raise EmbeddingError(
                f"Embedding API request failed with status {response.status_code}: "
                f"{response.text[:200]}"
            )

        try:
            values = response.json()["embedding"]["values"]
        except (ValueError, KeyError, TypeError) as e:
            raise EmbeddingError(f"Malformed embedding response: {e}") from e

        if not isinstance(values, list) or not all(isinstance(v, (int, float)) for v in values):
            raise EmbeddingError("Embedding values are not a list of numbers")

        if len(values) != self.dimensions:
            raise EmbeddingError(
                f"Expected {self.dimensions}-dimensional embedding, got {len(values)}"
            )

        return [float(v) for v in values]
