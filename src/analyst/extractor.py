"""
Deal Extractor - Gemini structured extraction for business-for-sale posts.

Sends the post title and body to Gemini generateContent with a strict
responseSchema (see schemas.EXTRACTION_RESPONSE_SCHEMA) and returns the parsed
JSON object.

Every failure mode (transport error, non-success status, exhausted retries,
missing content part, unparseable JSON) is logged and returned as None. The
caller treats None as a skip, never as a fatal error.
"""

import json
import logging
from typing import Any, Optional

import httpx

from ..common.errors import RetryExhaustedError
from ..common.http_client import create_api_client
from ..common.retry import RetryPolicy, Sleep, call_with_retry, default_retry_policy
from ..config.settings import settings
from .schemas import EXTRACTION_RESPONSE_SCHEMA

logger = logging.getLogger(__name__)


PROMPT_TEMPLATE = """
Analyze the following Reddit post to extract key business details.

If the post is a listing for a sale or acquisition, set 'isSale' to true. Otherwise, set it to false.

If the post is missing a clear description, revenue figures, an asking price, and a user count, set 'lowQuality' to true. Otherwise, set it to false.

For links, return every URL mentioned in the content as an array of strings. If there are none, return an empty array.

Extract the following information and format it as a single JSON object.

Post Title: {title}
Post Content: {body}
"""


def build_extraction_prompt(title: str, body_text: Optional[str]) -> str:
    """Build the fixed extraction instruction for one post."""
    return PROMPT_TEMPLATE.format(title=title, body=body_text or "")


def build_generate_payload(prompt: str) -> dict:
    """Request body for generateContent with JSON mode + response schema."""
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": EXTRACTION_RESPONSE_SCHEMA,
        },
    }


def extract_response_text(result: Any) -> Optional[str]:
    """Pull candidates[0].content.parts[0].text out of a generateContent response."""
    try:
        return result["candidates"][0]["content"]["parts"][0]["text"] or None
    except (KeyError, IndexError, TypeError):
        return None


class GeminiExtractor:
    """
    Async Gemini client for structured deal extraction.

    Usage:
        async with GeminiExtractor() as extractor:
            payload = await extractor.extract(title, body_text)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.llm_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.retry_policy = retry_policy or default_retry_policy()
        self._sleep = sleep
        self._client = client
        self._owns_client = client is None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = create_api_client()
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def extract(self, title: str, body_text: Optional[str]) -> Optional[Any]:
        """
        Extract business details from one post.

        Args:
            title: Post title
            body_text: Post selftext

        Returns:
            Parsed JSON value from Gemini, or None on any failure
        """
        if not self.api_key:
            logger.error("GEMINI_API_KEY not configured")
            return None

        payload = build_generate_payload(build_extraction_prompt(title, body_text))
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
            logger.error(f"Gemini API rate limited on every attempt: {e}")
            return None
        except httpx.TransportError as e:
            logger.error(f"Error during Gemini API call: {e}")
            return None

        if not response.is_success:
            logger.error(f"Gemini API request failed with status: {response.status_code}")
            logger.error(f"Error response: {response.text[:500]}")
            return None

        try:
            result = response.json()
        except ValueError as e:
            logger.error(f"Gemini API returned a non-JSON body: {e}")
            return None

        json_text = extract_response_text(result)
        if not json_text:
            logger.error(f"Gemini API response is missing content part: {json.dumps(result)[:500]}")
            return None

        try:
            return json.loads(json_text)
        except ValueError as e:
            logger.error(f"Could not parse Gemini JSON output: {e}")
            return None
