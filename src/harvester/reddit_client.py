"""
Reddit Client - Pull top-ranked posts from the business-for-sale subreddits.

Uses Reddit's public JSON listing endpoint:
    https://www.reddit.com/r/{subreddit}/top.json?t=day&limit=10

No retry here: listing calls are idempotent and the next scheduled run
picks up anything missed.
"""

import html
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from ..common.errors import SourceFetchError
from ..common.http_client import create_source_client
from ..config.settings import settings

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")
IMAGE_HOSTS = ("i.redd.it", "i.imgur.com")


@dataclass
class RedditPost:
    """A single post from a subreddit listing."""
    external_id: str
    title: str
    body_text: str
    permalink_url: str
    score: int = 0
    images: List[str] = field(default_factory=list)


def _extract_images(data: Dict[str, Any]) -> List[str]:
    """Collect image URLs from preview, gallery metadata and direct image links."""
    images: List[str] = []

    for image in (data.get("preview") or {}).get("images") or []:
        url = (image.get("source") or {}).get("url")
        if url:
            images.append(html.unescape(url))

    # Galleries: media_metadata keyed by media id, full size under "s.u"
    for media in (data.get("media_metadata") or {}).values():
        if not isinstance(media, dict) or media.get("e") != "Image":
            continue
        url = (media.get("s") or {}).get("u")
        if url:
            images.append(html.unescape(url))

    direct = data.get("url_overridden_by_dest") or data.get("url") or ""
    lowered = direct.lower()
    if any(host in lowered for host in IMAGE_HOSTS) or lowered.endswith(IMAGE_EXTENSIONS):
        images.append(direct)

    # Preserve order, drop duplicates
    return list(dict.fromkeys(images))


def parse_listing(payload: Dict[str, Any]) -> List[RedditPost]:
    """Convert a Reddit listing JSON document into RedditPost objects."""
    posts: List[RedditPost] = []
    children = ((payload or {}).get("data") or {}).get("children") or []

    for child in children:
        data = child.get("data") or {}
        post_id = data.get("id")
        if not post_id:
            continue
        posts.append(RedditPost(
            external_id=post_id,
            title=data.get("title") or "",
            body_text=data.get("selftext") or "",
            permalink_url=f"https://reddit.com{data.get('permalink', '')}",
            score=data.get("score") or 0,
            images=_extract_images(data),
        ))

    return posts


class RedditClient:
    """
    Async client for subreddit top listings.

    Usage:
        async with RedditClient() as reddit:
            posts = await reddit.fetch_top("acquiresaas", limit=10, period="day")
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
    ):
        self.base_url = (base_url or settings.reddit_base_url).rstrip("/")
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = create_source_client()
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

    async def fetch_top(self, source: str, limit: int = 10, period: str = "day") -> List[RedditPost]:
        """
        Fetch the top posts of a subreddit for the given period.

        Args:
            source: Subreddit name (without the r/ prefix)
            limit: Maximum number of posts
            period: Reddit time filter (hour, day, week, month, year, all)

        Returns:
            Parsed posts, in listing order

        Raises:
            SourceFetchError: Reddit returned a non-success status
            httpx.TransportError: Connection-level failure
        """
        client = await self._get_client()
        url = f"{self.base_url}/r/{source}/top.json"
        response = await client.get(url, params={"t": period, "limit": limit})

        if not response.is_success:
            raise SourceFetchError(source, response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise SourceFetchError(source, response.status_code, f"r/{source} returned invalid JSON: {e}") from e

        posts = parse_listing(payload)
        logger.debug(f"Fetched {len(posts)} posts from r/{source}")
        return posts
