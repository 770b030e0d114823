"""
Shared HTTP Client Configuration.

Provides standardized HTTP client creation and User-Agent strings for the
content source and AI clients.

Usage:
    from src.common.http_client import create_source_client, create_api_client

    # Reddit requires an identifying User-Agent
    client = create_source_client()

    # JSON APIs (Gemini)
    client = create_api_client(timeout=settings.llm_timeout)
"""

import httpx
from typing import Optional

from ..config.settings import settings


# =============================================================================
# User-Agent Constants
# =============================================================================

# Bot identifier - Reddit throttles anonymous/default User-Agents aggressively
USER_AGENT_BOT = "DealScout/1.0 (deal-worker; micro-SaaS acquisition research)"


# =============================================================================
# HTTP Client Factory
# =============================================================================

def create_source_client(
    user_agent: str = USER_AGENT_BOT,
    timeout: Optional[float] = None,
    max_connections: int = 10,
    max_keepalive: int = 5,
    extra_headers: Optional[dict] = None,
) -> httpx.AsyncClient:
    """
    Create a standardized async HTTP client for content sources.

    Args:
        user_agent: User-Agent string
        timeout: Request timeout in seconds (default: settings.request_timeout)
        max_connections: Maximum concurrent connections
        max_keepalive: Maximum keepalive connections
        extra_headers: Additional headers to include

    Returns:
        Configured httpx.AsyncClient
    """
    headers = {"User-Agent": user_agent, "Accept": "application/json"}
    if extra_headers:
        headers.update(extra_headers)

    return httpx.AsyncClient(
        timeout=timeout or settings.request_timeout,
        headers=headers,
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive,
        ),
        follow_redirects=True,
    )


def create_api_client(
    timeout: Optional[float] = None,
    connect_timeout: Optional[float] = None,
) -> httpx.AsyncClient:
    """
    Create a client for JSON APIs (Gemini generateContent / embedContent).

    Args:
        timeout: Total timeout in seconds (default: settings.llm_timeout)
        connect_timeout: Connection timeout (default: settings.llm_connect_timeout)
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            timeout or settings.llm_timeout,
            connect=connect_timeout or settings.llm_connect_timeout,
        ),
        headers={"Content-Type": "application/json"},
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
    )
