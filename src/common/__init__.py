"""
Common utilities and shared modules.
"""

from .errors import (
    PipelineError,
    SourceFetchError,
    RetryExhaustedError,
    EmbeddingError,
)

from .http_client import (
    create_source_client,
    create_api_client,
    USER_AGENT_BOT,
)

from .retry import (
    RetryPolicy,
    call_with_retry,
    linear_backoff,
    default_retry_policy,
)

__all__ = [
    # Errors
    "PipelineError",
    "SourceFetchError",
    "RetryExhaustedError",
    "EmbeddingError",
    # HTTP client utilities
    "create_source_client",
    "create_api_client",
    "USER_AGENT_BOT",
    # Retry
    "RetryPolicy",
    "call_with_retry",
    "linear_backoff",
    "default_retry_policy",
]
