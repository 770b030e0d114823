"""
Pipeline exception types.

Only failures the stages cannot model as data are raised. Extraction skips are
outcomes (see analyst.schemas), not exceptions.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for deal pipeline errors."""
    pass


class SourceFetchError(PipelineError):
    """Raised when a content source returns a non-success response."""

    def __init__(self, source: str, status_code: int, message: str = ""):
        self.source = source
        self.status_code = status_code
        super().__init__(message or f"Fetching r/{source} failed with HTTP {status_code}")


class RetryExhaustedError(PipelineError):
    """Raised when every attempt of a retried call was rate limited."""

    def __init__(self, attempts: int, last_status: Optional[int] = None):
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(f"Max retries exceeded after {attempts} attempts (last status: {last_status})")


class EmbeddingError(PipelineError):
    """Raised when the embedding service fails or returns a malformed vector."""
    pass
