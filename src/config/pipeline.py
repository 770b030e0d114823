"""
Pipeline Configuration - explicit per-invocation settings for the deal stages.

Stages never read module-level state for sources or batch sizes; callers build a
PipelineConfig (usually via get_pipeline_config()) and pass it in.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .settings import Settings, settings as default_settings


@dataclass(frozen=True)
class PipelineConfig:
    """Sources and batch sizes for one pipeline invocation."""
    sources: List[str] = field(default_factory=list)
    page_size: int = 10
    period: str = "day"

    extraction_batch_size: int = 2
    extraction_on_demand_batch_size: int = 3
    embedding_batch_size: int = 3

    def __post_init__(self):
        for name in (
            "page_size",
            "extraction_batch_size",
            "extraction_on_demand_batch_size",
            "embedding_batch_size",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")


def get_pipeline_config(settings: Optional[Settings] = None) -> PipelineConfig:
    """Build a PipelineConfig from application settings."""
    s = settings or default_settings
    return PipelineConfig(
        sources=s.source_names,
        page_size=s.reddit_page_size,
        period=s.reddit_period,
        extraction_batch_size=s.extraction_batch_size,
        extraction_on_demand_batch_size=s.extraction_on_demand_batch_size,
        embedding_batch_size=s.embedding_batch_size,
    )
