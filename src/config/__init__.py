from .pipeline import PipelineConfig, get_pipeline_config
from .settings import settings

__all__ = ["PipelineConfig", "settings", "get_pipeline_config"]
