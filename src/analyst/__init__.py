from .schemas import (
    ExtractedFields,
    ValidExtraction,
    InvalidExtraction,
    validate_extraction,
    EXTRACTION_RESPONSE_SCHEMA,
)
from .extractor import (
    GeminiExtractor,
    build_extraction_prompt,
)
from .processor import (
    run_extraction,
    build_deal,
    ExtractionResult,
)

__all__ = [
    "ExtractedFields",
    "ValidExtraction",
    "InvalidExtraction",
    "validate_extraction",
    "EXTRACTION_RESPONSE_SCHEMA",
    "GeminiExtractor",
    "build_extraction_prompt",
    "run_extraction",
    "build_deal",
    "ExtractionResult",
]
