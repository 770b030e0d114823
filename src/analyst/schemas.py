"""
Schemas for deal extraction with Gemini structured output.

EXTRACTION_RESPONSE_SCHEMA is sent as the responseSchema so Gemini returns
schema-conformant JSON. The parsed payload is then classified into a closed
variant (ValidExtraction | InvalidExtraction) before any field is used.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


# Order matters: Gemini emits properties in propertyOrdering order
EXTRACTION_FIELDS = [
    "isSale",
    "lowQuality",
    "professionalSummary",
    "monthlyRevenue",
    "askingPrice",
    "userCount",
    "link",
    "otherImportantStuff",
]

EXTRACTION_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "isSale": {"type": "BOOLEAN"},
        "lowQuality": {"type": "BOOLEAN"},
        "professionalSummary": {"type": "STRING"},
        "monthlyRevenue": {"type": "STRING"},
        "askingPrice": {"type": "STRING"},
        "userCount": {"type": "STRING"},
        "link": {"type": "ARRAY", "items": {"type": "STRING"}},
        "otherImportantStuff": {"type": "STRING"},
    },
    "propertyOrdering": EXTRACTION_FIELDS,
}


# Skip reasons (reported back to the caller verbatim)
REASON_AI_FAILED = "AI processing failed"
REASON_MISSING_SUMMARY = "Missing professional summary"
REASON_MISSING_OTHER = "Missing other important stuff"
REASON_INVALID_RESULT = "Invalid AI result"


class ExtractedFields(BaseModel):
    """Business details extracted from a single post."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_sale: Optional[bool] = None
    low_quality: Optional[bool] = None
    professional_summary: str
    monthly_revenue: Optional[str] = None
    asking_price: Optional[str] = None
    user_count: Optional[str] = None
    link: Optional[List[str]] = None
    other_important_stuff: str


@dataclass(frozen=True)
class ValidExtraction:
    """Extraction passed the validation gate and can be promoted."""
    fields: ExtractedFields


@dataclass(frozen=True)
class InvalidExtraction:
    """Extraction failed the validation gate; the post is skipped."""
    reason: str


ExtractionOutcome = Union[ValidExtraction, InvalidExtraction]


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def validate_extraction(payload: Any) -> ExtractionOutcome:
    """
    Classify a parsed AI payload.

    Reason precedence:
    1. No payload -> "AI processing failed"
    2. professionalSummary missing/blank -> "Missing professional summary"
    3. otherImportantStuff missing/blank -> "Missing other important stuff"
    4. isSale absent, non-object payload or wrong field types -> "Invalid AI result"
    """
    if payload is None:
        return InvalidExtraction(REASON_AI_FAILED)

    if not isinstance(payload, dict):
        return InvalidExtraction(REASON_INVALID_RESULT)

    if _is_blank(payload.get("professionalSummary")):
        return InvalidExtraction(REASON_MISSING_SUMMARY)

    if _is_blank(payload.get("otherImportantStuff")):
        return InvalidExtraction(REASON_MISSING_OTHER)

    # Absent key is invalid; an explicit null falls back to the False default
    if "isSale" not in payload:
        return InvalidExtraction(REASON_INVALID_RESULT)

    try:
        fields = ExtractedFields.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"AI result failed schema validation: {e.error_count()} errors")
        return InvalidExtraction(REASON_INVALID_RESULT)

    return ValidExtraction(fields)
