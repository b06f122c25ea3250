"""Extraction Result normalizer.

Validates the AI classifier's output before the rest of the API trusts it.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from app.models.document import DOCUMENT_CATEGORIES, EXTRACTED_FIELDS
from app.services.urgency import parse_candidate_date

logger = logging.getLogger(__name__)

CATEGORY_ALIASES = {
    "Housing": "Real Estate",
    "Property": "Real Estate",
    "Rent": "Real Estate",
    "Rental": "Real Estate",
    "Finance": "Banking",
    "Bank": "Banking",
    "Government": "Tax",
    "Medical": "Healthcare",
    "Health": "Healthcare",
    "Work": "Employment",
    "Job": "Employment",
    "School": "Education",
    "University": "Education",
    "Utility": "Utilities",
    "Transportation": "Travel",
}

# Filename hints used when the classifier output cannot be parsed at all
FILENAME_CATEGORY_HINTS = [
    ("Real Estate", ["sublet", "untermiete", "mietvertrag", "rent"]),
    ("Banking", ["bank", "konto"]),
    ("Tax", ["steuer", "tax"]),
    ("Healthcare", ["arzt", "kranken", "medical"]),
    ("Insurance", ["versicherung", "insurance"]),
    ("Employment", ["arbeit", "employment"]),
]

_FENCE_PATTERN = re.compile(r"^`{1,3}(?:json)?\s*|\s*`{1,3}$", re.IGNORECASE)
_JSON_BLOCK_PATTERN = re.compile(r"\{[\s\S]*\}")
_AMOUNT_STRIP_PATTERN = re.compile(r"[€$£¥,\s]|EUR|USD|GBP|CHF", re.IGNORECASE)

# Widths of the columns the summary and reference id end up in
TITLE_MAX_LENGTH = 500
REFERENCE_ID_MAX_LENGTH = 255


class ExtractionNormalizer:
    """Normalize classifier results into the stored extraction contract."""

    @staticmethod
    def normalize(raw: Any, filename: str = "") -> Dict[str, Any]:
        """
        Normalize a classifier result.

        Args:
            raw: Parsed result dict, or the raw model response text
            filename: Original file name, used for the fallback result

        Returns:
            Dict with category, summary, content, extracted_data,
            urgency_score and confidence_score
        """
        if isinstance(raw, str):
            parsed = ExtractionNormalizer.parse_response_text(raw)
            if parsed is None:
                logger.warning(f"Classifier response for '{filename}' is not JSON, using fallback result")
                return ExtractionNormalizer.fallback_result(filename)
            raw = parsed

        if not isinstance(raw, dict):
            return ExtractionNormalizer.fallback_result(filename)

        extracted = raw.get("extractedData")
        if extracted is None:
            extracted = raw.get("extracted_data")

        return {
            "category": ExtractionNormalizer.validate_category(raw.get("category")),
            "summary": _truncate(raw.get("summary"), TITLE_MAX_LENGTH) or _strip_extension(filename) or None,
            "content": raw.get("content") or "Document processed successfully",
            "extracted_data": ExtractionNormalizer.normalize_extracted_data(extracted),
            "urgency_score": _clamp_int(raw.get("urgency_score"), 1, 10, default=1),
            "confidence_score": _clamp_float(raw.get("confidence_score"), 0.0, 1.0, default=0.5),
        }

    @staticmethod
    def parse_response_text(text: str) -> Optional[Dict[str, Any]]:
        """Parse model output that may be wrapped in code fences or surrounded by prose."""
        content = _FENCE_PATTERN.sub("", text.strip())
        try:
            parsed = json.loads(content)
            return parsed if isinstance(parsed, dict) else None
        except ValueError:
            pass

        match = _JSON_BLOCK_PATTERN.search(content)
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except ValueError:
            return None
        return parsed if isinstance(parsed, dict) else None

    @staticmethod
    def normalize_extracted_data(extracted: Any) -> Dict[str, List[str]]:
        """Every contract field as a list of strings; missing or malformed fields become empty."""
        if not isinstance(extracted, dict):
            extracted = {}
        normalized = {}
        for field_name in EXTRACTED_FIELDS:
            values = extracted.get(field_name)
            if not isinstance(values, list):
                values = []
            normalized[field_name] = [v for v in values if isinstance(v, str)]
        return normalized

    @staticmethod
    def validate_category(category: Any) -> str:
        if not isinstance(category, str):
            return "Other"
        category = category.strip()
        if category in DOCUMENT_CATEGORIES:
            return category
        return CATEGORY_ALIASES.get(category, "Other")

    @staticmethod
    def guess_category(filename: str) -> str:
        lower = (filename or "").lower()
        for category, hints in FILENAME_CATEGORY_HINTS:
            if any(hint in lower for hint in hints):
                return category
        return "Other"

    @staticmethod
    def fallback_result(filename: str) -> Dict[str, Any]:
        category = ExtractionNormalizer.guess_category(filename)
        return {
            "category": category,
            "summary": _truncate(f"{category} Document: {_strip_extension(filename)}", TITLE_MAX_LENGTH),
            "content": "Unable to process document content",
            "extracted_data": ExtractionNormalizer.normalize_extracted_data({}),
            "urgency_score": 3,
            "confidence_score": 0.3,
        }

    @staticmethod
    def primary_fields(extracted_data: Dict[str, List[str]]) -> Dict[str, Any]:
        """
        Pick the quick-access fields stored on the document.

        The primary due date is the first parseable due, expiry, payment or
        renewal date, in that order of preference, stored as an ISO date.
        """
        due_date = None
        for field_name in ("due_dates", "expiry_dates", "payment_dates", "renewal_dates"):
            for value in extracted_data.get(field_name) or []:
                parsed = parse_candidate_date(value)
                if parsed is not None:
                    due_date = parsed.isoformat()
                    break
            if due_date:
                break

        amounts = extracted_data.get("amounts") or []
        reference_ids = extracted_data.get("reference_ids") or []
        return {
            "due_date": due_date,
            "amount": parse_amount(amounts[0]) if amounts else None,
            "reference_id": _truncate(reference_ids[0], REFERENCE_ID_MAX_LENGTH) if reference_ids else None,
        }


def parse_amount(value: str) -> Optional[float]:
    """Parse "€1,234.56" style amounts. Returns None when nothing numeric remains."""
    cleaned = _AMOUNT_STRIP_PATTERN.sub("", value or "")
    try:
        return float(cleaned)
    except ValueError:
        return None


def _strip_extension(filename: str) -> str:
    return re.sub(r"\.[^/.]+$", "", filename or "")


def _clamp_int(value: Any, low: int, high: int, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return int(max(low, min(high, value)))


def _clamp_float(value: Any, low: float, high: float, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(max(low, min(high, value)))


def _truncate(value: Any, max_length: int) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value[:max_length]
