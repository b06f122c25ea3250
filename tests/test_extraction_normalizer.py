"""Tests for normalizing classifier output."""
import json

import pytest

from app.services.extraction_normalizer import (
    REFERENCE_ID_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    ExtractionNormalizer,
    parse_amount,
)

CLASSIFIER_RESULT = {
    "category": "Insurance",
    "summary": "Car Insurance Renewal",
    "content": "Annual premium notice",
    "extractedData": {
        "dates": ["2024-01-10"],
        "amounts": ["€1,234.56"],
        "reference_ids": ["POL-42"],
        "keywords": ["car", "premium"],
        "expiry_dates": ["2024-04-01"],
        "renewal_dates": ["2024-04-01"],
    },
    "urgency_score": 6,
    "confidence_score": 0.92,
}


def test_normalize_dict():
    result = ExtractionNormalizer.normalize(CLASSIFIER_RESULT, filename="policy.pdf")

    assert result["category"] == "Insurance"
    assert result["summary"] == "Car Insurance Renewal"
    assert result["content"] == "Annual premium notice"
    assert result["urgency_score"] == 6
    assert result["confidence_score"] == 0.92
    assert result["extracted_data"]["expiry_dates"] == ["2024-04-01"]
    assert result["extracted_data"]["due_dates"] == []
    assert result["extracted_data"]["payment_dates"] == []


def test_normalize_accepts_snake_case_extracted_data():
    raw = {"category": "Tax", "extracted_data": {"due_dates": ["2024-05-31"]}}

    result = ExtractionNormalizer.normalize(raw, filename="steuer.pdf")

    assert result["extracted_data"]["due_dates"] == ["2024-05-31"]


def test_normalize_fenced_response_text():
    text = "```json\n" + json.dumps(CLASSIFIER_RESULT) + "\n```"

    result = ExtractionNormalizer.normalize(text, filename="policy.pdf")

    assert result["category"] == "Insurance"
    assert result["extracted_data"]["reference_ids"] == ["POL-42"]


def test_normalize_json_surrounded_by_prose():
    text = "Here is the analysis:\n" + json.dumps({"category": "Banking"}) + "\nLet me know!"

    result = ExtractionNormalizer.normalize(text, filename="statement.pdf")

    assert result["category"] == "Banking"


def test_unparseable_response_uses_fallback():
    result = ExtractionNormalizer.normalize("I could not read this document.", filename="Mietvertrag_2024.pdf")

    assert result["category"] == "Real Estate"
    assert result["summary"] == "Real Estate Document: Mietvertrag_2024"
    assert result["urgency_score"] == 3
    assert result["confidence_score"] == 0.3
    assert all(values == [] for values in result["extracted_data"].values())


def test_fallback_without_filename_hint():
    assert ExtractionNormalizer.normalize("nope", filename="scan_001.png")["category"] == "Other"


@pytest.mark.parametrize("category, expected", [
    ("Healthcare", "Healthcare"),
    (" Tax ", "Tax"),
    ("Rental", "Real Estate"),
    ("Medical", "Healthcare"),
    ("Astrology", "Other"),
    (None, "Other"),
    (42, "Other"),
])
def test_validate_category(category, expected):
    assert ExtractionNormalizer.validate_category(category) == expected


def test_malformed_extracted_fields_become_empty_lists():
    raw = {"extractedData": {"due_dates": "2024-03-15", "dates": ["2024-03-01", 7, None], "keywords": None}}

    extracted = ExtractionNormalizer.normalize(raw)["extracted_data"]

    assert extracted["due_dates"] == []
    assert extracted["dates"] == ["2024-03-01"]
    assert extracted["keywords"] == []


@pytest.mark.parametrize("urgency, confidence, expected_urgency, expected_confidence", [
    (15, 1.7, 10, 1.0),
    (0, -0.2, 1, 0.0),
    ("high", "sure", 1, 0.5),
    (None, None, 1, 0.5),
    (True, False, 1, 0.5),
])
def test_scores_are_clamped(urgency, confidence, expected_urgency, expected_confidence):
    result = ExtractionNormalizer.normalize({"urgency_score": urgency, "confidence_score": confidence})

    assert result["urgency_score"] == expected_urgency
    assert result["confidence_score"] == expected_confidence


def test_missing_summary_uses_filename_stem():
    assert ExtractionNormalizer.normalize({}, filename="invoice.march.pdf")["summary"] == "invoice.march"


def test_primary_fields_prefer_due_dates():
    extracted = ExtractionNormalizer.normalize_extracted_data({
        "due_dates": ["2024-03-15"],
        "expiry_dates": ["2024-04-01"],
        "amounts": ["$99.00"],
        "reference_ids": ["INV-7", "INV-8"],
    })

    primary = ExtractionNormalizer.primary_fields(extracted)

    assert primary == {"due_date": "2024-03-15", "amount": 99.0, "reference_id": "INV-7"}


def test_primary_fields_fall_back_to_renewal():
    extracted = ExtractionNormalizer.normalize_extracted_data({"renewal_dates": ["2024-06-30"]})

    primary = ExtractionNormalizer.primary_fields(extracted)

    assert primary == {"due_date": "2024-06-30", "amount": None, "reference_id": None}


@pytest.mark.parametrize("value, expected", [
    ("€1,234.56", 1234.56),
    ("99 EUR", 99.0),
    ("USD 12.50", 12.5),
    ("free", None),
    ("", None),
])
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


def test_primary_due_date_skips_free_text_dates():
    extracted = ExtractionNormalizer.normalize_extracted_data({
        "due_dates": ["Zahlbar bis spätestens 15.03.2024", "2024-03-15T10:00:00Z"],
    })

    assert ExtractionNormalizer.primary_fields(extracted)["due_date"] == "2024-03-15"


def test_primary_due_date_moves_on_when_a_field_has_no_parseable_date():
    extracted = ExtractionNormalizer.normalize_extracted_data({
        "due_dates": ["next Friday"],
        "expiry_dates": ["2024-04-01"],
    })

    assert ExtractionNormalizer.primary_fields(extracted)["due_date"] == "2024-04-01"


def test_primary_due_date_is_none_without_parseable_dates():
    extracted = ExtractionNormalizer.normalize_extracted_data({"payment_dates": ["end of month", "31/03/2024"]})

    assert ExtractionNormalizer.primary_fields(extracted)["due_date"] is None


def test_long_summary_is_cut_to_title_width():
    result = ExtractionNormalizer.normalize({"summary": "Mietvertrag " * 100})

    assert len(result["summary"]) == TITLE_MAX_LENGTH


def test_long_reference_id_is_cut_to_column_width():
    extracted = ExtractionNormalizer.normalize_extracted_data({"reference_ids": ["REF-" + "9" * 400]})

    reference_id = ExtractionNormalizer.primary_fields(extracted)["reference_id"]

    assert len(reference_id) == REFERENCE_ID_MAX_LENGTH
    assert reference_id.startswith("REF-999")
