"""Tests for extraction schema validation."""

from trialquote.utils.validation import load_schema, validate_extraction_payload


def test_schema_is_bundled() -> None:
    """Test that the extraction schema loads from the package."""
    schema = load_schema("protocol_extraction")
    assert "trialPhase" in schema["properties"]
    assert "drugType" in schema["properties"]


def test_valid_payload() -> None:
    """Test a complete payload passes validation."""
    payload = {
        "protocolNumber": "ABC-001",
        "trialPhase": "II期",
        "subjectCount": 200,
        "drugType": "靶向药物",
        "indication": "非小细胞肺癌",
        "risks": ["涉及肿瘤患者"],
        "confidence": {"trialPhase": 95, "subjectCount": 90},
    }
    assert validate_extraction_payload(payload) == []


def test_nulls_are_allowed() -> None:
    """Test that absent values may be reported as null."""
    payload = {
        "trialPhase": None,
        "subjectCount": None,
        "drugType": None,
        "indication": None,
        "risks": [],
        "confidence": {},
    }
    assert validate_extraction_payload(payload) == []


def test_invalid_payload_reports_errors() -> None:
    """Test that each problem is reported with its location."""
    payload = {
        "trialPhase": "II期",
        "subjectCount": -5,
        "drugType": 3,
        "indication": "肺癌",
        "risks": "tumor",
        "confidence": {"trialPhase": 120},
    }

    errors = validate_extraction_payload(payload)

    assert len(errors) == 4
    assert any(error.startswith("subjectCount:") for error in errors)
    assert any(error.startswith("confidence/trialPhase:") for error in errors)


def test_missing_required_fields() -> None:
    """Test that missing required fields are reported at the root."""
    errors = validate_extraction_payload({"trialPhase": "I期"})
    assert errors
    assert all(error.startswith("<root>:") for error in errors)
