"""Tests for protocol analysis."""

import importlib
from typing import Any

import pytest

from trialquote.exceptions import LLMExtractionError
from trialquote.models.intake import IntakeField
from trialquote.pipeline.analyze_protocol import HEURISTIC_CONFIDENCE, analyze_protocol
from trialquote.pipeline.reconcile import reconcile

# The package re-exports the function under the module name
analyze_module = importlib.import_module("trialquote.pipeline.analyze_protocol")


class FakeLLMClient:
    """LLM client double returning a canned payload."""

    def __init__(self, payload: dict[str, Any] | None = None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.prompts: list[str] = []

    def extract_json(self, prompt: str, system: str | None = None) -> dict[str, Any]:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.payload or {}


def _install_fake(monkeypatch: pytest.MonkeyPatch, fake: FakeLLMClient) -> dict[str, Any]:
    calls: dict[str, Any] = {}

    def factory(provider: str, api_key: str, model: str | None = None) -> FakeLLMClient:
        calls.update(provider=provider, api_key=api_key, model=model)
        return fake

    monkeypatch.setattr(analyze_module, "create_llm_client", factory)
    return calls


def test_heuristics_on_short_summary(sample_protocol_text: str) -> None:
    """Test regex extraction from a one-paragraph summary."""
    result = analyze_protocol(sample_protocol_text)

    assert result.trial_phase == "II期"
    assert result.subject_count == 200
    assert result.site_count == 8
    assert result.duration_months == 24
    assert result.drug_type == "靶向药物"
    assert result.risks == ["涉及肿瘤患者", "需多次给药"]
    assert result.protocol_number is None
    assert result.confidence["trialPhase"] == HEURISTIC_CONFIDENCE
    assert "risks" not in result.confidence


def test_heuristics_on_labelled_document(sample_protocol_document: str) -> None:
    """Test regex extraction of labelled header fields."""
    result = analyze_protocol(sample_protocol_document)

    assert result.protocol_number == "ABC-2024-001"
    assert result.protocol_name.startswith("评价XYZ注射液")
    assert result.sponsor == "某某生物医药有限公司"
    assert result.indication == "晚期实体瘤"
    assert result.trial_phase == "I期"
    assert result.subject_count == 36
    assert result.site_count == 3
    assert result.duration_months == 18
    assert "首次人体试验" in result.risks
    assert "需多次给药" in result.risks


def test_heuristics_on_english_text() -> None:
    """Test regex extraction from an English synopsis."""
    text = (
        "Protocol No: XY-301\n"
        "Sponsor: Example Pharma Inc.\n"
        "A Phase 3 randomized study of an antibody in 450 patients with cancer "
        "at 25 sites over 30 months."
    )

    result = analyze_protocol(text)

    assert result.protocol_number == "XY-301"
    assert result.sponsor == "Example Pharma Inc."
    assert result.trial_phase == "Phase 3"
    assert result.subject_count == 450
    assert result.site_count == 25
    assert result.duration_months == 30
    assert result.drug_type == "抗体药物"
    assert result.risks == ["涉及肿瘤患者"]


def test_heuristic_result_reconciles(sample_protocol_text: str) -> None:
    """Test that heuristic fields reconcile as low-confidence auto-fills."""
    state = reconcile(analyze_protocol(sample_protocol_text))

    assert state.auto_filled == {
        IntakeField.TRIAL_PHASE,
        IntakeField.SUBJECT_COUNT,
        IntakeField.SITE_COUNT,
        IntakeField.DURATION_MONTHS,
        IntakeField.TRIAL_DRUG,
    }
    assert all(score == HEURISTIC_CONFIDENCE for score in state.confidence.values())
    assert state.intake.risk_factors == ["涉及肿瘤患者", "需多次给药"]


def test_empty_text_raises() -> None:
    """Test that empty text is rejected."""
    with pytest.raises(ValueError):
        analyze_protocol("   ")


def test_llm_extraction(monkeypatch: pytest.MonkeyPatch, sample_protocol_text: str) -> None:
    """Test that the LLM payload is used when a key is configured."""
    fake = FakeLLMClient(
        payload={
            "protocolNumber": "ONC-2024-07",
            "trialPhase": "II期",
            "subjectCount": 200,
            "drugType": "靶向药物",
            "indication": "非小细胞肺癌",
            "risks": ["涉及肿瘤患者"],
            "confidence": {"trialPhase": 95, "subjectCount": 92, "indication": 88},
        }
    )
    calls = _install_fake(monkeypatch, fake)

    result = analyze_protocol(
        sample_protocol_text,
        llm_api_key="test-key",
        llm_model="gpt-4o",
        llm_provider="openai",
    )

    assert calls == {"provider": "openai", "api_key": "test-key", "model": "gpt-4o"}
    assert result.protocol_number == "ONC-2024-07"
    assert result.indication == "非小细胞肺癌"
    assert result.confidence["trialPhase"] == 95
    assert sample_protocol_text in fake.prompts[0]


def test_llm_text_truncated(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that only max_chars of the document are sent."""
    fake = FakeLLMClient(payload={"trialPhase": "I期"})
    _install_fake(monkeypatch, fake)

    analyze_protocol("甲" * 50 + "乙" * 50, llm_api_key="test-key", max_chars=50)

    assert "甲" * 50 in fake.prompts[0]
    assert "乙" not in fake.prompts[0]


def test_llm_malformed_payload_is_coerced(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that schema problems do not fail the extraction."""
    fake = FakeLLMClient(payload={"trialPhase": ["II"], "subjectCount": "120", "risks": None})
    _install_fake(monkeypatch, fake)

    result = analyze_protocol("某试验方案", llm_api_key="test-key")

    assert result.trial_phase is None
    assert result.subject_count == 120
    assert result.risks == []


def test_llm_failure_falls_back_to_heuristics(
    monkeypatch: pytest.MonkeyPatch, sample_protocol_text: str
) -> None:
    """Test the fallback when the LLM call fails."""
    fake = FakeLLMClient(error=LLMExtractionError("not JSON"))
    _install_fake(monkeypatch, fake)

    result = analyze_protocol(sample_protocol_text, llm_api_key="test-key")

    assert result.trial_phase == "II期"
    assert result.confidence["subjectCount"] == HEURISTIC_CONFIDENCE


def test_no_key_skips_llm(monkeypatch: pytest.MonkeyPatch, sample_protocol_text: str) -> None:
    """Test that the LLM is never called without an API key."""
    fake = FakeLLMClient(payload={"trialPhase": "III期"})
    _install_fake(monkeypatch, fake)

    result = analyze_protocol(sample_protocol_text)

    assert fake.prompts == []
    assert result.trial_phase == "II期"
