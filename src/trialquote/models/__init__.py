"""Pydantic models for TrialQuote."""

from trialquote.models.claim import ClaimAssessment, ClaimRequest
from trialquote.models.confidence import (
    ConfidenceClassification,
    ConfidenceSummary,
    ConfidenceTier,
)
from trialquote.models.documents import ExtractedPage, ExtractedText
from trialquote.models.intake import ExtractionResult, IntakeField, TrialIntake
from trialquote.models.quote import (
    PhaseMatching,
    QuoteResult,
    RiskFactorBreakdown,
    RiskLevel,
    TagAdjustment,
    TrialPhase,
)
from trialquote.models.underwriting import (
    CaseAction,
    CaseEvent,
    CaseStatus,
    UnderwritingCase,
)

__all__ = [
    # Intake models
    "ExtractionResult",
    "IntakeField",
    "TrialIntake",
    # Confidence models
    "ConfidenceClassification",
    "ConfidenceSummary",
    "ConfidenceTier",
    # Quote models
    "PhaseMatching",
    "QuoteResult",
    "RiskFactorBreakdown",
    "RiskLevel",
    "TagAdjustment",
    "TrialPhase",
    # Underwriting models
    "CaseAction",
    "CaseEvent",
    "CaseStatus",
    "UnderwritingCase",
    # Claim models
    "ClaimAssessment",
    "ClaimRequest",
    # Document models
    "ExtractedPage",
    "ExtractedText",
]
