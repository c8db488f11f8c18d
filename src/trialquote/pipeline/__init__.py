"""Pipeline modules for TrialQuote."""

from trialquote.pipeline.analyze_protocol import analyze_protocol
from trialquote.pipeline.claims import assess_claim
from trialquote.pipeline.confidence import classify, summarize_confidence, tier_for
from trialquote.pipeline.extract_text import extract_text
from trialquote.pipeline.premium import (
    calculate_premium,
    compute_risk_factor,
    normalize_phase,
    quote_from_risk_factor,
)
from trialquote.pipeline.reconcile import ReconciledIntake, apply_edit, mark_edited, reconcile
from trialquote.pipeline.underwriting import (
    adjust,
    allowed_actions,
    approve,
    clamp_risk_factor,
    generate_quote,
    open_case,
    reject,
)

__all__ = [
    "extract_text",
    "analyze_protocol",
    "classify",
    "tier_for",
    "summarize_confidence",
    "ReconciledIntake",
    "reconcile",
    "mark_edited",
    "apply_edit",
    "normalize_phase",
    "compute_risk_factor",
    "quote_from_risk_factor",
    "calculate_premium",
    "clamp_risk_factor",
    "allowed_actions",
    "open_case",
    "adjust",
    "generate_quote",
    "approve",
    "reject",
    "assess_claim",
]
