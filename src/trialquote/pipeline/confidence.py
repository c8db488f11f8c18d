"""Confidence tiering for machine-extracted intake fields."""

import math
from collections.abc import Iterable, Mapping

from trialquote.models.confidence import (
    ConfidenceClassification,
    ConfidenceSummary,
    ConfidenceTier,
)

HIGH_THRESHOLD = 90
MEDIUM_THRESHOLD = 70

# Score assumed for an auto-filled field the extractor gave no score for
DEFAULT_CONFIDENCE = 75

TIER_LABELS = {
    ConfidenceTier.HIGH: "高确定性",
    ConfidenceTier.MEDIUM: "较确定",
    ConfidenceTier.LOW: "需核实",
}


def clamp_score(score: int | float) -> int:
    """Round a score half-up and clamp it into [0, 100]."""
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise TypeError(f"Confidence score must be a number, got {type(score).__name__}")
    if isinstance(score, float):
        if math.isnan(score):
            raise TypeError("Confidence score must not be NaN")
        score = math.floor(score + 0.5) if math.isfinite(score) else score
    return int(min(max(score, 0), 100))


def tier_for(score: int | float) -> ConfidenceTier:
    """Return the tier of a score. Boundaries are closed on the low end."""
    value = clamp_score(score)
    if value >= HIGH_THRESHOLD:
        return ConfidenceTier.HIGH
    if value >= MEDIUM_THRESHOLD:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def classify(score: int | float) -> ConfidenceClassification:
    """
    Classify an extraction confidence score.

    Out-of-range scores are clamped into [0, 100] rather than rejected.

    Args:
        score: Confidence score, nominally 0-100

    Returns:
        ConfidenceClassification with the clamped score, tier and label
    """
    value = clamp_score(score)
    tier = tier_for(value)
    return ConfidenceClassification(score=value, tier=tier, label=TIER_LABELS[tier])


def summarize_confidence(
    confidence: Mapping[str, int | float],
    auto_filled: Iterable[str],
) -> ConfidenceSummary:
    """Tally the tiers of all auto-filled fields."""
    counts = {tier: 0 for tier in ConfidenceTier}
    for field in auto_filled:
        counts[tier_for(confidence.get(field, DEFAULT_CONFIDENCE))] += 1

    return ConfidenceSummary(
        high=counts[ConfidenceTier.HIGH],
        medium=counts[ConfidenceTier.MEDIUM],
        low=counts[ConfidenceTier.LOW],
    )
