"""Rule-based risk scoring and premium quotation."""

import re
from decimal import ROUND_HALF_UP, Decimal

from trialquote.models.intake import TrialIntake
from trialquote.models.quote import (
    PhaseMatching,
    QuoteResult,
    RiskFactorBreakdown,
    RiskLevel,
    TagAdjustment,
    TrialPhase,
)

BASE_RATE = Decimal("800")  # per subject
BASE_RISK_FACTOR = Decimal("1.0")
DEFAULT_SUBJECT_COUNT = 100
COVERAGE_PER_SUBJECT = 500_000
RISK_SCORE_SCALE = Decimal("40")
MAX_RISK_SCORE = 100
PREMIUM_LOW_BAND = Decimal("0.9")
PREMIUM_HIGH_BAND = Decimal("1.1")

PHASE_ADJUSTMENTS: dict[TrialPhase, Decimal] = {
    TrialPhase.I: Decimal("0.5"),
    TrialPhase.I_II: Decimal("0.8"),
    TrialPhase.II: Decimal("0.3"),
    TrialPhase.II_III: Decimal("0.3"),
    TrialPhase.III: Decimal("0"),
    TrialPhase.IV: Decimal("0"),
    TrialPhase.BE: Decimal("0"),
}

# Legacy substring rule: "I" anywhere adds the phase I loading, "II" anywhere
# adds the phase II loading.
SUBSTRING_PHASE_I = Decimal("0.5")
SUBSTRING_PHASE_II = Decimal("0.3")

HIGH_RISK_TERMS = [
    "肿瘤",
    "癌",
    "CAR-T",
    "基因",
    "儿童",
    "未成年",
    # English protocols
    "tumor",
    "cancer",
    "oncology",
    "gene therapy",
    "pediatric",
    "minors",
]
MEDIUM_RISK_TERMS = [
    "老年",
    "多次给药",
    "注射",
    "elderly",
    "repeated dosing",
    "multiple doses",
    "injection",
]
HIGH_RISK_ADJUSTMENT = Decimal("0.2")
MEDIUM_RISK_ADJUSTMENT = Decimal("0.1")

_ARABIC_TO_ROMAN = {"1": "I", "2": "II", "3": "III", "4": "IV"}
_UNICODE_ROMAN = {"Ⅰ": "I", "Ⅱ": "II", "Ⅲ": "III", "Ⅳ": "IV"}


def normalize_phase(label: str | None) -> TrialPhase | None:
    """
    Parse a free-text phase label.

    Accepts forms such as "II期", "Phase 2", "phase I/II", "Ib", "III 期",
    "II-III" and "BE试验". Returns None when the label is not recognised.
    """
    if not label:
        return None

    text = label.upper()
    text = re.sub(r"期|试验|临床|PHASE|\s", "", text)
    for numeral, ascii_numeral in _UNICODE_ROMAN.items():
        text = text.replace(numeral, ascii_numeral)
    text = text.replace("／", "/").replace("-", "/").replace("~", "/")
    if text.startswith("BE"):
        return TrialPhase.BE

    parts = []
    for part in text.split("/"):
        part = re.sub(r"^[1-4]", lambda m: _ARABIC_TO_ROMAN[m.group(0)], part)
        # Sub-phases such as Ia/Ib price as their parent phase
        part = re.sub(r"(?<=I)[AB]$", "", part)
        parts.append(part)

    try:
        return TrialPhase("/".join(parts))
    except ValueError:
        return None


def phase_adjustment(
    label: str | None,
    matching: PhaseMatching = PhaseMatching.TABLE,
) -> tuple[TrialPhase | None, Decimal]:
    """Return the recognised phase and its risk-factor loading."""
    phase = normalize_phase(label)
    if matching == PhaseMatching.SUBSTRING:
        text = label or ""
        amount = Decimal("0")
        if "I" in text:
            amount += SUBSTRING_PHASE_I
        if "II" in text:
            amount += SUBSTRING_PHASE_II
        return phase, amount

    if phase is None:
        return None, Decimal("0")
    return phase, PHASE_ADJUSTMENTS[phase]


def risk_tag_level(tag: str) -> RiskLevel:
    """Classify a risk tag. High-risk terms take priority over medium-risk ones."""
    text = tag.lower()
    if any(term.lower() in text for term in HIGH_RISK_TERMS):
        return RiskLevel.HIGH
    if any(term.lower() in text for term in MEDIUM_RISK_TERMS):
        return RiskLevel.MEDIUM
    return RiskLevel.NONE


def risk_tag_adjustment(tag: str) -> Decimal:
    level = risk_tag_level(tag)
    if level == RiskLevel.HIGH:
        return HIGH_RISK_ADJUSTMENT
    if level == RiskLevel.MEDIUM:
        return MEDIUM_RISK_ADJUSTMENT
    return Decimal("0")


def compute_risk_factor(
    intake: TrialIntake,
    matching: PhaseMatching = PhaseMatching.TABLE,
) -> RiskFactorBreakdown:
    """Accumulate the risk factor of an intake from its phase and risk tags."""
    phase, phase_amount = phase_adjustment(intake.trial_phase, matching)
    total = BASE_RISK_FACTOR + phase_amount

    tags: list[TagAdjustment] = []
    for tag in intake.risk_factors:
        amount = risk_tag_adjustment(tag)
        total += amount
        tags.append(TagAdjustment(tag=tag, level=risk_tag_level(tag), amount=float(amount)))

    return RiskFactorBreakdown(
        base=float(BASE_RISK_FACTOR),
        phase=phase,
        phase_adjustment=float(phase_amount),
        tag_adjustments=tags,
        total=float(total),
    )


def quote_from_risk_factor(
    subject_count: int,
    risk_factor: float | Decimal,
    default_subjects: bool = True,
) -> QuoteResult:
    """
    Price a trial from its enrolment and a risk factor.

    With ``default_subjects`` a subject count of 0 is priced as 100
    subjects; without it the count is used as given.
    """
    subjects = (subject_count or DEFAULT_SUBJECT_COUNT) if default_subjects else subject_count
    factor = Decimal(str(risk_factor))

    base_premium = subjects * BASE_RATE * factor
    risk_score = min(MAX_RISK_SCORE, _round_half_up(factor * RISK_SCORE_SCALE))

    return QuoteResult(
        premium_min=_round_half_up(base_premium * PREMIUM_LOW_BAND),
        premium_max=_round_half_up(base_premium * PREMIUM_HIGH_BAND),
        risk_score=max(0, risk_score),
        coverage_per_subject=COVERAGE_PER_SUBJECT,
        total_coverage=subjects * COVERAGE_PER_SUBJECT,
        risk_factor=float(factor),
        base_premium=_round_half_up(base_premium),
    )


def calculate_premium(
    intake: TrialIntake,
    matching: PhaseMatching = PhaseMatching.TABLE,
) -> QuoteResult:
    """
    Calculate the suggested premium range for a trial intake.

    Deterministic and side-effect free; empty intakes get a well-defined
    quote based on the defaults.

    Args:
        intake: Trial intake to price
        matching: Phase matching rule

    Returns:
        QuoteResult with premium range, risk score and coverage
    """
    breakdown = compute_risk_factor(intake, matching)
    return quote_from_risk_factor(intake.subject_count, Decimal(str(breakdown.total)))


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
