"""Reconcile an extraction result into a trial intake record."""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from trialquote.models.intake import (
    COUNT_FIELDS,
    ExtractionResult,
    IntakeField,
    TrialIntake,
)
from trialquote.pipeline.confidence import DEFAULT_CONFIDENCE, clamp_score

logger = logging.getLogger(__name__)

# Extraction schema key -> intake field. The drug type is named differently
# on each side.
EXTRACTION_FIELD_MAP: dict[str, IntakeField] = {
    "protocolNumber": IntakeField.PROTOCOL_NUMBER,
    "protocolName": IntakeField.PROTOCOL_NAME,
    "drugType": IntakeField.TRIAL_DRUG,
    "trialPhase": IntakeField.TRIAL_PHASE,
    "sponsor": IntakeField.SPONSOR,
    "subjectCount": IntakeField.SUBJECT_COUNT,
    "indication": IntakeField.INDICATION,
    "durationMonths": IntakeField.DURATION_MONTHS,
    "siteCount": IntakeField.SITE_COUNT,
}

GENERIC_TRIAL_NAME = "临床试验"
PROTOCOL_NAME_SUFFIX = "研究"


class ReconciledIntake(BaseModel):
    """An intake plus which of its fields came from the extractor."""

    intake: TrialIntake = Field(default_factory=TrialIntake)
    auto_filled: set[IntakeField] = Field(default_factory=set)
    confidence: dict[IntakeField, int] = Field(default_factory=dict)

    def is_auto_filled(self, field: IntakeField | str) -> bool:
        return IntakeField(field) in self.auto_filled

    def confidence_for(self, field: IntakeField | str) -> int | None:
        """Confidence of an auto-filled field, or None when not applicable."""
        field = IntakeField(field)
        if field not in self.auto_filled:
            return None
        return self.confidence.get(field, DEFAULT_CONFIDENCE)


def reconcile(
    raw: ExtractionResult | dict[str, Any] | None,
    previous: TrialIntake | None = None,
    now: datetime | None = None,
) -> ReconciledIntake:
    """
    Merge an extraction result into a trial intake.

    Values the extractor supplied overwrite the previous intake and are
    marked as auto-filled; everything else keeps its previous value. An
    empty protocol number or name is replaced by a generated fallback,
    which is not considered auto-filled.

    Args:
        raw: Extraction result, or a raw payload to coerce
        previous: Intake to merge into (an empty intake if omitted)
        now: Clock used for the generated protocol number

    Returns:
        ReconciledIntake with the merged intake, auto-filled set and confidence
    """
    extraction = ExtractionResult.from_payload(raw)
    previous = previous or TrialIntake()
    now = now or datetime.now(timezone.utc)

    supplied = _supplied_values(extraction)
    values = previous.model_dump()
    values.update({field.value: value for field, value in supplied.items()})

    if extraction.risks:
        values[IntakeField.RISK_FACTORS.value] = extraction.risks

    if not values[IntakeField.PROTOCOL_NUMBER.value]:
        values[IntakeField.PROTOCOL_NUMBER.value] = fallback_protocol_number(now)
    if not values[IntakeField.PROTOCOL_NAME.value]:
        values[IntakeField.PROTOCOL_NAME.value] = fallback_protocol_name(
            values[IntakeField.INDICATION.value]
        )

    raw_scores = _map_confidence_keys(extraction.confidence)
    confidence = {
        field: clamp_score(raw_scores[field]) if field in raw_scores else DEFAULT_CONFIDENCE
        for field in supplied
    }

    logger.info(f"Reconciled extraction: {len(supplied)} fields auto-filled")

    return ReconciledIntake(
        intake=TrialIntake.model_validate(values),
        auto_filled=set(supplied),
        confidence=confidence,
    )


def mark_edited(state: ReconciledIntake, field: IntakeField | str) -> ReconciledIntake:
    """Record that a user edited a field, so it is no longer attributed to the extractor."""
    field = IntakeField(field)
    return ReconciledIntake(
        intake=state.intake.model_copy(deep=True),
        auto_filled={f for f in state.auto_filled if f != field},
        confidence={f: score for f, score in state.confidence.items() if f != field},
    )


def apply_edit(
    state: ReconciledIntake,
    field: IntakeField | str,
    value: Any,
) -> ReconciledIntake:
    """Set a field to a user-supplied value and clear its auto-filled status."""
    field = IntakeField(field)
    values = state.intake.model_dump()
    values[field.value] = value
    edited = mark_edited(state, field)
    edited.intake = TrialIntake.model_validate(values)
    return edited


def fallback_protocol_number(now: datetime) -> str:
    """Protocol number derived from the last six digits of a millisecond timestamp."""
    millis = int(now.timestamp() * 1000)
    return f"PROT-{str(millis)[-6:]}"


def fallback_protocol_name(indication: str) -> str:
    return f"{indication or GENERIC_TRIAL_NAME}{PROTOCOL_NAME_SUFFIX}"


def _supplied_values(extraction: ExtractionResult) -> dict[IntakeField, Any]:
    """Collect the intake values the extractor actually provided."""
    payload = extraction.model_dump(by_alias=True)
    supplied: dict[IntakeField, Any] = {}
    for source_key, field in EXTRACTION_FIELD_MAP.items():
        value = payload.get(source_key)
        if field in COUNT_FIELDS:
            if value is not None and value > 0:
                supplied[field] = value
        elif value:
            supplied[field] = value
    return supplied


def _map_confidence_keys(scores: dict[str, float]) -> dict[IntakeField, float]:
    mapped: dict[IntakeField, float] = {}
    for key, score in scores.items():
        field = EXTRACTION_FIELD_MAP.get(key)
        if field is None:
            try:
                field = IntakeField(key)
            except ValueError:
                logger.debug(f"Ignoring confidence for unknown field {key}")
                continue
        mapped[field] = score
    return mapped
