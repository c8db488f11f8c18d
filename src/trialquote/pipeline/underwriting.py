"""Underwriting adjustment and case status transitions.

Transitions return a new case; the input case is never modified, so a
rejected transition leaves the caller's copy exactly as it was. The
functions do not serialise access to a case themselves: callers must hold
at most one adjustment in flight per case and persist through a store that
checks the case version (see ``CaseStore.save``).
"""

import logging
import math
import uuid
from datetime import datetime, timezone

from trialquote.exceptions import InvalidStateTransition
from trialquote.models.intake import TrialIntake
from trialquote.models.quote import PhaseMatching, QuoteResult
from trialquote.models.underwriting import (
    MAX_RISK_FACTOR,
    MIN_RISK_FACTOR,
    CaseAction,
    CaseEvent,
    CaseStatus,
    UnderwritingCase,
)
from trialquote.pipeline.premium import compute_risk_factor, quote_from_risk_factor

logger = logging.getLogger(__name__)

TRANSITIONS: dict[CaseStatus, dict[CaseAction, CaseStatus]] = {
    CaseStatus.PENDING: {
        CaseAction.GENERATE_QUOTE: CaseStatus.QUOTED,
        CaseAction.REJECT: CaseStatus.REJECTED,
    },
    CaseStatus.QUOTED: {
        CaseAction.GENERATE_QUOTE: CaseStatus.QUOTED,
        CaseAction.APPROVE: CaseStatus.APPROVED,
        CaseAction.REJECT: CaseStatus.REJECTED,
    },
    CaseStatus.APPROVED: {},
    CaseStatus.REJECTED: {},
}


def clamp_risk_factor(value: float) -> float:
    """Clamp an underwriter risk factor into the allowed [0.8, 2.5] range."""
    value = float(value)
    if math.isnan(value):
        raise ValueError("Risk factor must be a number")
    clamped = min(max(value, MIN_RISK_FACTOR), MAX_RISK_FACTOR)
    if clamped != value:
        logger.warning(
            f"Risk factor {value} outside [{MIN_RISK_FACTOR}, {MAX_RISK_FACTOR}], using {clamped}"
        )
    return clamped


def allowed_actions(status: CaseStatus) -> frozenset[CaseAction]:
    """Actions that may be performed on a case in the given status."""
    return frozenset(TRANSITIONS[status])


def open_case(
    intake: TrialIntake,
    case_id: str | None = None,
    risk_factor: float | None = None,
    matching: PhaseMatching = PhaseMatching.TABLE,
) -> UnderwritingCase:
    """
    Create a pending underwriting case.

    Without an explicit risk factor the calculator's suggestion is used,
    clamped into the underwriter range.
    """
    if risk_factor is None:
        risk_factor = compute_risk_factor(intake, matching).total

    return UnderwritingCase(
        case_id=case_id or str(uuid.uuid4()),
        intake=intake.model_copy(deep=True),
        risk_factor=clamp_risk_factor(risk_factor),
    )


def adjust(case: UnderwritingCase, risk_factor: float) -> QuoteResult:
    """
    Price a case with an underwriter-chosen risk factor, without changing it.

    The enrolment is used as recorded; a case with no subjects prices at 0.
    """
    return quote_from_risk_factor(
        case.intake.subject_count, clamp_risk_factor(risk_factor), default_subjects=False
    )


def generate_quote(case: UnderwritingCase, risk_factor: float | None = None) -> UnderwritingCase:
    """Quote (or re-quote) a case and record the bindable premium."""
    target = _check_transition(case, CaseAction.GENERATE_QUOTE)
    factor = clamp_risk_factor(case.risk_factor if risk_factor is None else risk_factor)
    quote = quote_from_risk_factor(case.intake.subject_count, factor, default_subjects=False)

    return _transition(
        case,
        CaseAction.GENERATE_QUOTE,
        target,
        risk_factor=factor,
        final_premium=quote.base_premium,
        quote=quote,
    )


def approve(case: UnderwritingCase, note: str | None = None) -> UnderwritingCase:
    """Approve a quoted case, freezing its premium."""
    target = _check_transition(case, CaseAction.APPROVE)
    return _transition(case, CaseAction.APPROVE, target, note=note)


def reject(case: UnderwritingCase, reason: str | None = None) -> UnderwritingCase:
    """Reject a pending or quoted case."""
    target = _check_transition(case, CaseAction.REJECT)
    return _transition(
        case,
        CaseAction.REJECT,
        target,
        note=reason,
        final_premium=None,
        rejection_reason=reason,
    )


def _check_transition(case: UnderwritingCase, action: CaseAction) -> CaseStatus:
    target = TRANSITIONS[case.status].get(action)
    if target is None:
        logger.warning(
            f"Rejected {action.value} on case {case.case_id} in status {case.status.value}"
        )
        raise InvalidStateTransition(case.case_id, case.status.value, action.value)
    return target


def _transition(
    case: UnderwritingCase,
    action: CaseAction,
    target: CaseStatus,
    note: str | None = None,
    **updates,
) -> UnderwritingCase:
    updated = case.model_copy(deep=True)
    for name, value in updates.items():
        setattr(updated, name, value)

    updated.history.append(
        CaseEvent(
            action=action,
            from_status=case.status,
            to_status=target,
            risk_factor=updated.risk_factor,
            premium=updated.final_premium,
            note=note,
        )
    )
    updated.status = target
    updated.updated_at = datetime.now(timezone.utc)

    logger.info(f"Case {case.case_id}: {case.status.value} -> {target.value} ({action.value})")
    return updated
