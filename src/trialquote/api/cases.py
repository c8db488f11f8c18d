"""API routes for underwriting cases."""

from collections.abc import Callable

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from trialquote.api.dependencies import CaseDep, SettingsDep, StoreDep
from trialquote.exceptions import ConcurrentModification, InvalidStateTransition
from trialquote.models.intake import TrialIntake
from trialquote.models.quote import QuoteResult
from trialquote.models.underwriting import CaseAction, CaseStatus, UnderwritingCase
from trialquote.pipeline import (
    adjust,
    allowed_actions,
    approve,
    generate_quote,
    open_case,
    reject,
)
from trialquote.utils.storage import CaseStore

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================


class OpenCaseRequest(BaseModel):
    """Request to open an underwriting case."""

    intake: TrialIntake
    case_id: str | None = Field(None, description="Case ID (generated if omitted)")
    risk_factor: float | None = Field(
        None, description="Initial risk factor (calculated from the intake if omitted)"
    )


class AdjustRequest(BaseModel):
    """Underwriter risk factor to preview."""

    risk_factor: float = Field(..., description="Risk factor, clamped to [0.8, 2.5]")


class QuoteCaseRequest(BaseModel):
    """Request to quote a case."""

    risk_factor: float | None = Field(None, description="Risk factor (case value if omitted)")
    expected_version: int | None = Field(None, description="Version the caller loaded")


class ApproveRequest(BaseModel):
    """Request to approve a quoted case."""

    note: str | None = None
    expected_version: int | None = Field(None, description="Version the caller loaded")


class RejectRequest(BaseModel):
    """Request to reject a case."""

    reason: str | None = None
    expected_version: int | None = Field(None, description="Version the caller loaded")


class CaseActionsResponse(BaseModel):
    """Actions currently available on a case."""

    case_id: str
    status: CaseStatus
    version: int
    actions: list[CaseAction]


# =============================================================================
# Helpers
# =============================================================================


def _apply(
    store: CaseStore,
    case: UnderwritingCase,
    transition: Callable[[UnderwritingCase], UnderwritingCase],
    expected_version: int | None,
) -> UnderwritingCase:
    """Run a status transition and persist it if nobody saved the case meanwhile."""
    try:
        updated = transition(case)
    except InvalidStateTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    try:
        return store.save(updated, expected_version=expected_version)
    except ConcurrentModification as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/cases", response_model=UnderwritingCase, status_code=status.HTTP_201_CREATED)
async def create_case(
    request: OpenCaseRequest,
    store: StoreDep,
    settings: SettingsDep,
) -> UnderwritingCase:
    """Open a pending underwriting case for an intake."""
    if request.case_id and store.case_exists(request.case_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Case {request.case_id} already exists",
        )

    try:
        case = open_case(
            request.intake,
            case_id=request.case_id,
            risk_factor=request.risk_factor,
            matching=settings.phase_matching,
        )
        return store.create(case)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.get("/cases", response_model=list[UnderwritingCase])
async def list_cases(store: StoreDep) -> list[UnderwritingCase]:
    """List all underwriting cases."""
    return store.list_cases()


@router.get("/cases/{case_id}", response_model=UnderwritingCase)
async def get_case(case: CaseDep) -> UnderwritingCase:
    """Get an underwriting case."""
    return case


@router.get("/cases/{case_id}/actions", response_model=CaseActionsResponse)
async def get_case_actions(case: CaseDep) -> CaseActionsResponse:
    """List the actions the case's current status allows."""
    actions = sorted(allowed_actions(case.status), key=lambda a: list(CaseAction).index(a))
    return CaseActionsResponse(
        case_id=case.case_id,
        status=case.status,
        version=case.version,
        actions=actions,
    )


@router.post("/cases/{case_id}/adjust", response_model=QuoteResult)
async def adjust_case(request: AdjustRequest, case: CaseDep) -> QuoteResult:
    """Preview the quote for a risk factor without changing the case."""
    try:
        return adjust(case, request.risk_factor)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.post("/cases/{case_id}/quote", response_model=UnderwritingCase)
async def quote_case(request: QuoteCaseRequest, case: CaseDep, store: StoreDep) -> UnderwritingCase:
    """Quote or re-quote a case."""
    return _apply(
        store,
        case,
        lambda c: generate_quote(c, risk_factor=request.risk_factor),
        request.expected_version,
    )


@router.post("/cases/{case_id}/approve", response_model=UnderwritingCase)
async def approve_case(request: ApproveRequest, case: CaseDep, store: StoreDep) -> UnderwritingCase:
    """Approve a quoted case."""
    return _apply(store, case, lambda c: approve(c, note=request.note), request.expected_version)


@router.post("/cases/{case_id}/reject", response_model=UnderwritingCase)
async def reject_case(request: RejectRequest, case: CaseDep, store: StoreDep) -> UnderwritingCase:
    """Reject a pending or quoted case."""
    return _apply(
        store, case, lambda c: reject(c, reason=request.reason), request.expected_version
    )
