"""API routes for protocol intake, quotation and claims."""

import tempfile
from pathlib import Path
from typing import Annotated, Any

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from pydantic import BaseModel, Field, ValidationError

from trialquote.api.dependencies import SettingsDep
from trialquote.config import Settings
from trialquote.models.claim import ClaimAssessment, ClaimRequest
from trialquote.models.confidence import ConfidenceClassification, ConfidenceSummary
from trialquote.models.intake import ExtractionResult, IntakeField, TrialIntake
from trialquote.models.quote import PhaseMatching, QuoteResult, RiskFactorBreakdown
from trialquote.pipeline import (
    ReconciledIntake,
    analyze_protocol,
    apply_edit,
    assess_claim,
    calculate_premium,
    classify,
    compute_risk_factor,
    extract_text,
    reconcile,
    summarize_confidence,
)
from trialquote.pipeline.extract_text import SUPPORTED_EXTENSIONS

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================


class AnalyzeRequest(BaseModel):
    """Request to analyze protocol text."""

    document_text: str = Field(..., min_length=1, description="Protocol text")
    previous: TrialIntake | None = Field(None, description="Intake to merge the result into")


class ReconcileRequest(BaseModel):
    """Request to reconcile an extraction payload produced elsewhere."""

    extraction: dict[str, Any] = Field(..., description="Extraction payload (camelCase keys)")
    previous: TrialIntake | None = Field(None, description="Intake to merge the result into")


class EditRequest(BaseModel):
    """A user edit to one intake field."""

    state: ReconciledIntake = Field(..., description="Current reconciled intake")
    field: IntakeField = Field(..., description="Edited field")
    value: Any = Field(..., description="New value")


class QuoteRequest(BaseModel):
    """Request to price an intake."""

    intake: TrialIntake
    phase_matching: PhaseMatching | None = Field(
        None, description="Phase matching rule (defaults to the configured rule)"
    )


class QuoteResponse(BaseModel):
    """Suggested premium with the risk factor it was derived from."""

    breakdown: RiskFactorBreakdown
    quote: QuoteResult


class IntakeResponse(BaseModel):
    """Reconciled intake with confidence annotations and a suggested quote."""

    intake: TrialIntake
    auto_filled: list[IntakeField] = Field(default_factory=list)
    confidence: dict[IntakeField, ConfidenceClassification] = Field(default_factory=dict)
    summary: ConfidenceSummary
    breakdown: RiskFactorBreakdown
    quote: QuoteResult
    document_id: str | None = Field(None, description="Uploaded document, if any")


# =============================================================================
# Helpers
# =============================================================================


def _intake_response(
    state: ReconciledIntake,
    settings: Settings,
    document_id: str | None = None,
) -> IntakeResponse:
    auto_filled = sorted(state.auto_filled, key=lambda f: list(IntakeField).index(f))
    return IntakeResponse(
        intake=state.intake,
        auto_filled=auto_filled,
        confidence={field: classify(state.confidence_for(field)) for field in auto_filled},
        summary=summarize_confidence(state.confidence, state.auto_filled),
        breakdown=compute_risk_factor(state.intake, settings.phase_matching),
        quote=calculate_premium(state.intake, settings.phase_matching),
        document_id=document_id,
    )


def _analyze(text: str, settings: Settings) -> ExtractionResult:
    try:
        return analyze_protocol(
            text,
            llm_api_key=settings.llm_api_key,
            llm_model=settings.llm_model,
            llm_provider=settings.llm_provider.value,
            max_chars=settings.max_document_chars,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/intake/analyze", response_model=IntakeResponse, tags=["intake"])
async def analyze_intake(request: AnalyzeRequest, settings: SettingsDep) -> IntakeResponse:
    """Extract intake fields from protocol text and suggest a quote."""
    extraction = _analyze(request.document_text, settings)
    state = reconcile(extraction, previous=request.previous)
    return _intake_response(state, settings)


@router.post("/intake/upload", response_model=IntakeResponse, tags=["intake"])
async def upload_protocol(
    settings: SettingsDep,
    file: Annotated[UploadFile, File(description="Protocol document (.pdf or .txt)")],
) -> IntakeResponse:
    """Upload a protocol document, extract its text and analyze it."""
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    ext = Path(file.filename).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file extension. Allowed: {sorted(SUPPORTED_EXTENSIONS)}",
        )

    content = await file.read()
    if len(content) > settings.max_upload_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {settings.max_upload_size} bytes",
        )

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / f"{Path(file.filename).stem or 'protocol'}{ext}"
        path.write_bytes(content)
        try:
            extracted = extract_text(path)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Could not read document: {e}",
            ) from e

    extraction = _analyze(extracted.full_text, settings)
    return _intake_response(reconcile(extraction), settings, document_id=extracted.document_id)


@router.post("/intake/reconcile", response_model=IntakeResponse, tags=["intake"])
async def reconcile_intake(request: ReconcileRequest, settings: SettingsDep) -> IntakeResponse:
    """Merge an extraction payload into an intake."""
    state = reconcile(request.extraction, previous=request.previous)
    return _intake_response(state, settings)


@router.post("/intake/edit", response_model=IntakeResponse, tags=["intake"])
async def edit_intake(request: EditRequest, settings: SettingsDep) -> IntakeResponse:
    """Apply a user edit; the field stops being reported as auto-filled."""
    try:
        state = apply_edit(request.state, request.field, request.value)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid value for {request.field.value}: {e.errors()[0]['msg']}",
        ) from e
    return _intake_response(state, settings)


@router.post("/quotes", response_model=QuoteResponse, tags=["quotes"])
async def create_quote(request: QuoteRequest, settings: SettingsDep) -> QuoteResponse:
    """Calculate the suggested premium range for an intake."""
    matching = request.phase_matching or settings.phase_matching
    return QuoteResponse(
        breakdown=compute_risk_factor(request.intake, matching),
        quote=calculate_premium(request.intake, matching),
    )


@router.post("/claims/assess", response_model=ClaimAssessment, tags=["claims"])
async def assess(request: ClaimRequest) -> ClaimAssessment:
    """Compute the payable amount of a subject injury claim."""
    return assess_claim(request)
