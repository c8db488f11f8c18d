"""Pydantic models for underwriting cases."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from trialquote.models.intake import TrialIntake
from trialquote.models.quote import QuoteResult

MIN_RISK_FACTOR = 0.8
MAX_RISK_FACTOR = 2.5


class CaseStatus(str, Enum):
    """Lifecycle status of an underwriting case."""

    PENDING = "pending"
    QUOTED = "quoted"
    APPROVED = "approved"
    REJECTED = "rejected"


class CaseAction(str, Enum):
    """Operations an underwriter can perform on a case."""

    GENERATE_QUOTE = "generate_quote"
    APPROVE = "approve"
    REJECT = "reject"


class CaseEvent(BaseModel):
    """A recorded status transition."""

    action: CaseAction
    from_status: CaseStatus
    to_status: CaseStatus
    risk_factor: float | None = None
    premium: int | None = None
    note: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UnderwritingCase(BaseModel):
    """A trial intake under review, with the underwriter's risk factor."""

    case_id: str = Field(..., description="Opaque case identifier")
    intake: TrialIntake
    risk_factor: float = Field(
        ..., ge=MIN_RISK_FACTOR, le=MAX_RISK_FACTOR, description="Underwriter risk multiplier"
    )
    status: CaseStatus = CaseStatus.PENDING
    final_premium: int | None = Field(None, ge=0, description="Bindable premium once quoted")
    quote: QuoteResult | None = None
    rejection_reason: str | None = None
    version: int = Field(0, ge=0, description="Optimistic concurrency stamp")
    history: list[CaseEvent] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
