"""Pydantic models for subject injury claims."""

from pydantic import BaseModel, Field

DEFAULT_DEDUCTIBLE = 1000.0
DEFAULT_PAYMENT_RATIO = 0.8


class ClaimRequest(BaseModel):
    """A subject's claim for medical expenses."""

    project_id: str | None = Field(None, description="Insured project")
    subject_name: str | None = Field(None, description="Subject identifier")
    invoice_amount: float = Field(..., ge=0, description="Total invoiced medical expenses")
    medical_insurance_amount: float = Field(
        0.0, ge=0, description="Amount already reimbursed by public medical insurance"
    )
    deductible: float = Field(DEFAULT_DEDUCTIBLE, ge=0)
    payment_ratio: float = Field(DEFAULT_PAYMENT_RATIO, ge=0, le=1)


class ClaimAssessment(BaseModel):
    """Outcome of adjudicating a claim."""

    project_id: str | None = None
    subject_name: str | None = None
    invoice_amount: float
    medical_insurance_amount: float
    deductible: float
    payment_ratio: float
    claimed_amount: float = Field(..., ge=0, description="Amount payable to the subject")
    payable: bool
