"""Pydantic models for premium quotation."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field, model_validator


class TrialPhase(str, Enum):
    """Clinical trial phases recognised by the pricing rules."""

    I = "I"  # noqa: E741
    I_II = "I/II"
    II = "II"
    II_III = "II/III"
    III = "III"
    IV = "IV"
    BE = "BE"


class PhaseMatching(str, Enum):
    """How the phase label is turned into a risk adjustment.

    ``table`` looks the normalised phase up in a fixed table. ``substring``
    reproduces the historical behaviour of testing the raw label for the
    characters "I" and "II", which also charges phase III and IV labels the
    phase I loading.
    """

    TABLE = "table"
    SUBSTRING = "substring"


class RiskLevel(str, Enum):
    """Risk level of a free-text risk tag."""

    HIGH = "high"
    MEDIUM = "medium"
    NONE = "none"


class TagAdjustment(BaseModel):
    """Contribution of a single risk tag to the risk factor."""

    tag: str
    level: RiskLevel
    amount: float = Field(..., ge=0)


class RiskFactorBreakdown(BaseModel):
    """How a risk factor was accumulated."""

    base: float = 1.0
    phase: TrialPhase | None = Field(None, description="Normalised phase, if recognised")
    phase_adjustment: float = 0.0
    tag_adjustments: list[TagAdjustment] = Field(default_factory=list)
    total: float = Field(..., description="Final multiplicative risk factor")


class QuoteResult(BaseModel):
    """Premium range and coverage derived from an intake and a risk factor."""

    premium_min: int = Field(..., ge=0, description="Lower end of the premium range")
    premium_max: int = Field(..., ge=0, description="Upper end of the premium range")
    risk_score: int = Field(..., ge=0, le=100, description="Risk score (0-100)")
    coverage_per_subject: int = Field(..., ge=0, description="Maximum payable per subject")
    total_coverage: int = Field(..., ge=0, description="coverage_per_subject x subjects")
    risk_factor: float = Field(..., gt=0, description="Risk factor used for the quote")
    base_premium: int = Field(..., ge=0, description="Rounded point estimate")

    @model_validator(mode="after")
    def _check_range(self) -> "QuoteResult":
        if self.premium_min > self.premium_max:
            raise ValueError("premium_min must not exceed premium_max")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def premium_midpoint(self) -> int:
        """Premium amount quoted on application documents."""
        return (self.premium_min + self.premium_max + 1) // 2
