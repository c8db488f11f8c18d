"""Pydantic models for extraction confidence."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class ConfidenceTier(str, Enum):
    """Coarse certainty band of an extracted value."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConfidenceClassification(BaseModel):
    """A confidence score together with its tier."""

    score: int = Field(..., ge=0, le=100, description="Confidence score (0-100)")
    tier: ConfidenceTier = Field(..., description="Tier the score falls into")
    label: str = Field(..., description="Display label for the tier")


class ConfidenceSummary(BaseModel):
    """Tier tally over all auto-filled fields."""

    high: int = Field(0, ge=0)
    medium: int = Field(0, ge=0)
    low: int = Field(0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.high + self.medium + self.low
