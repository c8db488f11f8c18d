"""Pydantic models for trial intake and extraction results."""

import logging
import math
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class IntakeField(str, Enum):
    """Fields of a trial intake record."""

    PROTOCOL_NUMBER = "protocol_number"
    PROTOCOL_NAME = "protocol_name"
    TRIAL_DRUG = "trial_drug"
    TRIAL_PHASE = "trial_phase"
    SPONSOR = "sponsor"
    SUBJECT_COUNT = "subject_count"
    INDICATION = "indication"
    DURATION_MONTHS = "duration_months"
    SITE_COUNT = "site_count"
    RISK_FACTORS = "risk_factors"


COUNT_FIELDS = frozenset(
    {IntakeField.SUBJECT_COUNT, IntakeField.DURATION_MONTHS, IntakeField.SITE_COUNT}
)


class TrialIntake(BaseModel):
    """Structured facts of one clinical-trial protocol used for pricing.

    Unset counts are 0 and unset strings are empty so downstream arithmetic
    never has to deal with missing values.
    """

    protocol_number: str = Field("", description="Protocol number")
    protocol_name: str = Field("", description="Full protocol title")
    trial_drug: str = Field("", description="Drug type (small molecule, biologic, ...)")
    trial_phase: str = Field("", description="Phase label as written, e.g. 'II期'")
    sponsor: str = Field("", description="Sponsor company")
    subject_count: int = Field(0, ge=0, description="Planned enrollment")
    indication: str = Field("", description="Indication under study")
    duration_months: int = Field(0, ge=0, description="Planned trial duration in months")
    site_count: int = Field(0, ge=0, description="Number of study sites")
    risk_factors: list[str] = Field(default_factory=list, description="Free-text risk tags")

    @field_validator("risk_factors")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for tag in tags:
            tag = tag.strip()
            if tag:
                seen.setdefault(tag, None)
        return list(seen)


class ExtractionResult(BaseModel):
    """Loosely-typed output of the protocol extraction call.

    Keys follow the extraction schema (camelCase). Use ``from_payload`` to
    build one from untrusted data; wrong-typed members are dropped rather
    than rejected.
    """

    model_config = ConfigDict(populate_by_name=True)

    protocol_number: str | None = Field(None, alias="protocolNumber")
    protocol_name: str | None = Field(None, alias="protocolName")
    trial_phase: str | None = Field(None, alias="trialPhase")
    subject_count: int | None = Field(None, ge=0, alias="subjectCount")
    drug_type: str | None = Field(None, alias="drugType")
    indication: str | None = None
    sponsor: str | None = None
    duration_months: int | None = Field(None, ge=0, alias="durationMonths")
    site_count: int | None = Field(None, ge=0, alias="siteCount")
    risks: list[str] = Field(default_factory=list)
    confidence: dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: Any) -> "ExtractionResult":
        """Coerce an arbitrary extraction payload field by field."""
        if isinstance(data, ExtractionResult):
            return data
        if not isinstance(data, dict):
            logger.debug(f"Extraction payload is not a mapping ({type(data).__name__}), ignoring")
            return cls()

        values: dict[str, Any] = {}
        for name in _TEXT_KEYS:
            values[name] = _coerce_text(name, data.get(name))
        for name in _COUNT_KEYS:
            values[name] = _coerce_count(name, data.get(name))
        values["risks"] = _coerce_tags(data.get("risks"))
        values["confidence"] = _coerce_scores(data.get("confidence"))
        return cls.model_validate(values)


_TEXT_KEYS = ("protocolNumber", "protocolName", "trialPhase", "drugType", "indication", "sponsor")
_COUNT_KEYS = ("subjectCount", "durationMonths", "siteCount")


def _coerce_text(name: str, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    logger.debug(f"Dropping {name}: expected text, got {type(value).__name__}")
    return None


def _coerce_count(name: str, value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            logger.debug(f"Dropping {name}: non-finite value")
            return None
        number = int(value)
        if number != value:
            logger.debug(f"Truncating {name}: {value} -> {number}")
    elif isinstance(value, str):
        match = re.search(r"-?\d[\d,]*", value)
        if not match:
            logger.debug(f"Dropping {name}: no number in {value!r}")
            return None
        number = int(match.group(0).replace(",", ""))
    else:
        logger.debug(f"Dropping {name}: expected number, got {type(value).__name__}")
        return None
    if number < 0:
        logger.debug(f"Dropping {name}: negative value {number}")
        return None
    return number


def _coerce_tags(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _coerce_scores(value: Any) -> dict[str, float]:
    if not isinstance(value, dict):
        return {}
    return {
        str(key): float(score)
        for key, score in value.items()
        if isinstance(score, (int, float))
        and not isinstance(score, bool)
        and math.isfinite(score)
    }
