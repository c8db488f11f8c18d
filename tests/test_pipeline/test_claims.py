"""Tests for claim adjudication."""

import pytest
from pydantic import ValidationError

from trialquote.models.claim import ClaimRequest
from trialquote.pipeline.claims import assess_claim


def test_assess_claim_defaults() -> None:
    """Test the default deductible and payment ratio."""
    assessment = assess_claim(
        ClaimRequest(
            project_id="PROT-123456",
            subject_name="S-017",
            invoice_amount=12_000,
            medical_insurance_amount=3_000,
        )
    )

    # (12000 - 3000 - 1000) x 0.8
    assert assessment.claimed_amount == pytest.approx(6_400)
    assert assessment.payable is True
    assert assessment.deductible == 1000
    assert assessment.payment_ratio == pytest.approx(0.8)
    assert assessment.subject_name == "S-017"


def test_assess_claim_below_deductible() -> None:
    """Test that small claims floor at zero."""
    assessment = assess_claim(ClaimRequest(invoice_amount=800))

    assert assessment.claimed_amount == 0
    assert assessment.payable is False


def test_assess_claim_rounds_to_cents() -> None:
    """Test rounding of the payable amount."""
    assessment = assess_claim(
        ClaimRequest(invoice_amount=1234.56, deductible=0, payment_ratio=0.75)
    )

    # 1234.56 x 0.75 = 925.92
    assert assessment.claimed_amount == pytest.approx(925.92)


def test_claim_request_validation() -> None:
    """Test that negative amounts and ratios above 1 are rejected."""
    with pytest.raises(ValidationError):
        ClaimRequest(invoice_amount=-1)
    with pytest.raises(ValidationError):
        ClaimRequest(invoice_amount=100, payment_ratio=1.5)
