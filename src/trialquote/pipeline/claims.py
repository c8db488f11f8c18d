"""Subject injury claim adjudication."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from trialquote.models.claim import ClaimAssessment, ClaimRequest

logger = logging.getLogger(__name__)


def assess_claim(request: ClaimRequest) -> ClaimAssessment:
    """
    Compute the payable amount of a claim.

    The payable amount is what remains of the invoice after public medical
    insurance and the deductible, times the payment ratio, floored at 0.

    Args:
        request: Claim amounts and policy terms

    Returns:
        ClaimAssessment with the payable amount rounded to cents
    """
    invoice = Decimal(str(request.invoice_amount))
    reimbursed = Decimal(str(request.medical_insurance_amount))
    deductible = Decimal(str(request.deductible))
    ratio = Decimal(str(request.payment_ratio))

    amount = max(Decimal("0"), (invoice - reimbursed - deductible) * ratio)
    amount = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    logger.info(f"Assessed claim for {request.subject_name or 'unknown subject'}: {amount}")

    return ClaimAssessment(
        project_id=request.project_id,
        subject_name=request.subject_name,
        invoice_amount=request.invoice_amount,
        medical_insurance_amount=request.medical_insurance_amount,
        deductible=request.deductible,
        payment_ratio=request.payment_ratio,
        claimed_amount=float(amount),
        payable=amount > 0,
    )
