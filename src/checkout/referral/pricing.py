"""Referral pricing: code normalisation, verification and discount maths.

A verified code earns the buyer a flat 2.5% off the pre-referral total as it
stood at verification time. The discount is never rescaled afterwards; the
session clears it when the line items change.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

import structlog
from protean.exceptions import ValidationError

from checkout.pricing.money import percent_of
from checkout.referral.registry.port import ReferralRegistry, RegistryUnavailable, VerificationResult

logger = structlog.get_logger(__name__)

REFERRAL_DISCOUNT_RATE = Decimal("0.025")
DEFAULT_COMMISSION_PERCENTAGE = 5.0

INVALID_CODE_MESSAGE = "Referral code not found or not active"
VERIFICATION_ERROR_MESSAGE = "Error verifying referral code"


class ReferralStatus(Enum):
    NOT_APPLIED = "Not_Applied"
    PENDING = "Pending"
    APPLIED = "Applied"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class ReferralVerdict:
    """What the registry said about a code, reduced to what the session needs."""

    code: str
    valid: bool
    partner_id: str | None = None
    partner_name: str | None = None
    commission_percentage: float | None = None
    reason: str | None = None


def normalize_code(raw_code: str | None) -> str:
    """Trim and upper-case a buyer-entered code.

    Raises:
        ValidationError: If nothing is left after trimming.
    """
    code = (raw_code or "").strip().upper()
    if not code:
        raise ValidationError({"referral_code": ["Please enter a referral code"]})
    return code


def referral_discount_cents(pre_discount_total_cents: int) -> int:
    """2.5% of the pre-referral total, rounded half-up to the cent."""
    return percent_of(max(0, pre_discount_total_cents), REFERRAL_DISCOUNT_RATE)


def verify_code(registry: ReferralRegistry, code: str) -> ReferralVerdict:
    """Ask the registry about ``code`` and fold every outcome into a verdict.

    Transport failures become a rejection; they are never raised to the caller.
    """
    try:
        result: VerificationResult = registry.verify_code(code)
    except RegistryUnavailable as exc:
        logger.warning("referral_verification_failed", code=code, error=str(exc))
        return ReferralVerdict(code=code, valid=False, reason=VERIFICATION_ERROR_MESSAGE)

    if not result.valid or result.partner is None:
        logger.info("referral_code_rejected", code=code, message=result.message)
        return ReferralVerdict(code=code, valid=False, reason=result.message or INVALID_CODE_MESSAGE)

    commission = result.partner.commission_percentage
    logger.info("referral_code_verified", code=code, partner_id=result.partner.partner_id)
    return ReferralVerdict(
        code=code,
        valid=True,
        partner_id=result.partner.partner_id,
        partner_name=result.partner.partner_name,
        commission_percentage=DEFAULT_COMMISSION_PERCENTAGE if commission is None else float(commission),
    )
