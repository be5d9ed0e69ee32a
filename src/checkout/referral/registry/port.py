"""Referral registry port (abstract interface).

The registry is owned by the partner programme. Checkout only asks it one
question: is this code valid, and if so, whose is it and on what terms.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class RegistryUnavailable(Exception):
    """The registry could not be reached or answered with something unusable."""


@dataclass(frozen=True)
class PartnerTerms:
    partner_id: str
    partner_name: str
    commission_percentage: float | None = None


@dataclass(frozen=True)
class VerificationResult:
    """Result of verifying one referral code."""

    valid: bool
    partner: PartnerTerms | None = None
    message: str | None = None


class ReferralRegistry(ABC):
    """Abstract referral registry interface."""

    @abstractmethod
    def verify_code(self, code: str) -> VerificationResult:
        """Verify a normalised referral code.

        Raises:
            RegistryUnavailable: On transport or service errors.
        """
        ...

    def close(self) -> None:
        """Release any connections held by the registry."""
