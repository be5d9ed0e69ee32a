"""In-memory referral registry for development and testing."""

from checkout.referral.registry.port import (
    PartnerTerms,
    ReferralRegistry,
    RegistryUnavailable,
    VerificationResult,
)


class FakeReferralRegistry(ReferralRegistry):
    """Configurable fake registry.

    Knows a handful of partner codes out of the box; tests can register more,
    or make the registry unavailable to exercise the failure path.
    """

    def __init__(self) -> None:
        self.partners: dict[str, PartnerTerms] = {
            "TAXI12345": PartnerTerms("partner-taxi", "Island Taxi Co", 5.0),
            "HOTEL2024": PartnerTerms("partner-hotel", "Grace Bay Hotel", 7.5),
        }
        self.available: bool = True
        self.calls: list[str] = []

    def register(self, code: str, partner_id: str, partner_name: str, commission_percentage=None) -> None:
        self.partners[code.upper()] = PartnerTerms(partner_id, partner_name, commission_percentage)

    def configure(self, available: bool) -> None:
        self.available = available

    def verify_code(self, code: str) -> VerificationResult:
        self.calls.append(code)

        if not self.available:
            raise RegistryUnavailable("Referral registry is unavailable")

        partner = self.partners.get(code)
        if partner is None:
            return VerificationResult(valid=False, message="Referral code not found or not active")
        return VerificationResult(valid=True, partner=partner)
