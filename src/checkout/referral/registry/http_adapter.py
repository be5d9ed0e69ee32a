"""HTTP referral registry adapter.

Talks to ``GET {base_url}/referral/verify-code/{code}``, which answers
``{valid, data?: {partnerId, partnerName, commissionPercentage}, message?}``.
"""

from urllib.parse import quote

import httpx
import structlog

from checkout.referral.registry.port import (
    PartnerTerms,
    ReferralRegistry,
    RegistryUnavailable,
    VerificationResult,
)

logger = structlog.get_logger(__name__)


class HttpReferralRegistry(ReferralRegistry):
    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def verify_code(self, code: str) -> VerificationResult:
        try:
            response = self._client.get(f"/referral/verify-code/{quote(code, safe='')}")
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("referral_registry_unreachable", code=code, error=str(exc))
            raise RegistryUnavailable(str(exc)) from exc

        if not isinstance(body, dict):
            raise RegistryUnavailable(f"Unexpected registry response: {body!r}")

        if response.is_server_error:
            raise RegistryUnavailable(body.get("message") or f"Registry returned {response.status_code}")

        if not body.get("valid"):
            return VerificationResult(valid=False, message=body.get("message"))

        data = body.get("data") or {}
        if not data.get("partnerId"):
            raise RegistryUnavailable("Registry accepted the code without partner details")

        return VerificationResult(
            valid=True,
            partner=PartnerTerms(
                partner_id=str(data["partnerId"]),
                partner_name=data.get("partnerName") or "",
                commission_percentage=data.get("commissionPercentage"),
            ),
            message=body.get("message"),
        )

    def close(self) -> None:
        self._client.close()
