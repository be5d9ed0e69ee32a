"""HTTP payment processor adapter.

Posts to the backend's payment endpoints, which wrap the real payment
provider and answer ``{clientSecret, paymentIntentId}`` or ``{error}``.
"""

from typing import Any

import httpx
import structlog

from checkout.payment.processor.port import PaymentIntent, PaymentProcessor, ProcessorError

logger = structlog.get_logger(__name__)

_DEFAULT_ERROR = "Failed to create payment intent."


class HttpPaymentProcessor(PaymentProcessor):
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        accepts_zero_amount: bool = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.accepts_zero_amount = accepts_zero_amount
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def create_cart_payment_intent(self, payload: dict[str, Any]) -> PaymentIntent:
        return self._post("/payments/create-cart-payment-intent", payload)

    def create_payment_intent(self, booking_data: dict[str, Any]) -> PaymentIntent:
        return self._post("/payments/create-payment-intent", {"bookingData": booking_data})

    def _post(self, path: str, body: dict[str, Any]) -> PaymentIntent:
        try:
            response = self._client.post(path, json=body)
        except httpx.HTTPError as exc:
            logger.warning("payment_processor_unreachable", path=path, error=str(exc))
            raise ProcessorError(str(exc) or _DEFAULT_ERROR) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ProcessorError(f"Processor returned {response.status_code} without JSON") from exc

        if not isinstance(data, dict):
            raise ProcessorError(_DEFAULT_ERROR)
        if response.is_error or data.get("error"):
            raise ProcessorError(data.get("error") or _DEFAULT_ERROR)
        if not data.get("clientSecret"):
            raise ProcessorError("Processor response did not include a client secret")

        return PaymentIntent(
            client_secret=data["clientSecret"],
            payment_intent_id=data.get("paymentIntentId") or "",
        )

    def close(self) -> None:
        self._client.close()
