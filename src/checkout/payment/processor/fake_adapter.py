"""Configurable fake payment processor for development and testing.

Issues Stripe-looking client secrets without any external calls. Tests can
make it fail, refuse zero amounts, or run a hook while a request is "in
flight" to simulate the buyer changing the basket mid-request.
"""

from collections.abc import Callable
from typing import Any
from uuid import uuid4

from checkout.payment.processor.port import PaymentIntent, PaymentProcessor, ProcessorError


class FakePaymentProcessor(PaymentProcessor):
    """Configurable fake payment processor."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Failed to create payment intent."
        self.accepts_zero_amount = True
        self.calls: list[dict[str, Any]] = []
        self.on_request: Callable[[dict[str, Any]], None] | None = None

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Failed to create payment intent.",
        accepts_zero_amount: bool = True,
    ) -> None:
        """Configure processor behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.accepts_zero_amount = accepts_zero_amount

    def create_cart_payment_intent(self, payload: dict[str, Any]) -> PaymentIntent:
        return self._issue("create_cart_payment_intent", payload)

    def create_payment_intent(self, booking_data: dict[str, Any]) -> PaymentIntent:
        return self._issue("create_payment_intent", {"bookingData": booking_data})

    def _issue(self, method: str, body: dict[str, Any]) -> PaymentIntent:
        call = {"method": method, "body": body}
        self.calls.append(call)

        if self.on_request is not None:
            hook, self.on_request = self.on_request, None
            hook(call)

        if not self.should_succeed:
            raise ProcessorError(self.failure_reason)

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        return PaymentIntent(
            client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}",
            payment_intent_id=intent_id,
        )
