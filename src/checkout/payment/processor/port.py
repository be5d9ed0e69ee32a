"""Payment processor port (abstract interface).

The processor turns an amount into an opaque, client-usable authorization
handle (a payment intent client secret). Two entry points exist: one for a
multi-item cart and one for a single booking.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class ProcessorError(Exception):
    """The processor refused the request or could not be reached."""


@dataclass(frozen=True)
class PaymentIntent:
    """A payment intent issued by the processor."""

    client_secret: str
    payment_intent_id: str


class PaymentProcessor(ABC):
    """Abstract payment processor interface."""

    #: Whether the processor issues intents for a zero amount. When False, a
    #: free order is finalized locally instead of being sent.
    accepts_zero_amount: bool = True

    @abstractmethod
    def create_cart_payment_intent(self, payload: dict[str, Any]) -> PaymentIntent:
        """Create a payment intent for a cart checkout.

        Raises:
            ProcessorError: On transport errors or an ``{error}`` response.
        """
        ...

    @abstractmethod
    def create_payment_intent(self, booking_data: dict[str, Any]) -> PaymentIntent:
        """Create a payment intent for a single booking checkout.

        Raises:
            ProcessorError: On transport errors or an ``{error}`` response.
        """
        ...

    def close(self) -> None:
        """Release any connections held by the processor."""
