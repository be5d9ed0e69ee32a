"""Payment processor factory.

Provides get_processor() / set_processor() / reset_processor() to swap
implementations:
- FakePaymentProcessor for development and testing (default)
- HttpPaymentProcessor against the payments backend
"""

import os

from checkout.payment.processor.port import PaymentProcessor

_current_processor: PaymentProcessor | None = None


def get_processor() -> PaymentProcessor:
    """Return the configured processor, built from PAYMENT_PROCESSOR_ADAPTER on first use."""
    global _current_processor
    if _current_processor is None:
        adapter = os.environ.get("PAYMENT_PROCESSOR_ADAPTER", "fake")
        if adapter == "fake":
            from checkout.payment.processor.fake_adapter import FakePaymentProcessor

            _current_processor = FakePaymentProcessor()
        elif adapter == "http":
            from checkout.payment.processor.http_adapter import HttpPaymentProcessor

            _current_processor = HttpPaymentProcessor(
                base_url=os.environ.get("CHECKOUT_API_URL", "http://localhost:5000/api"),
                timeout=float(os.environ.get("CHECKOUT_HTTP_TIMEOUT", "10")),
                accepts_zero_amount=os.environ.get("PAYMENT_PROCESSOR_ACCEPTS_ZERO", "true").lower() == "true",
            )
        else:
            raise ValueError(f"Unknown payment processor adapter: {adapter}")
    return _current_processor


def set_processor(processor: PaymentProcessor) -> None:
    """Override the active processor (useful for tests)."""
    global _current_processor
    _current_processor = processor


def reset_processor() -> None:
    """Close the active processor and fall back to the environment-configured one."""
    global _current_processor
    if _current_processor is not None:
        _current_processor.close()
    _current_processor = None
