"""Referral registry factory.

Provides get_registry() / set_registry() / reset_registry() to swap
implementations:
- FakeReferralRegistry for development and testing (default)
- HttpReferralRegistry against the partner programme backend
"""

import os

from checkout.referral.registry.port import ReferralRegistry

_current_registry: ReferralRegistry | None = None


def get_registry() -> ReferralRegistry:
    """Return the configured registry, built from REFERRAL_REGISTRY_ADAPTER on first use."""
    global _current_registry
    if _current_registry is None:
        adapter = os.environ.get("REFERRAL_REGISTRY_ADAPTER", "fake")
        if adapter == "fake":
            from checkout.referral.registry.fake_adapter import FakeReferralRegistry

            _current_registry = FakeReferralRegistry()
        elif adapter == "http":
            from checkout.referral.registry.http_adapter import HttpReferralRegistry

            _current_registry = HttpReferralRegistry(
                base_url=os.environ.get("CHECKOUT_API_URL", "http://localhost:5000/api"),
                timeout=float(os.environ.get("CHECKOUT_HTTP_TIMEOUT", "10")),
            )
        else:
            raise ValueError(f"Unknown referral registry adapter: {adapter}")
    return _current_registry


def set_registry(registry: ReferralRegistry) -> None:
    """Override the active registry (useful for tests)."""
    global _current_registry
    _current_registry = registry


def reset_registry() -> None:
    """Close the active registry and fall back to the environment-configured one."""
    global _current_registry
    if _current_registry is not None:
        _current_registry.close()
    _current_registry = None
