"""Checkout bounded context: Checkout Orchestration and Referral Discounts.

Aggregates priced line items into a trusted total, resolves the buyer into a
contact record, prices partner referral codes, and keeps exactly one payment
authorization alive for the amount currently on display.
"""

from protean.domain import Domain

from checkout.utils.logging import get_logger

logger = get_logger(__name__)

# Domain Composition Root
checkout = Domain(name="checkout")
