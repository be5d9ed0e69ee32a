"""Request bodies for the payment processor.

Amounts leave the domain here: cents become two-decimal dollar floats and
field names switch to the processor's camelCase.
"""

from typing import Any

from checkout.buyer.resolver import AuthenticatedIdentity
from checkout.pricing.money import to_wire
from checkout.referral.pricing import ReferralStatus
from checkout.session.authorization import AuthorizationTicket


def _iso(value):
    return value.isoformat() if value is not None else None


def _time_slot(item) -> dict[str, str] | None:
    if not item.start_time:
        return None
    return {"startTime": item.start_time, "endTime": item.end_time}


def _price_breakdown(item) -> dict[str, float]:
    return {
        "basePrice": to_wire(item.base_cents),
        "fees": to_wire(item.fees_cents),
        "taxes": to_wire(item.taxes_cents),
        "discounts": to_wire(item.discounts_cents),
    }


def line_item_payload(item) -> dict[str, Any]:
    return {
        "_id": str(item.id),
        "serviceId": str(item.service_id),
        "serviceType": item.service_type,
        "serviceName": item.service_name,
        "category": item.category,
        "selectedDate": _iso(item.selected_date),
        "timeSlot": _time_slot(item),
        "checkOutDate": _iso(item.check_out_date),
        "numPeople": item.num_people,
        "priceBreakdown": _price_breakdown(item),
        "totalPrice": to_wire(item.line_total_cents),
        "optionId": item.option_id,
        "notes": item.notes,
    }


def contact_fields(session) -> dict[str, Any]:
    """``user``, ``guestName``, ``guestEmail`` and ``contactInfo`` for the buyer."""
    identity = session.resolved_identity()
    contact = identity.contact
    if contact is None:
        raise ValueError("Cannot build a payment payload before the buyer is identified")

    return {
        "user": identity.account.account_id if isinstance(identity, AuthenticatedIdentity) else None,
        "guestName": contact.full_name,
        "guestEmail": contact.email,
        "contactInfo": {
            "firstName": contact.first_name,
            "lastName": contact.last_name,
            "email": contact.email,
        },
    }


def referral_payload(session) -> dict[str, Any] | None:
    if ReferralStatus(session.referral_status) != ReferralStatus.APPLIED:
        return None
    return {
        "code": session.referral_code,
        "partnerId": session.partner_id,
        "partnerName": session.partner_name,
        "discountAmount": to_wire(session.referral_discount_cents),
        "commissionPercentage": session.commission_percentage,
    }


def cart_payment_payload(session) -> dict[str, Any]:
    """Body for ``POST /payments/create-cart-payment-intent``."""
    return {
        "items": [line_item_payload(item) for item in session.items],
        **contact_fields(session),
        "referral": referral_payload(session),
    }


def booking_payment_payload(session, ticket: AuthorizationTicket) -> dict[str, Any]:
    """The ``bookingData`` object for ``POST /payments/create-payment-intent``.

    ``totalPrice`` is the post-discount amount the ticket was issued for.
    """
    item = session.items[0]
    referral = referral_payload(session)
    return {
        **line_item_payload(item),
        **contact_fields(session),
        "totalPrice": to_wire(ticket.amount_cents),
        "referralCode": referral["code"] if referral else None,
        "referral": referral,
    }
