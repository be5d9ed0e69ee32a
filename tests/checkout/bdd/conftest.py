"""Shared BDD fixtures and step definitions for the Checkout domain."""

from datetime import date

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from checkout.pricing.money import to_cents
from checkout.referral.pricing import normalize_code, verify_code
from checkout.session.events import (
    AuthorizationInvalidated,
    CheckoutFinalized,
    ReferralCleared,
    ReferralCodeApplied,
    ReferralCodeRemoved,
    StaleAuthorizationDiscarded,
)
from checkout.session.session import CheckoutKind, CheckoutSession

# Map event name strings to classes for dynamic lookup
_EVENT_CLASSES = {
    "ReferralCodeApplied": ReferralCodeApplied,
    "ReferralCleared": ReferralCleared,
    "ReferralCodeRemoved": ReferralCodeRemoved,
    "AuthorizationInvalidated": AuthorizationInvalidated,
    "StaleAuthorizationDiscarded": StaleAuthorizationDiscarded,
    "CheckoutFinalized": CheckoutFinalized,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def flight():
    """The ticket of the last authorization request and whether its answer was kept."""
    return {"ticket": None, "accepted": None}


def _add_item(session, price):
    session.add_item(
        service_id=f"svc-{len(session.items) + 1}",
        service_type="activity",
        service_name="Reef Snorkel Tour",
        selected_date=date(2026, 12, 1),
        num_people=2,
        base_cents=to_cents(price),
    )


def _apply_code(session, registry, raw_code):
    code = normalize_code(raw_code)
    session.begin_referral_verification(code)
    session.record_referral_verification(verify_code(registry, code))


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a cart checkout", target_fixture="session")
def cart_checkout():
    return CheckoutSession.start(kind=CheckoutKind.CART.value)


@given("a booking checkout", target_fixture="session")
def booking_checkout():
    return CheckoutSession.start(kind=CheckoutKind.BOOKING.value)


@given(parsers.cfparse("an item priced at ${price} is in the checkout"))
def item_in_checkout(session, price):
    _add_item(session, price)


@given(parsers.cfparse('the guest "{name}" with email "{email}" has identified'))
def guest_identified(session, name, email):
    session.submit_guest_info(name, email)


@given(parsers.cfparse('the referral code "{code}" has been applied'))
def referral_applied(session, registry, code):
    _apply_code(session, registry, code)
    session._events.clear()


@given("the referral registry is unavailable")
def registry_unavailable(registry):
    registry.configure(available=False)


@given("an authorization has been issued")
def authorization_issued(session):
    ticket = session.begin_authorization()
    session.record_authorization_issued(
        generation=ticket.generation,
        amount_cents=ticket.amount_cents,
        client_secret="pi_given_secret",
        payment_intent_id="pi_given",
    )
    session._events.clear()


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the buyer adds an item priced at ${price}"))
def buyer_adds_item(session, price, error):
    try:
        _add_item(session, price)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the buyer applies referral code "{code}"'))
def buyer_applies_code(session, registry, code, error):
    try:
        _apply_code(session, registry, code)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the chargeable amount is ${price}"))
def chargeable_amount_is(session, price):
    assert session.chargeable_amount_cents() == to_cents(price)


@then(parsers.cfparse('the authorization state is "{state}"'))
def authorization_state_is(session, state):
    assert session.authorization_state == state


@then(parsers.cfparse('the checkout is rejected with "{message}"'))
def checkout_rejected(error, message):
    assert error["exc"] is not None
    assert message in str(error["exc"])


@then(parsers.cfparse("the {event_name} event is raised"))
def event_raised(session, event_name):
    event_cls = _EVENT_CLASSES[event_name]
    assert any(isinstance(e, event_cls) for e in session._events)
