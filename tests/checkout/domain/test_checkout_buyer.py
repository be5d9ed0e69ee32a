"""Tests for buyer identity on a CheckoutSession: guest form, sign-in, sign-out."""

from datetime import date

import pytest
from protean.exceptions import ValidationError

from checkout.buyer.resolver import AccountProfile, IdentityStatus
from checkout.session.authorization import AuthorizationState
from checkout.session.events import BuyerIdentityResolved
from checkout.session.session import CheckoutSession

ACCOUNT = AccountProfile(account_id="acct-001", first_name="Ana", last_name="Lopez", email="ana@example.com")


def _make_session_with_item(account=None):
    session = CheckoutSession.start(account=account)
    session.add_item(
        service_id="act-snorkel-01",
        service_type="activity",
        service_name="Reef Snorkel Tour",
        selected_date=date(2026, 12, 1),
        num_people=2,
        base_cents=5000,
    )
    return session


class TestGuestInfo:
    def test_guest_info_resolves_identity(self):
        session = _make_session_with_item()
        session.submit_guest_info("  Jane Mary Doe ", " jane@example.com ")

        assert session.identity_status == IdentityStatus.GUEST.value
        assert session.contact.first_name == "Jane"
        assert session.contact.last_name == "Mary Doe"
        assert session.contact.email == "jane@example.com"
        assert session.current_state == AuthorizationState.READY_TO_REQUEST

    def test_guest_info_raises_identity_event(self):
        session = _make_session_with_item()
        session._events.clear()

        session.submit_guest_info("Jane Doe", "jane@example.com")

        resolved = [e for e in session._events if isinstance(e, BuyerIdentityResolved)]
        assert len(resolved) == 1
        assert resolved[0].identity_status == IdentityStatus.GUEST.value
        assert resolved[0].email == "jane@example.com"

    @pytest.mark.parametrize(
        "name, email",
        [("", "jane@example.com"), ("Jane Doe", ""), ("   ", "   "), (None, None)],
    )
    def test_blank_guest_fields_are_rejected(self, name, email):
        session = _make_session_with_item()
        with pytest.raises(ValidationError) as exc:
            session.submit_guest_info(name, email)
        assert exc.value.messages == {"guest": ["Please enter your name and email"]}
        assert session.identity_status == IdentityStatus.INCOMPLETE.value
        assert session.current_state == AuthorizationState.AWAITING_IDENTITY

    def test_malformed_email_is_rejected(self):
        session = _make_session_with_item()
        with pytest.raises(ValidationError):
            session.submit_guest_info("Jane Doe", "not-an-email")
        assert session.identity_status == IdentityStatus.INCOMPLETE.value

    def test_resubmitting_same_guest_info_is_not_a_change(self):
        session = _make_session_with_item()
        session.submit_guest_info("Jane Doe", "jane@example.com")
        session._events.clear()

        session.submit_guest_info("Jane Doe", "jane@example.com")

        assert not [e for e in session._events if isinstance(e, BuyerIdentityResolved)]


class TestAuthenticatedBuyer:
    def test_started_with_account_is_authenticated(self):
        session = CheckoutSession.start(account=ACCOUNT)
        assert session.identity_status == IdentityStatus.AUTHENTICATED.value
        assert session.contact.email == "ana@example.com"

    def test_authenticated_session_is_ready_after_first_item(self):
        session = _make_session_with_item(account=ACCOUNT)
        assert session.current_state == AuthorizationState.READY_TO_REQUEST

    def test_guest_form_does_not_override_account(self):
        session = _make_session_with_item(account=ACCOUNT)
        session.submit_guest_info("Jane Doe", "jane@example.com")

        assert session.identity_status == IdentityStatus.AUTHENTICATED.value
        assert session.contact.email == "ana@example.com"

    def test_identify_buyer_mid_checkout(self):
        session = _make_session_with_item()
        session.identify_buyer(account_id="acct-002", first_name="Sam", last_name="Hart", email="sam@example.com")

        assert session.is_authenticated is True
        assert session.identity_status == IdentityStatus.AUTHENTICATED.value
        assert session.contact.first_name == "Sam"
        assert session.current_state == AuthorizationState.READY_TO_REQUEST

    def test_sign_out_falls_back_to_guest_details(self):
        session = _make_session_with_item(account=ACCOUNT)
        session.submit_guest_info("Jane Doe", "jane@example.com")

        session.sign_out_buyer()

        assert session.is_authenticated is False
        assert session.identity_status == IdentityStatus.GUEST.value
        assert session.contact.email == "jane@example.com"

    def test_sign_out_without_guest_details_awaits_identity(self):
        session = _make_session_with_item(account=ACCOUNT)

        session.sign_out_buyer()

        assert session.identity_status == IdentityStatus.INCOMPLETE.value
        assert session.contact is None
        assert session.current_state == AuthorizationState.AWAITING_IDENTITY
        assert session.can_request_authorization() is False
