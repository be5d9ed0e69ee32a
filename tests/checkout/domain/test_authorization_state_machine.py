"""Tests for the payment authorization lifecycle on a CheckoutSession."""

from datetime import date

import pytest
from protean.exceptions import ValidationError

from checkout.referral.pricing import ReferralVerdict
from checkout.session.authorization import (
    AuthorizationState,
    AuthorizationTicket,
    can_transition,
    is_requestable,
)
from checkout.session.events import (
    AuthorizationFailed,
    AuthorizationInvalidated,
    AuthorizationIssued,
    AuthorizationStateChanged,
    AuthorizationSuperseded,
    CheckoutFinalized,
    StaleAuthorizationDiscarded,
)
from checkout.session.session import CheckoutSession


def _add_item(session, base_cents=5000, service_id="act-snorkel-01"):
    return session.add_item(
        service_id=service_id,
        service_type="activity",
        service_name="Reef Snorkel Tour",
        selected_date=date(2026, 12, 1),
        num_people=2,
        base_cents=base_cents,
    )


def _make_ready_session(base_cents=5000):
    session = CheckoutSession.start()
    _add_item(session, base_cents=base_cents)
    session.submit_guest_info("Jane Doe", "jane@example.com")
    return session


def _issue(session, ticket, intent_id="pi_1"):
    return session.record_authorization_issued(
        generation=ticket.generation,
        amount_cents=ticket.amount_cents,
        client_secret=f"{intent_id}_secret",
        payment_intent_id=intent_id,
    )


def _make_authorized_session(base_cents=5000):
    session = _make_ready_session(base_cents=base_cents)
    _issue(session, session.begin_authorization())
    return session


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current, target",
        [
            (AuthorizationState.IDLE, AuthorizationState.AWAITING_IDENTITY),
            (AuthorizationState.READY_TO_REQUEST, AuthorizationState.REQUESTING),
            (AuthorizationState.REQUESTING, AuthorizationState.AUTHORIZED),
            (AuthorizationState.REQUESTING, AuthorizationState.FAILED),
            (AuthorizationState.AUTHORIZED, AuthorizationState.INVALIDATED),
            (AuthorizationState.INVALIDATED, AuthorizationState.REQUESTING),
            (AuthorizationState.FAILED, AuthorizationState.REQUESTING),
            (AuthorizationState.AUTHORIZED, AuthorizationState.FINALIZED),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target) is True

    @pytest.mark.parametrize(
        "current, target",
        [
            (AuthorizationState.IDLE, AuthorizationState.AUTHORIZED),
            (AuthorizationState.AWAITING_IDENTITY, AuthorizationState.REQUESTING),
            (AuthorizationState.AUTHORIZED, AuthorizationState.REQUESTING),
            (AuthorizationState.FINALIZED, AuthorizationState.IDLE),
            (AuthorizationState.FINALIZED, AuthorizationState.REQUESTING),
        ],
    )
    def test_forbidden(self, current, target):
        assert can_transition(current, target) is False

    def test_requestable_states(self):
        requestable = {state for state in AuthorizationState if is_requestable(state)}
        assert requestable == {
            AuthorizationState.READY_TO_REQUEST,
            AuthorizationState.INVALIDATED,
            AuthorizationState.FAILED,
        }


class TestBeginAuthorization:
    def test_ticket_carries_generation_and_amount(self):
        session = _make_ready_session(base_cents=5000)

        ticket = session.begin_authorization()

        assert ticket == AuthorizationTicket(
            session_id=str(session.id), kind="Cart", generation=1, amount_cents=5000
        )
        assert session.current_state == AuthorizationState.REQUESTING
        assert session.requested_amount_cents == 5000

    def test_only_one_request_in_flight(self):
        session = _make_ready_session()
        assert session.begin_authorization() is not None
        assert session.begin_authorization() is None
        assert session.authorization_generation == 1

    def test_no_request_without_identity(self):
        session = CheckoutSession.start()
        _add_item(session)
        assert session.current_state == AuthorizationState.AWAITING_IDENTITY
        assert session.begin_authorization() is None

    def test_no_request_without_items(self):
        session = CheckoutSession.start()
        assert session.begin_authorization() is None

    def test_no_request_while_referral_pending(self):
        session = _make_ready_session()
        session.begin_referral_verification("TAXI12345")
        assert session.begin_authorization() is None

    def test_requests_discounted_amount(self):
        session = _make_ready_session(base_cents=20000)
        session.begin_referral_verification("TAXI12345")
        session.record_referral_verification(
            ReferralVerdict(
                code="TAXI12345",
                valid=True,
                partner_id="partner-taxi",
                partner_name="Island Taxi Co",
                commission_percentage=5.0,
            )
        )

        ticket = session.begin_authorization()

        assert ticket.amount_cents == 19500

    def test_state_change_events(self):
        session = _make_ready_session()
        session._events.clear()

        session.begin_authorization()

        changes = [e for e in session._events if isinstance(e, AuthorizationStateChanged)]
        assert len(changes) == 1
        assert changes[0].from_state == AuthorizationState.READY_TO_REQUEST.value
        assert changes[0].to_state == AuthorizationState.REQUESTING.value
        assert changes[0].generation == 1
        assert changes[0].chargeable_amount_cents == 5000


class TestIssuedAnswer:
    def test_current_answer_authorizes(self):
        session = _make_ready_session()
        ticket = session.begin_authorization()

        assert _issue(session, ticket) is True

        assert session.current_state == AuthorizationState.AUTHORIZED
        assert session.authorization.client_secret == "pi_1_secret"
        assert session.authorization.amount_cents == 5000
        assert session.authorization.generation == 1
        assert session.requested_amount_cents is None
        assert any(isinstance(e, AuthorizationIssued) for e in session._events)

    def test_answer_for_old_generation_is_discarded(self):
        session = _make_ready_session()
        ticket = session.begin_authorization()
        stale = AuthorizationTicket(ticket.session_id, ticket.kind, ticket.generation - 1, ticket.amount_cents)

        assert _issue(session, stale) is False

        assert session.current_state == AuthorizationState.REQUESTING
        assert session.authorization is None
        discarded = [e for e in session._events if isinstance(e, StaleAuthorizationDiscarded)]
        assert discarded[0].outcome == "issued"

    def test_answer_for_other_amount_is_discarded(self):
        session = _make_ready_session()
        ticket = session.begin_authorization()

        accepted = session.record_authorization_issued(
            generation=ticket.generation,
            amount_cents=ticket.amount_cents + 100,
            client_secret="pi_x_secret",
            payment_intent_id="pi_x",
        )

        assert accepted is False
        assert session.authorization is None

    def test_answer_without_request_is_discarded(self):
        session = _make_ready_session()
        assert session.record_authorization_issued(1, 5000, "pi_1_secret", "pi_1") is False
        assert session.current_state == AuthorizationState.READY_TO_REQUEST


class TestMidFlightChange:
    def test_item_added_while_requesting_supersedes_request(self):
        session = _make_ready_session(base_cents=5000)
        ticket = session.begin_authorization()
        session._events.clear()

        _add_item(session, base_cents=8000, service_id="act-2")

        assert session.current_state == AuthorizationState.READY_TO_REQUEST
        assert session.authorization_generation == 2
        assert session.requested_amount_cents is None
        superseded = [e for e in session._events if isinstance(e, AuthorizationSuperseded)]
        assert superseded[0].generation == 1
        assert superseded[0].amount_cents == 5000

        # The answer for the old amount arrives late
        assert _issue(session, ticket, intent_id="pi_old") is False
        assert session.authorization is None

        fresh = session.begin_authorization()
        assert fresh.generation == 3
        assert fresh.amount_cents == 13000
        assert _issue(session, fresh, intent_id="pi_new") is True
        assert session.authorization.payment_intent_id == "pi_new"
        assert session.authorization.amount_cents == 13000

    def test_late_failure_does_not_mark_session_failed(self):
        session = _make_ready_session()
        ticket = session.begin_authorization()
        _add_item(session, base_cents=1000, service_id="act-2")

        accepted = session.record_authorization_failure(ticket.generation, ticket.amount_cents, "card declined")

        assert accepted is False
        assert session.current_state == AuthorizationState.READY_TO_REQUEST
        assert session.authorization_failure is None


class TestInvalidation:
    def test_item_change_invalidates_live_authorization(self):
        session = _make_authorized_session(base_cents=5000)
        session._events.clear()

        _add_item(session, base_cents=3000, service_id="act-2")

        assert session.current_state == AuthorizationState.INVALIDATED
        assert session.authorization is None
        invalidated = [e for e in session._events if isinstance(e, AuthorizationInvalidated)]
        assert invalidated[0].amount_cents == 5000
        assert invalidated[0].payment_intent_id == "pi_1"

    def test_invalidated_session_reissues_for_new_amount(self):
        session = _make_authorized_session(base_cents=5000)
        _add_item(session, base_cents=3000, service_id="act-2")

        ticket = session.begin_authorization()

        assert ticket.generation == 2
        assert ticket.amount_cents == 8000
        assert _issue(session, ticket, intent_id="pi_2") is True

    def test_identity_change_invalidates(self):
        session = _make_authorized_session()
        session.submit_guest_info("Jane Doe", "jane.doe@example.com")
        assert session.current_state == AuthorizationState.INVALIDATED

    def test_sign_out_without_guest_details_drops_authorization(self):
        session = CheckoutSession.start()
        _add_item(session)
        session.identify_buyer("acct-001", "Ana", "Lopez", "ana@example.com")
        _issue(session, session.begin_authorization())

        session.sign_out_buyer()

        assert session.current_state == AuthorizationState.AWAITING_IDENTITY
        assert session.authorization is None

    def test_removing_last_item_drops_authorization(self):
        session = CheckoutSession.start()
        item_id = _add_item(session)
        session.submit_guest_info("Jane Doe", "jane@example.com")
        _issue(session, session.begin_authorization())

        session.remove_item(item_id)

        assert session.current_state == AuthorizationState.IDLE
        assert session.authorization is None

    def test_authorized_amount_must_match_chargeable_amount(self):
        session = _make_authorized_session(base_cents=5000)
        with pytest.raises(ValidationError) as exc:
            session.referral_discount_cents = 100
        assert "Authorization does not match the chargeable amount" in str(exc.value)


class TestFailure:
    def test_failure_moves_to_failed(self):
        session = _make_ready_session()
        ticket = session.begin_authorization()

        assert session.record_authorization_failure(ticket.generation, ticket.amount_cents, "card declined") is True

        assert session.current_state == AuthorizationState.FAILED
        assert session.authorization_failure == "card declined"
        failed = [e for e in session._events if isinstance(e, AuthorizationFailed)]
        assert failed[0].reason == "card declined"

    def test_failed_session_can_retry(self):
        session = _make_ready_session()
        ticket = session.begin_authorization()
        session.record_authorization_failure(ticket.generation, ticket.amount_cents, "timeout")

        retry = session.begin_authorization()

        assert retry.generation == 2
        assert session.authorization_failure is None
        assert _issue(session, retry) is True

    def test_input_change_after_failure_is_ready_again(self):
        session = _make_ready_session()
        ticket = session.begin_authorization()
        session.record_authorization_failure(ticket.generation, ticket.amount_cents, "timeout")

        _add_item(session, base_cents=1000, service_id="act-2")

        assert session.current_state == AuthorizationState.READY_TO_REQUEST
        assert session.authorization_failure is None
        assert session.current_view().authorization.failure is None

    def test_removing_last_item_after_failure_drops_the_error(self):
        session = CheckoutSession.start()
        item_id = _add_item(session)
        session.submit_guest_info("Jane Doe", "jane@example.com")
        ticket = session.begin_authorization()
        session.record_authorization_failure(ticket.generation, ticket.amount_cents, "card declined")

        session.remove_item(item_id)

        assert session.current_state == AuthorizationState.IDLE
        assert session.current_view().authorization.failure is None


class TestZeroAmount:
    def test_zero_amount_finalizes_when_processor_refuses_zero(self):
        session = _make_ready_session(base_cents=0)
        session._events.clear()

        assert session.begin_authorization(accepts_zero_amount=False) is None

        assert session.current_state == AuthorizationState.FINALIZED
        assert session.finalized_at is not None
        finalized = [e for e in session._events if isinstance(e, CheckoutFinalized)]
        assert finalized[0].reason == "zero_amount"
        assert finalized[0].amount_cents == 0
        assert finalized[0].payment_intent_id is None

    def test_zero_amount_requested_when_processor_accepts_zero(self):
        session = _make_ready_session(base_cents=0)
        ticket = session.begin_authorization(accepts_zero_amount=True)
        assert ticket.amount_cents == 0


class TestFinalize:
    def test_finalize_authorized_checkout(self):
        session = _make_authorized_session()
        session._events.clear()

        session.finalize(payment_intent_id="pi_1")

        assert session.is_finalized is True
        finalized = [e for e in session._events if isinstance(e, CheckoutFinalized)]
        assert finalized[0].reason == "payment_completed"
        assert finalized[0].amount_cents == 5000
        assert finalized[0].payment_intent_id == "pi_1"

    def test_finalize_requires_live_authorization(self):
        session = _make_ready_session()
        with pytest.raises(ValidationError) as exc:
            session.finalize()
        assert "Cannot finalize a checkout in state Ready_To_Request" in str(exc.value)

    def test_finalize_rejects_foreign_payment(self):
        session = _make_authorized_session()
        with pytest.raises(ValidationError) as exc:
            session.finalize(payment_intent_id="pi_other")
        assert "Payment does not belong to the current authorization" in str(exc.value)
        assert session.current_state == AuthorizationState.AUTHORIZED

    def test_finalized_checkout_rejects_changes(self):
        session = _make_authorized_session()
        session.finalize()

        with pytest.raises(ValidationError) as exc:
            _add_item(session, service_id="act-2")
        assert "Checkout has already been finalized" in str(exc.value)
        with pytest.raises(ValidationError):
            session.submit_guest_info("Other Name", "other@example.com")
        with pytest.raises(ValidationError):
            session.begin_referral_verification("TAXI12345")
        assert session.begin_authorization() is None

    def test_answers_after_finalize_are_discarded(self):
        session = _make_authorized_session()
        session.finalize()
        assert session.record_authorization_issued(1, 5000, "pi_1_secret", "pi_1") is False
        assert session.record_authorization_failure(1, 5000, "late") is False
        assert session.current_state == AuthorizationState.FINALIZED


class TestCurrentView:
    def test_view_exposes_live_handle(self):
        session = _make_authorized_session()

        view = session.current_view()

        assert view.authorization.is_live is True
        assert view.authorization.client_secret == "pi_1_secret"
        assert view.authorization.amount_cents == view.chargeable_amount_cents == 5000
        assert view.item_count == 1
        assert view.contact.email == "jane@example.com"

    def test_view_hides_handle_after_invalidation(self):
        session = _make_authorized_session()
        _add_item(session, base_cents=1000, service_id="act-2")

        view = session.current_view()

        assert view.authorization.state == AuthorizationState.INVALIDATED.value
        assert view.authorization.client_secret is None
        assert view.authorization.amount_cents is None
        assert view.authorization.is_live is False

    def test_view_while_requesting_has_no_handle(self):
        session = _make_ready_session()
        session.begin_authorization()

        view = session.current_view()

        assert view.authorization.state == AuthorizationState.REQUESTING.value
        assert view.authorization.client_secret is None
