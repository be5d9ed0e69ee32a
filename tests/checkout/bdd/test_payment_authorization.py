"""BDD tests for the payment authorization lifecycle."""

from pytest_bdd import parsers, scenarios, then, when

from checkout.pricing.money import to_cents

scenarios("features/payment_authorization.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("an authorization is requested")
def authorization_requested(session, flight):
    flight["ticket"] = session.begin_authorization()


@when("an authorization is requested from a processor that refuses zero amounts")
def authorization_requested_no_zero(session, flight):
    flight["ticket"] = session.begin_authorization(accepts_zero_amount=False)


@when("the processor answers the request")
def processor_answers(session, flight):
    ticket = flight["ticket"]
    flight["accepted"] = session.record_authorization_issued(
        generation=ticket.generation,
        amount_cents=ticket.amount_cents,
        client_secret=f"pi_{ticket.generation}_secret",
        payment_intent_id=f"pi_{ticket.generation}",
    )


@when(parsers.cfparse('the processor rejects the request with "{reason}"'))
def processor_rejects(session, flight, reason):
    ticket = flight["ticket"]
    flight["accepted"] = session.record_authorization_failure(
        generation=ticket.generation,
        amount_cents=ticket.amount_cents,
        reason=reason,
    )


@when("the checkout is finalized")
def checkout_finalized(session):
    session.finalize()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("no request is sent")
def no_request_sent(flight):
    assert flight["ticket"] is None


@then("the answer is accepted")
def answer_accepted(flight):
    assert flight["accepted"] is True


@then("the answer is discarded")
def answer_discarded(flight):
    assert flight["accepted"] is False


@then(parsers.cfparse("the authorization covers ${price}"))
def authorization_covers(session, price):
    view = session.current_view()
    assert view.authorization.is_live
    assert view.authorization.amount_cents == to_cents(price)
    assert view.chargeable_amount_cents == to_cents(price)


@then("no authorization handle is shown")
def no_handle_shown(session):
    assert session.current_view().authorization.client_secret is None
