"""Payment authorization commands and handler.

``BeginAuthorization`` hands back a ticket (or None); the processor is called
outside the unit of work and its answer comes back through
``RecordAuthorizationIssued`` or ``RecordAuthorizationFailure``.
"""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.session.session import CheckoutSession


@checkout.command(part_of="CheckoutSession")
class BeginAuthorization:
    session_id = Identifier(required=True)
    accepts_zero_amount = Boolean(default=True)


@checkout.command(part_of="CheckoutSession")
class RecordAuthorizationIssued:
    session_id = Identifier(required=True)
    generation = Integer(required=True, min_value=1)
    amount_cents = Integer(required=True, min_value=0)
    client_secret = String(required=True, max_length=500)
    payment_intent_id = String(max_length=255)


@checkout.command(part_of="CheckoutSession")
class RecordAuthorizationFailure:
    session_id = Identifier(required=True)
    generation = Integer(required=True, min_value=1)
    amount_cents = Integer(required=True, min_value=0)
    reason = String(required=True, max_length=1000)


@checkout.command(part_of="CheckoutSession")
class FinalizeCheckout:
    """The buyer completed the external payment step."""

    session_id = Identifier(required=True)
    payment_intent_id = String(max_length=255)


@checkout.command_handler(part_of=CheckoutSession)
class PaymentAuthorizationHandler:
    @handle(BeginAuthorization)
    def begin_authorization(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        ticket = session.begin_authorization(accepts_zero_amount=command.accepts_zero_amount)
        repo.add(session)
        return ticket

    @handle(RecordAuthorizationIssued)
    def record_authorization_issued(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        accepted = session.record_authorization_issued(
            generation=command.generation,
            amount_cents=command.amount_cents,
            client_secret=command.client_secret,
            payment_intent_id=command.payment_intent_id,
        )
        repo.add(session)
        return accepted

    @handle(RecordAuthorizationFailure)
    def record_authorization_failure(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        accepted = session.record_authorization_failure(
            generation=command.generation,
            amount_cents=command.amount_cents,
            reason=command.reason,
        )
        repo.add(session)
        return accepted

    @handle(FinalizeCheckout)
    def finalize_checkout(self, command):
        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.session_id)
        session.finalize(payment_intent_id=command.payment_intent_id)
        repo.add(session)
