"""Drives the two external calls a checkout session waits on.

Both calls follow the same shape: a command marks the session as waiting and
returns what the call needs, the collaborator is called outside any unit of
work, and a second command records the answer. The session itself decides
whether the answer is still current; these functions never second-guess it.
"""

import structlog
from protean.utils.globals import current_domain

from checkout.payment.payloads import booking_payment_payload, cart_payment_payload
from checkout.payment.processor import get_processor
from checkout.payment.processor.port import PaymentProcessor, ProcessorError
from checkout.referral.pricing import normalize_code, verify_code
from checkout.referral.registry import get_registry
from checkout.session.authorization import AuthorizationTicket
from checkout.session.payment import BeginAuthorization, RecordAuthorizationFailure, RecordAuthorizationIssued
from checkout.session.referrals import BeginReferralVerification, RecordReferralVerification
from checkout.session.session import CheckoutKind, CheckoutSession

logger = structlog.get_logger(__name__)

# Upper bound on back-to-back requests in one refresh. Each extra round only
# happens when the previous answer was discarded as stale.
MAX_REQUEST_ROUNDS = 3


def apply_referral_code(session_id: str, raw_code: str) -> bool:
    """Verify a buyer-entered code and record the outcome on the session.

    Returns True when the verdict was recorded, False when the session moved on
    while the registry was being asked.

    Raises:
        ValidationError: If the code is blank; the registry is not called.
    """
    code = normalize_code(raw_code)
    current_domain.process(
        BeginReferralVerification(session_id=session_id, code=code),
        asynchronous=False,
    )

    verdict = verify_code(get_registry(), code)
    return current_domain.process(
        RecordReferralVerification(
            session_id=session_id,
            code=verdict.code,
            valid=verdict.valid,
            partner_id=verdict.partner_id,
            partner_name=verdict.partner_name,
            commission_percentage=verdict.commission_percentage,
            reason=verdict.reason,
        ),
        asynchronous=False,
    )


def request_payment_intent(processor: PaymentProcessor, session: CheckoutSession, ticket: AuthorizationTicket):
    """Send the request matching the session's kind."""
    if CheckoutKind(ticket.kind) == CheckoutKind.BOOKING:
        return processor.create_payment_intent(booking_payment_payload(session, ticket))
    return processor.create_cart_payment_intent(cart_payment_payload(session))


def refresh_authorization(session_id: str) -> CheckoutSession:
    """Bring the session's authorization up to date with its current amount.

    Does nothing when the session is not ready for a request (no items,
    buyer unknown, referral pending, already authorized or finalized). When
    an answer comes back stale, the request is issued again for the latest
    amount.
    """
    processor = get_processor()
    repo = current_domain.repository_for(CheckoutSession)

    for _ in range(MAX_REQUEST_ROUNDS):
        ticket = current_domain.process(
            BeginAuthorization(
                session_id=session_id,
                accepts_zero_amount=processor.accepts_zero_amount,
            ),
            asynchronous=False,
        )
        if ticket is None:
            break

        try:
            intent = request_payment_intent(processor, repo.get(session_id), ticket)
        except ProcessorError as exc:
            accepted = current_domain.process(
                RecordAuthorizationFailure(
                    session_id=session_id,
                    generation=ticket.generation,
                    amount_cents=ticket.amount_cents,
                    reason=str(exc) or "Failed to create payment intent.",
                ),
                asynchronous=False,
            )
        else:
            accepted = current_domain.process(
                RecordAuthorizationIssued(
                    session_id=session_id,
                    generation=ticket.generation,
                    amount_cents=ticket.amount_cents,
                    client_secret=intent.client_secret,
                    payment_intent_id=intent.payment_intent_id,
                ),
                asynchronous=False,
            )

        if accepted:
            break
        logger.debug("authorization_request_repeated", session_id=session_id, stale_generation=ticket.generation)
    else:
        logger.warning("authorization_refresh_gave_up", session_id=session_id, rounds=MAX_REQUEST_ROUNDS)

    return repo.get(session_id)
