"""Domain events for the CheckoutSession aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="CheckoutSession")
class CheckoutStarted:
    """A buyer opened a cart or single-booking checkout."""

    __version__ = 1

    session_id = Identifier(required=True)
    kind = String(required=True)
    is_authenticated = Boolean(default=False)
    started_at = DateTime(required=True)


@checkout.event(part_of="CheckoutSession")
class LineItemAdded:
    """A pre-priced bookable item was added to the checkout."""

    __version__ = 1

    session_id = Identifier(required=True)
    item_id = Identifier(required=True)
    service_id = Identifier(required=True)
    service_name = String(required=True)
    line_total_cents = Integer(required=True)
    item_count = Integer(required=True)
    total_cents = Integer(required=True)


@checkout.event(part_of="CheckoutSession")
class LineItemRemoved:
    __version__ = 1

    session_id = Identifier(required=True)
    item_id = Identifier(required=True)
    item_count = Integer(required=True)
    total_cents = Integer(required=True)


@checkout.event(part_of="CheckoutSession")
class BuyerIdentityResolved:
    """The canonical contact record (or its absence) changed."""

    __version__ = 1

    session_id = Identifier(required=True)
    identity_status = String(required=True)
    first_name = String()
    last_name = String()
    email = String()


@checkout.event(part_of="CheckoutSession")
class ReferralVerificationStarted:
    __version__ = 1

    session_id = Identifier(required=True)
    code = String(required=True)


@checkout.event(part_of="CheckoutSession")
class ReferralCodeApplied:
    """A partner code was verified and its discount locked in."""

    __version__ = 1

    session_id = Identifier(required=True)
    code = String(required=True)
    partner_id = String(required=True)
    partner_name = String()
    commission_percentage = Float(required=True)
    pre_discount_total_cents = Integer(required=True)
    discount_cents = Integer(required=True)


@checkout.event(part_of="CheckoutSession")
class ReferralCodeRejected:
    """The registry turned the code down, or could not be reached."""

    __version__ = 1

    session_id = Identifier(required=True)
    code = String(required=True)
    reason = String(required=True)


@checkout.event(part_of="CheckoutSession")
class ReferralCodeRemoved:
    """The buyer took the code off."""

    __version__ = 1

    session_id = Identifier(required=True)
    code = String()


@checkout.event(part_of="CheckoutSession")
class ReferralCleared:
    """The line items changed under an applied or pending code.

    The discount was a percentage of a total that no longer exists, so the
    buyer has to apply the code again.
    """

    __version__ = 1

    session_id = Identifier(required=True)
    code = String()
    previous_status = String(required=True)


@checkout.event(part_of="CheckoutSession")
class StaleReferralVerificationDiscarded:
    __version__ = 1

    session_id = Identifier(required=True)
    code = String(required=True)


@checkout.event(part_of="CheckoutSession")
class AuthorizationStateChanged:
    """Every move of the payment authorization state machine."""

    __version__ = 1

    session_id = Identifier(required=True)
    from_state = String(required=True)
    to_state = String(required=True)
    generation = Integer(required=True)
    chargeable_amount_cents = Integer(required=True)


@checkout.event(part_of="CheckoutSession")
class AuthorizationIssued:
    __version__ = 1

    session_id = Identifier(required=True)
    generation = Integer(required=True)
    amount_cents = Integer(required=True)
    payment_intent_id = String()


@checkout.event(part_of="CheckoutSession")
class AuthorizationFailed:
    __version__ = 1

    session_id = Identifier(required=True)
    generation = Integer(required=True)
    amount_cents = Integer(required=True)
    reason = String(required=True)


@checkout.event(part_of="CheckoutSession")
class AuthorizationInvalidated:
    """A live authorization was dropped because its amount is no longer current."""

    __version__ = 1

    session_id = Identifier(required=True)
    amount_cents = Integer(required=True)
    payment_intent_id = String()


@checkout.event(part_of="CheckoutSession")
class AuthorizationSuperseded:
    """Inputs changed while a processor request was in flight."""

    __version__ = 1

    session_id = Identifier(required=True)
    generation = Integer(required=True)
    amount_cents = Integer(required=True)


@checkout.event(part_of="CheckoutSession")
class StaleAuthorizationDiscarded:
    """A processor answer arrived for a request that is no longer current."""

    __version__ = 1

    session_id = Identifier(required=True)
    generation = Integer(required=True)
    amount_cents = Integer(required=True)
    outcome = String(required=True)


@checkout.event(part_of="CheckoutSession")
class CheckoutFinalized:
    __version__ = 1

    session_id = Identifier(required=True)
    amount_cents = Integer(required=True)
    payment_intent_id = String()
    reason = String(required=True)
    finalized_at = DateTime(required=True)
