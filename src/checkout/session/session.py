"""CheckoutSession aggregate (CQRS): one buyer's checkout from first item to payment.

The session owns the line items, the buyer's identity, the referral outcome
and the current payment authorization. Every operation that can move the
chargeable amount runs the same settle step afterwards: a live authorization
is invalidated, an in-flight request is superseded, and the authorization
state is recomputed from the items and the identity.

Processor and registry calls happen outside the aggregate. The session hands
out an ``AuthorizationTicket`` when a request starts and only accepts an
answer that carries the ticket's generation and amount while both are still
current.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    Date,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from checkout.buyer.email import EmailAddress
from checkout.buyer.resolver import AccountProfile, IdentityStatus, resolve_identity
from checkout.domain import checkout
from checkout.pricing.totals import compute_totals, line_total_cents
from checkout.referral.pricing import ReferralStatus, ReferralVerdict, referral_discount_cents
from checkout.session.authorization import (
    Authorization,
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
    BuyerIdentityResolved,
    CheckoutFinalized,
    CheckoutStarted,
    LineItemAdded,
    LineItemRemoved,
    ReferralCleared,
    ReferralCodeApplied,
    ReferralCodeRejected,
    ReferralCodeRemoved,
    ReferralVerificationStarted,
    StaleAuthorizationDiscarded,
    StaleReferralVerificationDiscarded,
)
from checkout.session.view import AuthorizationView, CheckoutView, LineItemView, ReferralView

logger = structlog.get_logger(__name__)


class CheckoutKind(Enum):
    CART = "Cart"  # Multi-item cart checkout
    BOOKING = "Booking"  # Exactly one item, booked directly


# ---------------------------------------------------------------------------
# Entities and Value Objects
# ---------------------------------------------------------------------------
@checkout.entity(part_of="CheckoutSession")
class LineItem:
    """One pre-priced bookable unit. Price fields never change after adding."""

    service_id = Identifier(required=True)
    service_type = String(required=True, max_length=50)
    service_name = String(required=True, max_length=255)
    category = String(max_length=100)
    selected_date = Date(required=True)
    start_time = String(max_length=10)
    end_time = String(max_length=10)
    check_out_date = Date()
    num_people = Integer(required=True, min_value=1)
    base_cents = Integer(required=True, min_value=0)
    fees_cents = Integer(default=0, min_value=0)
    taxes_cents = Integer(default=0, min_value=0)
    discounts_cents = Integer(default=0, min_value=0)
    option_id = String(max_length=100)
    notes = Text()
    added_at = DateTime()

    @property
    def line_total_cents(self) -> int:
        return line_total_cents(self.base_cents, self.fees_cents, self.taxes_cents, self.discounts_cents)


@checkout.value_object(part_of="CheckoutSession")
class ContactInfo:
    """Canonical contact record derived from the buyer's identity."""

    first_name = String(max_length=100)
    last_name = String(max_length=150)
    email = String(required=True, max_length=254)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()


def _contact_key(contact):
    if contact is None:
        return None
    return (contact.first_name or "", contact.last_name or "", contact.email or "")


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@checkout.aggregate
class CheckoutSession:
    kind = String(choices=CheckoutKind, default=CheckoutKind.CART.value)
    items = HasMany(LineItem)

    # Identity
    is_authenticated = Boolean(default=False)
    account_id = Identifier()
    account_first_name = String(max_length=100)
    account_last_name = String(max_length=150)
    account_email = String(max_length=254)
    guest_name = String(max_length=255)
    guest_email = String(max_length=254)
    identity_status = String(choices=IdentityStatus, default=IdentityStatus.INCOMPLETE.value)
    contact = ValueObject(ContactInfo)

    # Referral
    referral_status = String(choices=ReferralStatus, default=ReferralStatus.NOT_APPLIED.value)
    referral_code = String(max_length=100)
    partner_id = String(max_length=255)
    partner_name = String(max_length=255)
    commission_percentage = Float()
    referral_discount_cents = Integer(default=0, min_value=0)
    referral_rejection_reason = String(max_length=500)

    # Payment authorization
    authorization_state = String(choices=AuthorizationState, default=AuthorizationState.IDLE.value)
    authorization = ValueObject(Authorization)
    authorization_generation = Integer(default=0, min_value=0)
    requested_amount_cents = Integer()
    authorization_failure = String(max_length=1000)

    created_at = DateTime()
    updated_at = DateTime()
    finalized_at = DateTime()

    @invariant.post
    def live_authorization_must_match_chargeable_amount(self):
        if self.authorization_state != AuthorizationState.AUTHORIZED.value:
            return
        if self.authorization is None or self.authorization.amount_cents != self.chargeable_amount_cents():
            raise ValidationError({"authorization": ["Authorization does not match the chargeable amount"]})

    @invariant.post
    def booking_holds_at_most_one_item(self):
        if self.kind == CheckoutKind.BOOKING.value and len(self.items) > 1:
            raise ValidationError({"items": ["A booking checkout holds exactly one item"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def start(cls, kind=CheckoutKind.CART.value, account=None):
        """Open a checkout, optionally for a buyer the identity collaborator already knows."""
        now = datetime.now(UTC)
        session = cls(
            kind=kind,
            authorization_state=AuthorizationState.IDLE.value,
            created_at=now,
            updated_at=now,
        )
        session.raise_(
            CheckoutStarted(
                session_id=str(session.id),
                kind=session.kind,
                is_authenticated=account is not None,
                started_at=now,
            )
        )
        if account is not None:
            session._apply_account(account)
            session._refresh_identity()
        return session

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    def totals(self):
        return compute_totals(self.items)

    def chargeable_amount_cents(self) -> int:
        """Net amount after the referral discount, never below zero."""
        return max(0, self.totals().total - (self.referral_discount_cents or 0))

    def account_profile(self):
        if not self.account_id:
            return None
        return AccountProfile(
            account_id=str(self.account_id),
            first_name=self.account_first_name or "",
            last_name=self.account_last_name or "",
            email=self.account_email or "",
        )

    def resolved_identity(self):
        return resolve_identity(
            is_authenticated=bool(self.is_authenticated),
            account=self.account_profile(),
            guest_name=self.guest_name,
            guest_email=self.guest_email,
        )

    @property
    def current_state(self) -> AuthorizationState:
        return AuthorizationState(self.authorization_state)

    @property
    def is_finalized(self) -> bool:
        return self.current_state == AuthorizationState.FINALIZED

    def can_request_authorization(self) -> bool:
        """True when nothing stands between the session and a processor request."""
        return (
            is_requestable(self.current_state)
            and bool(self.items)
            and IdentityStatus(self.identity_status) != IdentityStatus.INCOMPLETE
            and ReferralStatus(self.referral_status) != ReferralStatus.PENDING
        )

    # -------------------------------------------------------------------
    # Line items
    # -------------------------------------------------------------------
    def add_item(
        self,
        service_id,
        service_type,
        service_name,
        selected_date,
        num_people,
        base_cents,
        fees_cents=0,
        taxes_cents=0,
        discounts_cents=0,
        category=None,
        start_time=None,
        end_time=None,
        check_out_date=None,
        option_id=None,
        notes=None,
    ):
        """Add a pre-priced item. Pricing is frozen on the item from here on."""
        self._assert_open()
        if CheckoutKind(self.kind) == CheckoutKind.BOOKING and self.items:
            raise ValidationError({"items": ["A booking checkout holds exactly one item"]})
        if line_total_cents(base_cents, fees_cents, taxes_cents, discounts_cents) < 0:
            raise ValidationError({"discounts_cents": ["Item discounts cannot exceed the item's price"]})

        now = datetime.now(UTC)
        item = LineItem(
            service_id=service_id,
            service_type=service_type,
            service_name=service_name,
            category=category,
            selected_date=selected_date,
            start_time=start_time,
            end_time=end_time,
            check_out_date=check_out_date,
            num_people=num_people,
            base_cents=base_cents,
            fees_cents=fees_cents,
            taxes_cents=taxes_cents,
            discounts_cents=discounts_cents,
            option_id=option_id,
            notes=notes,
            added_at=now,
        )

        with atomic_change(self):
            self.add_items(item)
            self.updated_at = now
            self._line_items_changed()

        self.raise_(
            LineItemAdded(
                session_id=str(self.id),
                item_id=str(item.id),
                service_id=str(service_id),
                service_name=service_name,
                line_total_cents=item.line_total_cents,
                item_count=len(self.items),
                total_cents=self.totals().total,
            )
        )
        return str(item.id)

    def remove_item(self, item_id):
        """Remove an item. Removing the last one sends the session back to Idle."""
        self._assert_open()
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in checkout"]})

        with atomic_change(self):
            self.remove_items(item)
            self.updated_at = datetime.now(UTC)
            self._line_items_changed()

        self.raise_(
            LineItemRemoved(
                session_id=str(self.id),
                item_id=str(item_id),
                item_count=len(self.items),
                total_cents=self.totals().total,
            )
        )

    # -------------------------------------------------------------------
    # Buyer identity
    # -------------------------------------------------------------------
    def submit_guest_info(self, name, email):
        """Record what an unauthenticated buyer typed into the guest form."""
        self._assert_open()
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email:
            raise ValidationError({"guest": ["Please enter your name and email"]})
        EmailAddress(address=email)

        if self.is_authenticated:
            # Authenticated identity always wins; keep the form values for sign-out.
            logger.debug("guest_info_ignored_for_authenticated_buyer", session_id=str(self.id))

        with atomic_change(self):
            self.guest_name = name
            self.guest_email = email
            self.updated_at = datetime.now(UTC)
            self._refresh_identity()

    def identify_buyer(self, account_id, first_name, last_name, email):
        """The identity collaborator reports the buyer as signed in."""
        self._assert_open()
        with atomic_change(self):
            self._apply_account(
                AccountProfile(
                    account_id=str(account_id),
                    first_name=first_name or "",
                    last_name=last_name or "",
                    email=email or "",
                )
            )
            self.updated_at = datetime.now(UTC)
            self._refresh_identity()

    def sign_out_buyer(self):
        """The identity collaborator reports the buyer as signed out."""
        self._assert_open()
        with atomic_change(self):
            self.is_authenticated = False
            self.account_id = None
            self.account_first_name = None
            self.account_last_name = None
            self.account_email = None
            self.updated_at = datetime.now(UTC)
            self._refresh_identity()

    # -------------------------------------------------------------------
    # Referral
    # -------------------------------------------------------------------
    def begin_referral_verification(self, code):
        """Mark ``code`` as pending verification, clearing any previous outcome."""
        self._assert_open()
        if not self.items:
            raise ValidationError({"referral_code": ["Add an item before applying a referral code"]})

        with atomic_change(self):
            self._clear_referral()
            self.referral_status = ReferralStatus.PENDING.value
            self.referral_code = code
            self.updated_at = datetime.now(UTC)
            self._inputs_changed()

        self.raise_(ReferralVerificationStarted(session_id=str(self.id), code=code))

    def record_referral_verification(self, verdict: ReferralVerdict) -> bool:
        """Apply the registry's verdict if it is still the one being waited for.

        Returns False when the verdict is stale: the code was removed or
        replaced, or the items changed, while verification was in flight.
        """
        if (
            self.is_finalized
            or ReferralStatus(self.referral_status) != ReferralStatus.PENDING
            or self.referral_code != verdict.code
        ):
            logger.debug("stale_referral_verification_discarded", session_id=str(self.id), code=verdict.code)
            self.raise_(StaleReferralVerificationDiscarded(session_id=str(self.id), code=verdict.code))
            return False

        pre_discount_total = self.totals().total
        with atomic_change(self):
            if verdict.valid:
                self.referral_status = ReferralStatus.APPLIED.value
                self.partner_id = verdict.partner_id
                self.partner_name = verdict.partner_name
                self.commission_percentage = verdict.commission_percentage
                self.referral_discount_cents = referral_discount_cents(pre_discount_total)
                self.referral_rejection_reason = None
            else:
                self.referral_status = ReferralStatus.REJECTED.value
                self.referral_discount_cents = 0
                self.referral_rejection_reason = verdict.reason
            self.updated_at = datetime.now(UTC)
            self._inputs_changed()

        if verdict.valid:
            self.raise_(
                ReferralCodeApplied(
                    session_id=str(self.id),
                    code=verdict.code,
                    partner_id=verdict.partner_id,
                    partner_name=verdict.partner_name,
                    commission_percentage=verdict.commission_percentage,
                    pre_discount_total_cents=pre_discount_total,
                    discount_cents=self.referral_discount_cents,
                )
            )
        else:
            self.raise_(ReferralCodeRejected(session_id=str(self.id), code=verdict.code, reason=verdict.reason))
        return True

    def remove_referral_code(self):
        self._assert_open()
        if ReferralStatus(self.referral_status) == ReferralStatus.NOT_APPLIED:
            return

        code = self.referral_code
        with atomic_change(self):
            self._clear_referral()
            self.updated_at = datetime.now(UTC)
            self._inputs_changed()

        self.raise_(ReferralCodeRemoved(session_id=str(self.id), code=code))

    # -------------------------------------------------------------------
    # Payment authorization
    # -------------------------------------------------------------------
    def begin_authorization(self, accepts_zero_amount=True):
        """Start a processor request for the current chargeable amount.

        Returns an ``AuthorizationTicket``, or None when no request should go
        out: one is already in flight, the session is finalized, or an input
        (items, identity, pending referral) is not ready. A zero amount the
        processor will not accept finalizes the checkout locally instead.
        """
        if not self.can_request_authorization():
            return None

        amount = self.chargeable_amount_cents()
        if amount == 0 and not accepts_zero_amount:
            self._finalize(amount_cents=0, payment_intent_id=None, reason="zero_amount")
            return None

        with atomic_change(self):
            self.authorization_generation = (self.authorization_generation or 0) + 1
            self.requested_amount_cents = amount
            self.authorization_failure = None
            self.authorization = None
            self._transition_to(AuthorizationState.REQUESTING)

        logger.info(
            "authorization_requested",
            session_id=str(self.id),
            generation=self.authorization_generation,
            amount_cents=amount,
        )
        return AuthorizationTicket(
            session_id=str(self.id),
            kind=self.kind,
            generation=self.authorization_generation,
            amount_cents=amount,
        )

    def record_authorization_issued(self, generation, amount_cents, client_secret, payment_intent_id=None) -> bool:
        """Store the processor's handle if the request it answers is still current."""
        if not self._is_current_request(generation, amount_cents):
            self._discard_stale(generation, amount_cents, outcome="issued")
            return False

        now = datetime.now(UTC)
        with atomic_change(self):
            self.authorization = Authorization(
                client_secret=client_secret,
                payment_intent_id=payment_intent_id,
                amount_cents=amount_cents,
                generation=generation,
                issued_at=now,
            )
            self.requested_amount_cents = None
            self.updated_at = now
            self._transition_to(AuthorizationState.AUTHORIZED)

        logger.info(
            "authorization_issued",
            session_id=str(self.id),
            generation=generation,
            amount_cents=amount_cents,
            payment_intent_id=payment_intent_id,
        )
        self.raise_(
            AuthorizationIssued(
                session_id=str(self.id),
                generation=generation,
                amount_cents=amount_cents,
                payment_intent_id=payment_intent_id,
            )
        )
        return True

    def record_authorization_failure(self, generation, amount_cents, reason) -> bool:
        """Move to Failed if the request it answers is still current."""
        if not self._is_current_request(generation, amount_cents):
            self._discard_stale(generation, amount_cents, outcome="failed")
            return False

        with atomic_change(self):
            self.authorization_failure = reason
            self.requested_amount_cents = None
            self.updated_at = datetime.now(UTC)
            self._transition_to(AuthorizationState.FAILED)

        logger.warning(
            "authorization_failed",
            session_id=str(self.id),
            generation=generation,
            amount_cents=amount_cents,
            reason=reason,
        )
        self.raise_(
            AuthorizationFailed(
                session_id=str(self.id),
                generation=generation,
                amount_cents=amount_cents,
                reason=reason,
            )
        )
        return True

    def finalize(self, payment_intent_id=None):
        """The buyer completed the external payment step for the live authorization."""
        if self.current_state != AuthorizationState.AUTHORIZED:
            raise ValidationError(
                {"authorization": [f"Cannot finalize a checkout in state {self.authorization_state}"]}
            )
        if payment_intent_id and payment_intent_id != self.authorization.payment_intent_id:
            raise ValidationError({"payment_intent_id": ["Payment does not belong to the current authorization"]})

        self._finalize(
            amount_cents=self.authorization.amount_cents,
            payment_intent_id=self.authorization.payment_intent_id,
            reason="payment_completed",
        )

    # -------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------
    def current_view(self) -> CheckoutView:
        """Snapshot for the presentation layer.

        The authorization handle is included only while it is valid for the
        amount being displayed.
        """
        chargeable = self.chargeable_amount_cents()
        live = (
            self.current_state == AuthorizationState.AUTHORIZED
            and self.authorization is not None
            and self.authorization.amount_cents == chargeable
        )
        contact = self.resolved_identity().contact

        return CheckoutView(
            session_id=str(self.id),
            kind=self.kind,
            items=tuple(
                LineItemView(
                    item_id=str(item.id),
                    service_id=str(item.service_id),
                    service_type=item.service_type,
                    service_name=item.service_name,
                    selected_date=item.selected_date,
                    num_people=item.num_people,
                    line_total_cents=item.line_total_cents,
                )
                for item in self.items
            ),
            totals=self.totals(),
            chargeable_amount_cents=chargeable,
            identity_status=self.identity_status,
            contact=contact,
            referral=ReferralView(
                status=self.referral_status,
                code=self.referral_code,
                partner_id=self.partner_id,
                partner_name=self.partner_name,
                commission_percentage=self.commission_percentage,
                discount_cents=self.referral_discount_cents or 0,
                reason=self.referral_rejection_reason,
            ),
            authorization=AuthorizationView(
                state=self.authorization_state,
                client_secret=self.authorization.client_secret if live else None,
                payment_intent_id=self.authorization.payment_intent_id if live else None,
                amount_cents=self.authorization.amount_cents if live else None,
                failure=self.authorization_failure,
            ),
        )

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------
    def _assert_open(self):
        if self.is_finalized:
            raise ValidationError({"status": ["Checkout has already been finalized"]})

    def _transition_to(self, target: AuthorizationState):
        current = self.current_state
        if current == target:
            return
        if not can_transition(current, target):
            raise ValidationError({"authorization_state": [f"Cannot transition from {current.value} to {target.value}"]})

        self.authorization_state = target.value
        self.raise_(
            AuthorizationStateChanged(
                session_id=str(self.id),
                from_state=current.value,
                to_state=target.value,
                generation=self.authorization_generation or 0,
                chargeable_amount_cents=self.chargeable_amount_cents(),
            )
        )

    def _apply_account(self, account: AccountProfile):
        self.is_authenticated = True
        self.account_id = account.account_id
        self.account_first_name = account.first_name
        self.account_last_name = account.last_name
        self.account_email = account.email

    def _refresh_identity(self):
        """Re-resolve the buyer; only a real change counts as an input change."""
        identity = self.resolved_identity()
        contact = identity.contact
        new_contact = (
            ContactInfo(first_name=contact.first_name, last_name=contact.last_name, email=contact.email)
            if contact
            else None
        )
        if identity.status.value == self.identity_status and _contact_key(new_contact) == _contact_key(self.contact):
            return

        self.identity_status = identity.status.value
        self.contact = new_contact
        self._inputs_changed()
        self.raise_(
            BuyerIdentityResolved(
                session_id=str(self.id),
                identity_status=identity.status.value,
                first_name=contact.first_name if contact else None,
                last_name=contact.last_name if contact else None,
                email=contact.email if contact else None,
            )
        )

    def _clear_referral(self):
        self.referral_status = ReferralStatus.NOT_APPLIED.value
        self.referral_code = None
        self.partner_id = None
        self.partner_name = None
        self.commission_percentage = None
        self.referral_discount_cents = 0
        self.referral_rejection_reason = None

    def _line_items_changed(self):
        """Items moved: a discount priced on the old total no longer holds."""
        previous = ReferralStatus(self.referral_status)
        if previous in (ReferralStatus.APPLIED, ReferralStatus.PENDING):
            code = self.referral_code
            self._clear_referral()
            logger.info("referral_cleared_on_item_change", session_id=str(self.id), code=code)
            self.raise_(ReferralCleared(session_id=str(self.id), code=code, previous_status=previous.value))
        self._inputs_changed()

    def _inputs_changed(self):
        """Drop whatever authorization no longer matches, then settle the state."""
        current = self.current_state
        ready_state = AuthorizationState.READY_TO_REQUEST

        if current == AuthorizationState.AUTHORIZED:
            self.raise_(
                AuthorizationInvalidated(
                    session_id=str(self.id),
                    amount_cents=self.authorization.amount_cents,
                    payment_intent_id=self.authorization.payment_intent_id,
                )
            )
            logger.info("authorization_invalidated", session_id=str(self.id), amount_cents=self.authorization.amount_cents)
            self.authorization = None
            ready_state = AuthorizationState.INVALIDATED
        elif current == AuthorizationState.REQUESTING:
            self.raise_(
                AuthorizationSuperseded(
                    session_id=str(self.id),
                    generation=self.authorization_generation,
                    amount_cents=self.requested_amount_cents or 0,
                )
            )
            # Bump so the in-flight answer can never match again.
            self.authorization_generation += 1
            self.requested_amount_cents = None
        elif current == AuthorizationState.FAILED:
            self.authorization_failure = None
        elif current == AuthorizationState.INVALIDATED:
            ready_state = AuthorizationState.INVALIDATED

        if not self.items:
            target = AuthorizationState.IDLE
        elif IdentityStatus(self.identity_status) == IdentityStatus.INCOMPLETE:
            target = AuthorizationState.AWAITING_IDENTITY
        else:
            target = ready_state
        self._transition_to(target)

    def _is_current_request(self, generation, amount_cents):
        return (
            self.current_state == AuthorizationState.REQUESTING
            and generation == self.authorization_generation
            and amount_cents == self.requested_amount_cents
            and amount_cents == self.chargeable_amount_cents()
        )

    def _discard_stale(self, generation, amount_cents, outcome):
        logger.debug(
            "stale_authorization_discarded",
            session_id=str(self.id),
            generation=generation,
            current_generation=self.authorization_generation,
            amount_cents=amount_cents,
            outcome=outcome,
        )
        self.raise_(
            StaleAuthorizationDiscarded(
                session_id=str(self.id),
                generation=generation,
                amount_cents=amount_cents,
                outcome=outcome,
            )
        )

    def _finalize(self, amount_cents, payment_intent_id, reason):
        now = datetime.now(UTC)
        with atomic_change(self):
            self.finalized_at = now
            self.updated_at = now
            self._transition_to(AuthorizationState.FINALIZED)

        logger.info(
            "checkout_finalized",
            session_id=str(self.id),
            amount_cents=amount_cents,
            payment_intent_id=payment_intent_id,
            reason=reason,
        )
        self.raise_(
            CheckoutFinalized(
                session_id=str(self.id),
                amount_cents=amount_cents,
                payment_intent_id=payment_intent_id,
                reason=reason,
                finalized_at=now,
            )
        )
