"""Checkout summary: one row per session for lists and dashboards."""

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.referral.pricing import ReferralStatus
from checkout.session.authorization import AuthorizationState
from checkout.session.events import (
    AuthorizationInvalidated,
    AuthorizationIssued,
    AuthorizationStateChanged,
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
)
from checkout.session.session import CheckoutSession


@checkout.projection
class CheckoutSummary:
    session_id = Identifier(identifier=True, required=True)
    kind = String(required=True)
    identity_status = String(default="Incomplete")
    buyer_email = String()
    item_count = Integer(default=0)
    total_cents = Integer(default=0)
    referral_status = String(default=ReferralStatus.NOT_APPLIED.value)
    referral_code = String()
    discount_cents = Integer(default=0)
    chargeable_cents = Integer(default=0)
    authorization_state = String(default=AuthorizationState.IDLE.value)
    payment_intent_id = String()
    started_at = DateTime()
    finalized_at = DateTime()


def _recompute_chargeable(view):
    view.chargeable_cents = max(0, (view.total_cents or 0) - (view.discount_cents or 0))


def _clear_referral(view):
    view.referral_status = ReferralStatus.NOT_APPLIED.value
    view.referral_code = None
    view.discount_cents = 0
    _recompute_chargeable(view)


@checkout.projector(projector_for=CheckoutSummary, aggregates=[CheckoutSession])
class CheckoutSummaryProjector:
    @on(CheckoutStarted)
    def on_checkout_started(self, event):
        current_domain.repository_for(CheckoutSummary).add(
            CheckoutSummary(
                session_id=event.session_id,
                kind=event.kind,
                started_at=event.started_at,
            )
        )

    @on(LineItemAdded)
    def on_line_item_added(self, event):
        self._update_items(event)

    @on(LineItemRemoved)
    def on_line_item_removed(self, event):
        self._update_items(event)

    def _update_items(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.item_count = event.item_count
        view.total_cents = event.total_cents
        _recompute_chargeable(view)
        repo.add(view)

    @on(BuyerIdentityResolved)
    def on_buyer_identity_resolved(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.identity_status = event.identity_status
        view.buyer_email = event.email
        repo.add(view)

    @on(ReferralVerificationStarted)
    def on_referral_verification_started(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.referral_status = ReferralStatus.PENDING.value
        view.referral_code = event.code
        view.discount_cents = 0
        _recompute_chargeable(view)
        repo.add(view)

    @on(ReferralCodeApplied)
    def on_referral_code_applied(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.referral_status = ReferralStatus.APPLIED.value
        view.referral_code = event.code
        view.discount_cents = event.discount_cents
        _recompute_chargeable(view)
        repo.add(view)

    @on(ReferralCodeRejected)
    def on_referral_code_rejected(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.referral_status = ReferralStatus.REJECTED.value
        view.referral_code = event.code
        view.discount_cents = 0
        _recompute_chargeable(view)
        repo.add(view)

    @on(ReferralCodeRemoved)
    def on_referral_code_removed(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        _clear_referral(view)
        repo.add(view)

    @on(ReferralCleared)
    def on_referral_cleared(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        _clear_referral(view)
        repo.add(view)

    @on(AuthorizationStateChanged)
    def on_authorization_state_changed(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.authorization_state = event.to_state
        repo.add(view)

    @on(AuthorizationIssued)
    def on_authorization_issued(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.payment_intent_id = event.payment_intent_id
        repo.add(view)

    @on(AuthorizationInvalidated)
    def on_authorization_invalidated(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.payment_intent_id = None
        repo.add(view)

    @on(CheckoutFinalized)
    def on_checkout_finalized(self, event):
        repo = current_domain.repository_for(CheckoutSummary)
        view = repo.get(event.session_id)
        view.authorization_state = AuthorizationState.FINALIZED.value
        view.payment_intent_id = event.payment_intent_id
        view.finalized_at = event.finalized_at
        repo.add(view)
