"""Read-only snapshot of a checkout session for the presentation layer."""

from dataclasses import dataclass
from datetime import date

from checkout.buyer.resolver import ContactRecord
from checkout.pricing.totals import TotalsBreakdown


@dataclass(frozen=True)
class LineItemView:
    item_id: str
    service_id: str
    service_type: str
    service_name: str
    selected_date: date
    num_people: int
    line_total_cents: int


@dataclass(frozen=True)
class ReferralView:
    status: str
    code: str | None = None
    partner_id: str | None = None
    partner_name: str | None = None
    commission_percentage: float | None = None
    discount_cents: int = 0
    reason: str | None = None


@dataclass(frozen=True)
class AuthorizationView:
    """Authorization state plus the handle, when it is valid for the displayed amount."""

    state: str
    client_secret: str | None = None
    payment_intent_id: str | None = None
    amount_cents: int | None = None
    failure: str | None = None

    @property
    def is_live(self) -> bool:
        return self.client_secret is not None


@dataclass(frozen=True)
class CheckoutView:
    session_id: str
    kind: str
    items: tuple[LineItemView, ...]
    totals: TotalsBreakdown
    chargeable_amount_cents: int
    identity_status: str
    contact: ContactRecord | None
    referral: ReferralView
    authorization: AuthorizationView

    @property
    def item_count(self) -> int:
        return len(self.items)
